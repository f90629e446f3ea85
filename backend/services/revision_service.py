"""
revision_service.py — Revision habit proposals
pending -> accepted | declined, accepted -> completed.
Accepting creates a regular learning habit for the skill.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import InvalidStateError, NotFoundError, PersistenceError
from models.habit import HabitCategory, HabitFrequency
from models.revision_habit import RevisionHabit, RevisionStatus
from schemas import HabitCreate
from services.habit_service import HabitService

logger = logging.getLogger(__name__)

REVISION_COLOR = "#424242"
REVISION_ICON = "refresh"


class RevisionService:
    @staticmethod
    def get_all(db: Session, user_id: str, pending_only: bool = False) -> list[RevisionHabit]:
        query = db.query(RevisionHabit).filter_by(user_id=user_id)
        if pending_only:
            query = query.filter_by(status=RevisionStatus.PENDING.value)
        return query.order_by(RevisionHabit.created_at.desc()).all()

    @staticmethod
    def get(db: Session, user_id: str, revision_id: str, lock: bool = False) -> RevisionHabit:
        query = db.query(RevisionHabit).filter_by(id=revision_id, user_id=user_id)
        if lock:
            # FOR UPDATE serializes concurrent transitions of one revision (no-op on SQLite)
            query = query.with_for_update()
        r = query.first()
        if r is None:
            raise NotFoundError("RevisionHabit", revision_id)
        return r

    @staticmethod
    def _locked_in_state(db: Session, user_id: str, revision_id: str,
                         expected: RevisionStatus, action: str) -> RevisionHabit:
        r = RevisionService.get(db, user_id, revision_id, lock=True)
        if r.status != expected.value:
            current = r.status
            db.rollback()
            raise InvalidStateError("RevisionHabit", current, action)
        return r

    @staticmethod
    def _transition(db: Session, user_id: str, revision_id: str, expected: RevisionStatus,
                    target: RevisionStatus, action: str) -> RevisionHabit:
        r = RevisionService._locked_in_state(db, user_id, revision_id, expected, action)
        try:
            r.status = target.value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"{action}_revision", e) from e
        return r

    @staticmethod
    def accept(db: Session, user_id: str, revision_id: str) -> dict:
        """Create the revision habit and mark the proposal accepted, in one commit."""
        r = RevisionService._locked_in_state(db, user_id, revision_id, RevisionStatus.PENDING, "accept")
        fields = HabitCreate(
            title=f"Revise: {r.original_skill}",
            description=f"Revision habit from {r.source_month.strftime('%B %Y')}",
            category=HabitCategory.LEARNING,
            frequency=HabitFrequency.DAILY,
            is_active=True,
            is_learning_habit=True,
            color=REVISION_COLOR,
            icon=REVISION_ICON,
        ).model_dump(exclude_none=True, mode="json")

        try:
            habit = HabitService.add(db, user_id, fields)
            r.status = RevisionStatus.ACCEPTED.value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("accept_revision", e) from e

        db.refresh(habit)
        logger.info(f"User {user_id} accepted revision {r.id}, created habit {habit.id}")
        return {"revision": r, "habit": habit}

    @staticmethod
    def decline(db: Session, user_id: str, revision_id: str) -> RevisionHabit:
        return RevisionService._transition(
            db, user_id, revision_id, RevisionStatus.PENDING, RevisionStatus.DECLINED, "decline"
        )

    @staticmethod
    def complete(db: Session, user_id: str, revision_id: str) -> RevisionHabit:
        return RevisionService._transition(
            db, user_id, revision_id, RevisionStatus.ACCEPTED, RevisionStatus.COMPLETED, "complete"
        )
