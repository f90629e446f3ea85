"""
habit_service.py — Habits
CRUD for habits with soft delete. Every habit owns exactly one Streak row,
created alongside it.
"""

from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import NotFoundError, PersistenceError
from models.daily_log import DailyLog
from models.habit import Habit
from schemas import HabitCreate, HabitUpdate, parse_payload
from services.streak_service import StreakService


class HabitService:
    @staticmethod
    def add(db: Session, user_id: str, fields: dict, habit_id: str | None = None) -> Habit:
        """Stage a habit and its streak row. Caller commits."""
        h = Habit(user_id=user_id, **fields)
        if habit_id:
            h.id = habit_id
        db.add(h)
        db.flush()
        StreakService.create_for_habit(db, h)
        return h

    @staticmethod
    def create(db: Session, user_id: str, data: HabitCreate | dict, habit_id: str | None = None) -> Habit:
        """Create a habit. ``habit_id`` lets offline clients keep the id they generated."""
        if isinstance(data, dict):
            data = parse_payload(HabitCreate, data)
        fields = data.model_dump(exclude_none=True, mode="json")

        if habit_id:
            existing = db.query(Habit).filter_by(id=habit_id, user_id=user_id).first()
            if existing is not None:
                # Replayed create from a client that never saw our ack
                return HabitService.update(db, user_id, habit_id, fields)

        try:
            h = HabitService.add(db, user_id, fields, habit_id)
            db.commit()
            db.refresh(h)
            return h
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("create_habit", e) from e

    @staticmethod
    def get(db: Session, user_id: str, habit_id: str) -> Habit:
        h = (
            db.query(Habit)
            .filter(Habit.id == habit_id, Habit.user_id == user_id, Habit.deleted_at.is_(None))
            .first()
        )
        if h is None:
            raise NotFoundError("Habit", habit_id)
        return h

    @staticmethod
    def get_all(db: Session, user_id: str, active_only: bool = False) -> list[Habit]:
        q = db.query(Habit).filter(Habit.user_id == user_id, Habit.deleted_at.is_(None))
        if active_only:
            q = q.filter(Habit.is_active.is_(True))
        return q.order_by(Habit.created_at.asc()).all()

    @staticmethod
    def update(db: Session, user_id: str, habit_id: str, data: HabitUpdate | dict) -> Habit:
        if isinstance(data, dict):
            data = parse_payload(HabitUpdate, data)
        h = HabitService.get(db, user_id, habit_id)
        try:
            for k, v in data.model_dump(exclude_unset=True, mode="json").items():
                setattr(h, k, v)
            db.commit()
            db.refresh(h)
            return h
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("update_habit", e) from e

    @staticmethod
    def delete(db: Session, user_id: str, habit_id: str) -> None:
        """Soft delete: the row stays as a tombstone for sync clients."""
        h = HabitService.get(db, user_id, habit_id)
        try:
            h.deleted_at = datetime.now(timezone.utc)
            h.is_active = False
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("delete_habit", e) from e

    @staticmethod
    def get_today(db: Session, user_id: str, today: date | None = None) -> list[dict]:
        """Active habits with today's completion status."""
        d = today or datetime.now(timezone.utc).date()
        habits = HabitService.get_all(db, user_id, active_only=True)
        done = {
            row.habit_id
            for row in db.query(DailyLog.habit_id).filter(
                DailyLog.user_id == user_id, DailyLog.log_date == d, DailyLog.completed.is_(True)
            )
        }
        return [{"habit": h.to_dict(), "completed_today": h.id in done} for h in habits]

    @staticmethod
    def get_updated_since(db: Session, user_id: str, since: datetime) -> list[Habit]:
        """Includes soft-deleted habits so clients can drop them."""
        return (
            db.query(Habit)
            .filter(Habit.user_id == user_id, Habit.updated_at > since)
            .order_by(Habit.updated_at.asc())
            .all()
        )
