"""
streak_service.py — Incremental streak tracking
Maintains one Streak row per habit, advanced once per completion event
(a daily log whose completed flag moves from false to true).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import NotFoundError, PersistenceError
from models.habit import Habit
from models.streak import Streak

logger = logging.getLogger(__name__)

STREAK_MILESTONES = [7, 14, 21, 30, 60, 90, 100, 365]


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[date] = None


def next_streak_state(state: StreakState, completion_date: date | datetime) -> StreakState:
    """Return the streak state after a completion on ``completion_date``.

    Same-day repeats return ``state`` unchanged. A backdated completion
    (earlier than the last one) is treated as a gap and resets to 1.
    """
    if isinstance(completion_date, datetime):
        completion_date = completion_date.date()

    if state.last_completed_date is None:
        current = 1
    else:
        days_diff = (completion_date - state.last_completed_date).days
        if days_diff == 0:
            return state
        current = state.current_streak + 1 if days_diff == 1 else 1

    return StreakState(
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_completed_date=completion_date,
    )


def is_milestone(streak: int) -> bool:
    return streak in STREAK_MILESTONES


class StreakService:
    @staticmethod
    def create_for_habit(db: Session, habit: Habit) -> Streak:
        """Attach an empty streak row to a new habit. Caller commits."""
        streak = Streak(habit_id=habit.id, user_id=habit.user_id)
        db.add(streak)
        return streak

    @staticmethod
    def _locked(db: Session, habit_id: str) -> Streak | None:
        # FOR UPDATE serializes concurrent completions of the same habit (no-op on SQLite)
        return db.query(Streak).filter_by(habit_id=habit_id).with_for_update().first()

    @staticmethod
    def update_after_completion(db: Session, habit_id: str, completion_date: date) -> dict:
        """Advance the habit's streak for one completion event.

        Returns:
            {'streak': Streak, 'changed': bool, 'milestone_reached': bool}
        """
        try:
            streak = StreakService._locked(db, habit_id)
            if streak is None:
                habit = db.query(Habit).filter_by(id=habit_id).first()
                if habit is None:
                    raise NotFoundError("Habit", habit_id)
                streak = StreakService.create_for_habit(db, habit)
                db.flush()

            before = StreakState(
                current_streak=streak.current_streak or 0,
                longest_streak=streak.longest_streak or 0,
                last_completed_date=streak.last_completed_date,
            )
            after = next_streak_state(before, completion_date)
            if after == before:
                db.commit()
                return {"streak": streak, "changed": False, "milestone_reached": False}

            if before.last_completed_date is not None and after.current_streak == 1:
                logger.info(
                    f"Streak reset for habit {habit_id}: was {before.current_streak}, "
                    f"last {before.last_completed_date}, now {after.last_completed_date}"
                )

            streak.current_streak = after.current_streak
            streak.longest_streak = after.longest_streak
            streak.last_completed_date = after.last_completed_date
            db.commit()
            db.refresh(streak)
            return {
                "streak": streak,
                "changed": True,
                "milestone_reached": is_milestone(streak.current_streak),
            }
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("update_streak", e) from e

    @staticmethod
    def get(db: Session, user_id: str, habit_id: str) -> Streak:
        streak = db.query(Streak).filter_by(habit_id=habit_id, user_id=user_id).first()
        if streak is None:
            raise NotFoundError("Streak", habit_id)
        return streak

    @staticmethod
    def get_user_streaks(db: Session, user_id: str) -> list[Streak]:
        return (
            db.query(Streak)
            .join(Habit, Habit.id == Streak.habit_id)
            .filter(Streak.user_id == user_id, Habit.deleted_at.is_(None))
            .order_by(Streak.current_streak.desc())
            .all()
        )

    @staticmethod
    def get_at_risk(db: Session, user_id: str, today: date) -> list[Streak]:
        """Streaks alive until yesterday that will break if today is missed."""
        yesterday = today - timedelta(days=1)
        return (
            db.query(Streak)
            .join(Habit, Habit.id == Streak.habit_id)
            .filter(
                Streak.user_id == user_id,
                Streak.current_streak > 0,
                Streak.last_completed_date == yesterday,
                Habit.is_active.is_(True),
                Habit.deleted_at.is_(None),
            )
            .all()
        )
