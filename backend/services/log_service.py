"""
log_service.py — Daily logs
Single upsert path for (habit, date) logs, used by the HTTP layer and by
offline sync. A false -> true completion advances the streak and awards XP;
the first learning note on a log awards note XP.
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import HabitTrackerError, PersistenceError, ValidationError
from models.daily_log import DailyLog
from models.user import User
from schemas import DailyLogUpsert, parse_payload
from services.gamification_service import GamificationService
from services.habit_service import HabitService
from services.notification_service import NotificationService
from services.streak_service import StreakService
from utils.dates import month_bounds, parse_date, today_for

logger = logging.getLogger(__name__)


class LogService:
    @staticmethod
    def _upsert(db: Session, user_id: str, req: DailyLogUpsert,
                log_id: str | None = None) -> tuple[DailyLog, bool, bool]:
        """Write the log row. Returns (log, was_completed_before, had_note_before)."""
        log = (
            db.query(DailyLog)
            .filter_by(habit_id=req.habit_id, log_date=req.log_date)
            .with_for_update()
            .first()
        )
        was_completed = bool(log and log.completed)
        had_note = bool(log and log.learning_note)

        if log is None:
            log = DailyLog(habit_id=req.habit_id, user_id=user_id, log_date=req.log_date)
            if log_id:
                log.id = log_id
            db.add(log)

        log.completed = req.completed
        # An omitted note leaves the stored one alone, an explicit null clears it
        if "learning_note" in req.model_fields_set:
            log.learning_note = req.learning_note
        if req.completed and not was_completed:
            log.completed_at = datetime.now(timezone.utc)

        db.commit()
        db.refresh(log)
        return log, was_completed, had_note

    @staticmethod
    def create_or_update_log(db: Session, user_id: str, data: DailyLogUpsert | dict,
                             log_id: str | None = None) -> DailyLog:
        """Upsert the log for (habit, date). ``log_id`` only applies when the row is new."""
        if isinstance(data, dict):
            data = parse_payload(DailyLogUpsert, data)
        HabitService.get(db, user_id, data.habit_id)

        try:
            log, was_completed, had_note = LogService._upsert(db, user_id, data, log_id)
        except IntegrityError:
            # Lost an insert race on (habit_id, log_date); the row exists now
            db.rollback()
            try:
                log, was_completed, had_note = LogService._upsert(db, user_id, data, log_id)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError("upsert_daily_log", e) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("upsert_daily_log", e) from e

        awards = []
        if data.completed and not was_completed:
            try:
                result = StreakService.update_after_completion(db, data.habit_id, data.log_date)
                awards.append(GamificationService.award_habit_completion_xp(
                    db, user_id, data.habit_id, is_streak_bonus=result["milestone_reached"]
                ))
            except HabitTrackerError as e:
                logger.error(f"Failed to update streak/XP for habit {data.habit_id}: {e.message}")

        if log.learning_note and not had_note:
            try:
                awards.append(GamificationService.award_learning_note_xp(db, user_id, log.id))
            except HabitTrackerError as e:
                logger.error(f"Failed to award learning note XP to user {user_id}: {e.message}")

        leveled = [a for a in awards if a["leveled_up"]]
        if leveled:
            NotificationService.notify_level_up(db, user_id, leveled[-1]["new_level"])

        db.refresh(log)
        return log

    @staticmethod
    def _user_today(db: Session, user_id: str) -> date:
        user = db.query(User).filter_by(id=user_id).first()
        return today_for(user.timezone if user else None)

    @staticmethod
    def quick_complete(db: Session, user_id: str, habit_id: str) -> DailyLog:
        """Mark a habit completed for today in the user's timezone."""
        return LogService.create_or_update_log(db, user_id, DailyLogUpsert(
            habit_id=habit_id,
            log_date=LogService._user_today(db, user_id),
            completed=True,
        ))

    @staticmethod
    def add_learning_note(db: Session, user_id: str, habit_id: str, note: str) -> DailyLog:
        if not note or not note.strip():
            raise ValidationError("Learning note cannot be empty", field="note", value=note)
        return LogService.create_or_update_log(db, user_id, DailyLogUpsert(
            habit_id=habit_id,
            log_date=LogService._user_today(db, user_id),
            completed=True,
            learning_note=note.strip(),
        ))

    @staticmethod
    def get_by_date_range(db: Session, user_id: str, start: str | date, end: str | date) -> list[DailyLog]:
        start_date = parse_date(start, "start_date")
        end_date = parse_date(end, "end_date")
        if end_date < start_date:
            raise ValidationError("end_date is before start_date", field="end_date", value=end)
        return (
            db.query(DailyLog)
            .filter(DailyLog.user_id == user_id, DailyLog.log_date >= start_date, DailyLog.log_date <= end_date)
            .order_by(DailyLog.log_date.asc())
            .all()
        )

    @staticmethod
    def get_by_habit(db: Session, user_id: str, habit_id: str, limit: int = 30, offset: int = 0) -> list[DailyLog]:
        HabitService.get(db, user_id, habit_id)
        return (
            db.query(DailyLog)
            .filter_by(habit_id=habit_id)
            .order_by(DailyLog.log_date.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def get_calendar(db: Session, user_id: str, year: int, month: int) -> dict:
        """Per-day completed/total counts for a month."""
        start, end = month_bounds(year, month)
        rows = (
            db.query(
                DailyLog.log_date,
                func.count(DailyLog.id),
                func.sum(case((DailyLog.completed.is_(True), 1), else_=0)),
            )
            .filter(DailyLog.user_id == user_id, DailyLog.log_date >= start, DailyLog.log_date < end)
            .group_by(DailyLog.log_date)
            .order_by(DailyLog.log_date.asc())
            .all()
        )
        return {
            "month": start.strftime("%B"),
            "year": year,
            "days": [
                {"date": d.isoformat(), "total": total, "completed": int(done or 0)}
                for d, total, done in rows
            ],
        }

    @staticmethod
    def get_updated_since(db: Session, user_id: str, since: datetime) -> list[DailyLog]:
        return (
            db.query(DailyLog)
            .filter(DailyLog.user_id == user_id, DailyLog.updated_at > since)
            .order_by(DailyLog.updated_at.asc())
            .all()
        )
