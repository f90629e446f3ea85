"""
notification_service.py — In-app notifications
Fire-and-forget delivery of in-app events.
Notifications are persisted for UI consumption; delivery failures are logged,
never raised to the triggering operation.
"""

import json
import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import NotFoundError, PersistenceError
from models.habit import Habit
from models.notification import Notification
from models.user import User
from services.streak_service import StreakService

logger = logging.getLogger(__name__)

LEVEL_UP = "level_up"
STREAK_ALERT = "streak_alert"
REPORT_READY = "report_ready"
REVISION_REMINDER = "revision_reminder"


class NotificationService:
    @staticmethod
    def send(db: Session, user_id: str, type: str, title: str, body: str,
             data: dict | None = None) -> Notification | None:
        try:
            user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
            if user is None or not user.notification_enabled:
                return None
            n = Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=body,
                data=json.dumps({k: str(v) for k, v in (data or {}).items()}),
            )
            db.add(n)
            db.commit()
            return n
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Failed to deliver {type} notification to user {user_id}: {e}")
            return None

    @staticmethod
    def notify_level_up(db: Session, user_id: str, new_level: int) -> None:
        NotificationService.send(
            db, user_id, LEVEL_UP,
            "Level up!",
            f"You reached level {new_level}. Keep it going!",
            {"level": new_level},
        )

    @staticmethod
    def notify_report_ready(db: Session, user_id: str, month_label: str, report_id: str) -> None:
        NotificationService.send(
            db, user_id, REPORT_READY,
            "Your monthly report is ready",
            f"See how your habits went in {month_label}.",
            {"report_id": report_id, "month": month_label},
        )

    @staticmethod
    def send_streak_alerts(db: Session, user_id: str, today: date) -> list[Notification]:
        """Warn about streaks that break unless the habit is completed today."""
        sent = []
        for streak in StreakService.get_at_risk(db, user_id, today):
            habit = db.query(Habit).filter_by(id=streak.habit_id).first()
            n = NotificationService.send(
                db, user_id, STREAK_ALERT,
                "Streak at risk!",
                f"Your {streak.current_streak}-day streak for '{habit.title}' ends today unless you complete it.",
                {"habit_id": streak.habit_id, "streak": streak.current_streak},
            )
            if n is not None:
                sent.append(n)
        return sent

    @staticmethod
    def get_all(db: Session, user_id: str, unread_only: bool = False) -> list[Notification]:
        query = db.query(Notification).filter_by(user_id=user_id)
        if unread_only:
            query = query.filter_by(is_read=False)
        return query.order_by(Notification.created_at.desc()).all()

    @staticmethod
    def mark_read(db: Session, user_id: str, notification_id: str) -> None:
        n = db.query(Notification).filter_by(id=notification_id, user_id=user_id).first()
        if n is None:
            raise NotFoundError("Notification", notification_id)
        try:
            n.is_read = True
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("mark_notification_read", e) from e
