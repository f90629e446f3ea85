"""
gamification_service.py — XP & Levels
Awards XP into an append-only ledger and keeps the user's cached level in sync.

Leveling curve: level = floor(sqrt(xp / 100)) + 1
    level 1:    0 XP
    level 2:  100 XP
    level 3:  400 XP
    level 4:  900 XP
"""

import logging
import math

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import NotFoundError, PersistenceError, ValidationError
from models.user import User
from models.xp_log import XPLog, XPAction

logger = logging.getLogger(__name__)

HABIT_COMPLETION_XP = 10
STREAK_BONUS_XP = 50
LEARNING_NOTE_XP = 15


def calculate_level(xp: int) -> int:
    if xp <= 0:
        return 1
    return int(math.floor(math.sqrt(xp / 100))) + 1


def xp_for_next_level(level: int) -> int:
    """Total XP at which ``level`` is left behind, i.e. the floor of ``level + 1``."""
    return level * level * 100


def level_progress(xp: int, level: int) -> float:
    floor = xp_for_next_level(level - 1) if level > 1 else 0
    ceiling = xp_for_next_level(level)
    if ceiling <= floor:
        return 0.0
    return round(min(1.0, max(0.0, (xp - floor) / (ceiling - floor))), 4)


class GamificationService:
    @staticmethod
    def award_xp(db: Session, user_id: str, action: XPAction | str, amount: int,
                 reference_id: str | None = None) -> dict:
        """Add ``amount`` XP, recompute the level and append one ledger entry.

        The ledger row and the user update are committed together.

        Returns:
            {'xp_awarded', 'new_total_xp', 'old_level', 'new_level', 'leveled_up'}
        """
        if amount < 0:
            raise ValidationError("XP amount cannot be negative", field="amount", value=amount)
        action = XPAction(action).value

        try:
            user = (
                db.query(User)
                .filter(User.id == user_id, User.deleted_at.is_(None))
                .with_for_update()
                .first()
            )
            if user is None:
                raise NotFoundError("User", user_id)

            old_level = user.level or 1
            user.xp = (user.xp or 0) + amount
            # The cached level never moves down
            new_level = max(old_level, calculate_level(user.xp))
            user.level = new_level

            db.add(XPLog(user_id=user_id, action=action, amount=amount, reference_id=reference_id))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("award_xp", e) from e

        leveled_up = new_level > old_level
        logger.info(f"Awarded {amount} XP to user {user_id} for {action}. Total: {user.xp} XP, Level: {new_level}")
        if leveled_up:
            logger.info(f"User {user_id} leveled up from {old_level} to {new_level}!")

        return {
            "xp_awarded": amount,
            "new_total_xp": user.xp,
            "old_level": old_level,
            "new_level": new_level,
            "leveled_up": leveled_up,
        }

    @staticmethod
    def award_habit_completion_xp(db: Session, user_id: str, habit_id: str, is_streak_bonus: bool = False) -> dict:
        if is_streak_bonus:
            return GamificationService.award_xp(
                db, user_id, XPAction.STREAK_BONUS, HABIT_COMPLETION_XP + STREAK_BONUS_XP, habit_id
            )
        return GamificationService.award_xp(db, user_id, XPAction.HABIT_COMPLETE, HABIT_COMPLETION_XP, habit_id)

    @staticmethod
    def award_learning_note_xp(db: Session, user_id: str, log_id: str) -> dict:
        return GamificationService.award_xp(db, user_id, XPAction.LEARNING_NOTE, LEARNING_NOTE_XP, log_id)

    @staticmethod
    def get_stats(db: Session, user_id: str, recent: int = 10) -> dict:
        user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        if user is None:
            raise NotFoundError("User", user_id)
        logs = (
            db.query(XPLog)
            .filter_by(user_id=user_id)
            .order_by(XPLog.created_at.desc())
            .limit(recent)
            .all()
        )
        return {
            "xp": user.xp,
            "level": user.level,
            "next_level_xp": xp_for_next_level(user.level),
            "progress": level_progress(user.xp, user.level),
            "recent_xp_logs": [l.to_dict() for l in logs],
        }
