import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from database import Base


class XPAction(str, Enum):
    HABIT_COMPLETE = "habit_complete"
    STREAK_BONUS = "streak_bonus"
    LEARNING_NOTE = "learning_note"
    LEVEL_UP = "level_up"
    REPORT_READ = "report_read"


class XPLog(Base):
    """Append-only XP ledger. Rows are never updated or deleted."""

    __tablename__ = "xp_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(30), nullable=False)
    amount = Column(Integer, nullable=False)
    reference_id = Column(String(36), nullable=True)  # habit_id or log_id
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "amount": self.amount,
            "reference_id": self.reference_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
