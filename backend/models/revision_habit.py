import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from database import Base


class RevisionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


class RevisionHabit(Base):
    __tablename__ = "revision_habits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    original_skill = Column(String(255), nullable=False)
    source_month = Column(Date, nullable=False)
    duration_days = Column(Integer, default=7)
    daily_duration_minutes = Column(Integer, default=30)
    status = Column(String(20), nullable=False, default=RevisionStatus.PENDING.value)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_skill": self.original_skill,
            "source_month": self.source_month.strftime("%Y-%m"),
            "duration_days": self.duration_days,
            "daily_duration_minutes": self.daily_duration_minutes,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
