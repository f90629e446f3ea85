import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class HabitCategory(str, Enum):
    LEARNING = "learning"
    HEALTH = "health"
    PRODUCTIVITY = "productivity"
    PERSONAL = "personal"


class HabitFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class Habit(Base):
    __tablename__ = "habits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), default=HabitCategory.PERSONAL.value)
    frequency = Column(String(20), default=HabitFrequency.DAILY.value)
    is_active = Column(Boolean, default=True)
    is_learning_habit = Column(Boolean, default=False)
    color = Column(String(7), default="#4CAF50")
    icon = Column(String(50), default="check")
    reminder_time = Column(String(5), nullable=True)  # e.g., "08:00"
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc), index=True)
    deleted_at = Column(DateTime, nullable=True)  # tombstone, rows are never removed by the API

    streak = relationship("Streak", uselist=False, back_populates="habit", cascade="all, delete-orphan")
    logs = relationship("DailyLog", back_populates="habit", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "frequency": self.frequency,
            "is_active": self.is_active,
            "is_learning_habit": self.is_learning_habit,
            "color": self.color,
            "icon": self.icon,
            "reminder_time": self.reminder_time,
            "current_streak": self.streak.current_streak if self.streak else 0,
            "longest_streak": self.streak.longest_streak if self.streak else 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
