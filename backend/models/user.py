import uuid
from datetime import datetime, timezone as tz

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=True)
    xp = Column(Integer, nullable=False, default=0)  # only ever incremented
    level = Column(Integer, nullable=False, default=1)  # cached, derived from xp
    timezone = Column(String(50), default="UTC")
    notification_enabled = Column(Boolean, default=True)
    morning_reminder_time = Column(String(5), default="08:00")
    evening_reminder_time = Column(String(5), default="21:00")
    created_at = Column(DateTime, default=lambda: datetime.now(tz.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(tz.utc),
                        onupdate=lambda: datetime.now(tz.utc))
    deleted_at = Column(DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "xp": self.xp,
            "level": self.level,
            "timezone": self.timezone,
            "notification_enabled": self.notification_enabled,
            "morning_reminder_time": self.morning_reminder_time,
            "evening_reminder_time": self.evening_reminder_time,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
