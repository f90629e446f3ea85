from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from exceptions import ValidationError
from models.habit import HabitCategory, HabitFrequency


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    display_name: Optional[str] = Field(None, max_length=100)
    timezone: str = "UTC"


class LoginRequest(BaseModel):
    username: str
    password: str


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = None
    notification_enabled: Optional[bool] = None
    morning_reminder_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    evening_reminder_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")


class HabitCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: HabitCategory = HabitCategory.PERSONAL
    frequency: HabitFrequency = HabitFrequency.DAILY
    is_active: bool = True
    is_learning_habit: bool = False
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)
    reminder_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")


class HabitUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[HabitCategory] = None
    frequency: Optional[HabitFrequency] = None
    is_active: Optional[bool] = None
    is_learning_habit: Optional[bool] = None
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)
    reminder_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")


class DailyLogUpsert(BaseModel):
    habit_id: str
    log_date: date
    completed: bool = False
    learning_note: Optional[str] = None

    @field_validator("learning_note")
    @classmethod
    def strip_note(cls, v: Optional[str]) -> Optional[str]:
        # A blank note counts as no note
        if v is None:
            return None
        v = v.strip()
        return v or None


class LearningNoteCreate(BaseModel):
    note: str = Field(..., min_length=1)


class ReportGenerateRequest(BaseModel):
    year: int
    month: int


class SyncPushItem(BaseModel):
    action: str = Field(..., pattern="^(create|update|delete)$")
    entity_type: str = Field(..., pattern="^(habit|daily_log)$")
    entity_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class SyncPushRequest(BaseModel):
    # Items are validated one by one so a malformed item fails alone
    items: list[Any]


def parse_payload(model: type[BaseModel], data: dict) -> BaseModel:
    """Validate a raw dict, raising the domain ValidationError on failure."""
    try:
        return model(**data)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(first.get("msg", str(e)), field=field, value=first.get("input")) from e
