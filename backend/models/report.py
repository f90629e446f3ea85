import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, UniqueConstraint
from database import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    report_month = Column(Date, nullable=False)  # first day of the month
    report_content = Column(Text, nullable=False)  # JSON: summary, improvements, skills, ...
    skills_learned = Column(Text, nullable=True)  # JSON array
    habits_completed_percentage = Column(Text, nullable=True)  # JSON {habit_id: pct}
    revision_suggestions = Column(Text, nullable=True)  # JSON array
    generated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "report_month", name="uq_report_user_month"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "report_month": self.report_month.strftime("%Y-%m"),
            "content": json.loads(self.report_content),
            "skills_learned": json.loads(self.skills_learned or "[]"),
            "habits_completed_percentage": json.loads(self.habits_completed_percentage or "{}"),
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }
