"""
report_service.py — Monthly reports
Aggregates a user's month, asks the ReportWriter for content, persists one
report per (user, month) and proposes revision habits for learned skills.

generate() is idempotent; regenerate() overwrites the existing row in place.
Both go through upsert_report().
"""

import json
import logging
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import func, case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import NotFoundError, PersistenceError
from models.daily_log import DailyLog
from models.habit import Habit
from models.report import Report
from models.revision_habit import RevisionHabit, RevisionStatus
from models.streak import Streak
from services.notification_service import NotificationService
from services.report_writer import (
    HabitCompletionData, ReportContent, ReportGenerationInput, ReportWriter,
)
from utils.dates import month_bounds, parse_month, validate_month

logger = logging.getLogger(__name__)


class ReportMode(str, Enum):
    CREATE_IF_ABSENT = "create_if_absent"
    FORCE_REGENERATE = "force_regenerate"


class ReportService:
    @staticmethod
    def aggregate(db: Session, user_id: str, year: int, month: int) -> ReportGenerationInput:
        """Completion rate, streak and learning notes for every active habit in the month."""
        start, end = month_bounds(year, month)
        habits = (
            db.query(Habit)
            .filter(Habit.user_id == user_id, Habit.is_active.is_(True), Habit.deleted_at.is_(None))
            .order_by(Habit.created_at.asc())
            .all()
        )

        counts = {
            habit_id: (total, int(done or 0))
            for habit_id, total, done in (
                db.query(
                    DailyLog.habit_id,
                    func.count(DailyLog.id),
                    func.sum(case((DailyLog.completed.is_(True), 1), else_=0)),
                )
                .filter(DailyLog.user_id == user_id, DailyLog.log_date >= start, DailyLog.log_date < end)
                .group_by(DailyLog.habit_id)
                .all()
            )
        }
        streaks = {
            s.habit_id: s.current_streak
            for s in db.query(Streak).filter(Streak.user_id == user_id).all()
        }

        rows = []
        for h in habits:
            total, done = counts.get(h.id, (0, 0))
            notes = []
            if h.is_learning_habit:
                notes = [
                    note for (note,) in (
                        db.query(DailyLog.learning_note)
                        .filter(
                            DailyLog.habit_id == h.id,
                            DailyLog.log_date >= start,
                            DailyLog.log_date < end,
                            DailyLog.learning_note.isnot(None),
                            DailyLog.learning_note != "",
                        )
                        .order_by(DailyLog.log_date.asc())
                        .all()
                    )
                ]
            rows.append(HabitCompletionData(
                habit_id=h.id,
                habit_title=h.title,
                category=h.category,
                completion_rate=(done / total * 100) if total else 0.0,
                streak=streaks.get(h.id, 0),
                learning_notes=notes,
            ))

        overall = sum(r.completion_rate for r in rows) / len(rows) if rows else 0.0
        return ReportGenerationInput(
            user_id=user_id,
            month=start.strftime("%Y-%m"),
            habits=rows,
            total_habits=len(rows),
            overall_completion=overall,
        )

    @staticmethod
    def _find(db: Session, user_id: str, report_month: date) -> Report | None:
        return db.query(Report).filter_by(user_id=user_id, report_month=report_month).first()

    @staticmethod
    def _apply(report: Report, data: ReportGenerationInput, content: ReportContent) -> None:
        body = content.model_dump()
        body["overall_completion"] = data.overall_completion
        report.report_content = json.dumps(body)
        report.skills_learned = json.dumps(content.skills_learned)
        report.habits_completed_percentage = json.dumps(
            {h.habit_id: h.completion_rate for h in data.habits}
        )
        report.revision_suggestions = json.dumps(
            [s.model_dump() for s in content.revision_suggestions]
        )
        report.generated_at = datetime.now(timezone.utc)

    @staticmethod
    def _create_revision_habits(db: Session, user_id: str, report_month: date, content: ReportContent) -> int:
        """One pending revision per suggested skill not yet proposed for this month."""
        existing = {
            skill for (skill,) in db.query(RevisionHabit.original_skill).filter_by(
                user_id=user_id, source_month=report_month
            )
        }
        created = 0
        for s in content.revision_suggestions:
            if not s.skill or s.skill in existing:
                continue
            db.add(RevisionHabit(
                user_id=user_id,
                original_skill=s.skill,
                source_month=report_month,
                duration_days=s.suggested_duration_days,
                daily_duration_minutes=s.daily_minutes,
                status=RevisionStatus.PENDING.value,
            ))
            existing.add(s.skill)
            created += 1
        db.commit()
        return created

    @staticmethod
    async def upsert_report(db: Session, user_id: str, year: int, month: int,
                            mode: ReportMode = ReportMode.CREATE_IF_ABSENT,
                            writer: ReportWriter | None = None) -> Report:
        report_month = validate_month(year, month)

        report = ReportService._find(db, user_id, report_month)
        if report is not None and mode == ReportMode.CREATE_IF_ABSENT:
            return report

        data = ReportService.aggregate(db, user_id, year, month)
        content = await (writer or ReportWriter.from_config()).write(data)

        try:
            if report is None:
                report = Report(user_id=user_id, report_month=report_month)
                db.add(report)
            ReportService._apply(report, data, content)
            db.commit()
        except IntegrityError:
            # Another request created this month's report first
            db.rollback()
            report = ReportService._find(db, user_id, report_month)
            if report is None:
                raise PersistenceError("save_report", RuntimeError("report vanished after conflict"))
            if mode == ReportMode.CREATE_IF_ABSENT:
                return report
            try:
                ReportService._apply(report, data, content)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError("save_report", e) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("save_report", e) from e

        db.refresh(report)
        logger.info(f"{'Regenerated' if mode == ReportMode.FORCE_REGENERATE else 'Generated'} "
                    f"report {report.id} for user {user_id} {data.month}")

        try:
            created = ReportService._create_revision_habits(db, user_id, report_month, content)
            if created:
                logger.info(f"Proposed {created} revision habits for user {user_id} {data.month}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create revision habits for user {user_id} {data.month}: {e}")

        NotificationService.notify_report_ready(db, user_id, report_month.strftime("%B %Y"), report.id)
        return report

    @staticmethod
    async def generate(db: Session, user_id: str, year: int, month: int,
                       writer: ReportWriter | None = None) -> Report:
        return await ReportService.upsert_report(db, user_id, year, month, ReportMode.CREATE_IF_ABSENT, writer)

    @staticmethod
    async def regenerate(db: Session, user_id: str, year: int, month: int,
                         writer: ReportWriter | None = None) -> Report:
        return await ReportService.upsert_report(db, user_id, year, month, ReportMode.FORCE_REGENERATE, writer)

    @staticmethod
    def get_report(db: Session, user_id: str, month: str) -> Report:
        report = ReportService._find(db, user_id, parse_month(month))
        if report is None:
            raise NotFoundError("Report", month)
        return report

    @staticmethod
    def list_reports(db: Session, user_id: str) -> list[Report]:
        return (
            db.query(Report)
            .filter_by(user_id=user_id)
            .order_by(Report.report_month.desc())
            .all()
        )
