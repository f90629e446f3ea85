"""Tests for monthly report aggregation, persistence and revision proposals"""
import json

import pytest

from exceptions import NotFoundError, ValidationError
from models.notification import Notification
from models.report import Report
from models.revision_habit import RevisionHabit
from services.habit_service import HabitService
from services.log_service import LogService
from services.report_service import ReportService
from services.report_writer import ReportWriter

AI_REPORT = {
    "summary": "Solid month.",
    "skills_learned": ["Asyncio"],
    "revision_suggestions": [
        {"skill": "Asyncio", "reason": "Reinforce", "suggested_duration_days": 5, "daily_minutes": 15},
        {"skill": "Pytest fixtures", "reason": "Reinforce"},
    ],
}


def _log(db, user, habit, day, **fields):
    return LogService.create_or_update_log(db, user.id, {"habit_id": habit.id, "log_date": day, **fields})


@pytest.fixture
def offline_writer():
    return ReportWriter(None)


class TestAggregate:
    def test_zero_habits(self, db, user):
        data = ReportService.aggregate(db, user.id, 2024, 3)
        assert data.month == "2024-03"
        assert data.total_habits == 0
        assert data.overall_completion == 0

    def test_completion_rates_and_notes(self, db, user, make_habit):
        study = make_habit("Study", is_learning_habit=True)
        run = make_habit("Run")
        idle = make_habit("Idle")
        _log(db, user, study, "2024-03-01", completed=True, learning_note="Asyncio")
        _log(db, user, study, "2024-03-02", completed=False)
        _log(db, user, study, "2024-03-03", completed=True, learning_note="Pytest fixtures")
        _log(db, user, study, "2024-04-01", completed=True, learning_note="Next month")
        _log(db, user, run, "2024-03-05", completed=True, learning_note="Not a learning habit")

        data = ReportService.aggregate(db, user.id, 2024, 3)
        by_title = {h.habit_title: h for h in data.habits}

        assert by_title["Study"].completion_rate == pytest.approx(200 / 3)
        assert by_title["Study"].learning_notes == ["Asyncio", "Pytest fixtures"]
        assert by_title["Run"].completion_rate == 100.0
        assert by_title["Run"].learning_notes == []
        assert by_title["Idle"].completion_rate == 0.0
        assert data.overall_completion == pytest.approx((200 / 3 + 100 + 0) / 3)

    def test_inactive_and_deleted_habits_skipped(self, db, user, make_habit):
        make_habit("Kept")
        make_habit("Paused", is_active=False)
        gone = make_habit("Gone")
        HabitService.delete(db, user.id, gone.id)

        data = ReportService.aggregate(db, user.id, 2024, 3)
        assert [h.habit_title for h in data.habits] == ["Kept"]


class TestGenerate:
    @pytest.mark.asyncio
    async def test_zero_habits_report(self, db, user, offline_writer):
        report = await ReportService.generate(db, user.id, 2024, 3, offline_writer)
        body = report.to_dict()
        assert body["report_month"] == "2024-03"
        assert body["content"]["overall_completion"] == 0
        assert body["skills_learned"] == ["Consistent practice", "Building good habits"]

    @pytest.mark.asyncio
    async def test_generate_is_idempotent(self, db, user, stub_provider):
        provider = stub_provider(text=json.dumps(AI_REPORT))
        first = await ReportService.generate(db, user.id, 2024, 3, ReportWriter(provider))
        second = await ReportService.generate(db, user.id, 2024, 3, ReportWriter(provider))

        assert first.id == second.id
        assert len(provider.calls) == 1
        assert db.query(Report).count() == 1

    @pytest.mark.asyncio
    async def test_regenerate_overwrites_same_row(self, db, user, make_habit, stub_provider, offline_writer):
        first = await ReportService.generate(db, user.id, 2024, 3, offline_writer)
        generated_at = first.generated_at

        provider = stub_provider(text=json.dumps(AI_REPORT))
        second = await ReportService.regenerate(db, user.id, 2024, 3, ReportWriter(provider))

        assert second.id == first.id
        assert db.query(Report).count() == 1
        assert second.to_dict()["content"]["summary"] == "Solid month."
        assert second.generated_at >= generated_at

    @pytest.mark.asyncio
    async def test_regenerate_without_existing_report_creates_it(self, db, user, offline_writer):
        report = await ReportService.regenerate(db, user.id, 2024, 3, offline_writer)
        assert ReportService.get_report(db, user.id, "2024-03").id == report.id

    @pytest.mark.asyncio
    async def test_revision_habits_proposed_once(self, db, user, stub_provider):
        writer = ReportWriter(stub_provider(text=json.dumps(AI_REPORT)))
        await ReportService.generate(db, user.id, 2024, 3, writer)
        await ReportService.regenerate(db, user.id, 2024, 3, writer)

        revisions = db.query(RevisionHabit).filter_by(user_id=user.id).order_by(RevisionHabit.original_skill).all()
        assert [(r.original_skill, r.status) for r in revisions] == [
            ("Asyncio", "pending"),
            ("Pytest fixtures", "pending"),
        ]
        assert revisions[0].duration_days == 5
        assert revisions[0].daily_duration_minutes == 15
        assert revisions[1].duration_days == 7
        assert revisions[1].to_dict()["source_month"] == "2024-03"

    @pytest.mark.asyncio
    async def test_report_ready_notification(self, db, user, offline_writer):
        report = await ReportService.generate(db, user.id, 2024, 3, offline_writer)
        n = db.query(Notification).filter_by(user_id=user.id, type="report_ready").one()
        assert json.loads(n.data)["report_id"] == report.id
        assert "March 2024" in n.message

    @pytest.mark.asyncio
    async def test_out_of_range_month(self, db, user, offline_writer):
        with pytest.raises(ValidationError):
            await ReportService.generate(db, user.id, 2024, 13, offline_writer)
        with pytest.raises(ValidationError):
            await ReportService.generate(db, user.id, 1999, 1, offline_writer)


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_newest_first(self, db, user, offline_writer):
        for month in (1, 3, 2):
            await ReportService.generate(db, user.id, 2024, month, offline_writer)
        assert [r.to_dict()["report_month"] for r in ReportService.list_reports(db, user.id)] == [
            "2024-03", "2024-02", "2024-01",
        ]

    def test_missing_report(self, db, user):
        with pytest.raises(NotFoundError):
            ReportService.get_report(db, user.id, "2024-03")

    def test_malformed_month(self, db, user):
        with pytest.raises(ValidationError):
            ReportService.get_report(db, user.id, "March 2024")

    @pytest.mark.asyncio
    async def test_reports_are_per_user(self, db, user, other_user, offline_writer):
        await ReportService.generate(db, user.id, 2024, 3, offline_writer)
        with pytest.raises(NotFoundError):
            ReportService.get_report(db, other_user.id, "2024-03")
