"""Tests for offline sync push and pull"""
from datetime import datetime, timedelta, timezone

from models.daily_log import DailyLog
from models.habit import Habit
from models.user import User
from services.habit_service import HabitService
from services.streak_service import StreakService
from services.sync_service import SyncService


def _item(action, entity_type, entity_id, payload=None):
    return {
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "payload": payload or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class TestPush:
    def test_bad_item_does_not_abort_batch(self, db, user):
        result = SyncService.push_changes(db, user.id, [
            _item("explode", "habit", "bad-1"),
            _item("create", "habit", "client-habit-1", {"title": "Meditate"}),
        ])

        assert result["synced_count"] == 1
        assert result["failed_count"] == 1
        assert result["failed_items"] == ["bad-1"]
        assert "last_synced_at" in result
        assert db.get(Habit, "client-habit-1").title == "Meditate"

    def test_non_object_item_fails_alone(self, db, user):
        result = SyncService.push_changes(db, user.id, [
            "not an item",
            _item("create", "habit", "h1", {"title": "Stretch"}),
        ])
        assert (result["synced_count"], result["failed_count"]) == (1, 1)
        assert result["failed_items"] == []

    def test_payload_user_id_is_ignored(self, db, user, other_user):
        SyncService.push_changes(db, user.id, [
            _item("create", "habit", "h1", {"title": "Stretch", "user_id": other_user.id}),
        ])
        assert db.get(Habit, "h1").user_id == user.id

    def test_replayed_create_updates(self, db, user):
        SyncService.push_changes(db, user.id, [_item("create", "habit", "h1", {"title": "Stretch"})])
        result = SyncService.push_changes(db, user.id, [_item("create", "habit", "h1", {"title": "Stretch more"})])

        assert result["synced_count"] == 1
        assert db.query(Habit).count() == 1
        assert db.get(Habit, "h1").title == "Stretch more"

    def test_habit_update_and_delete(self, db, user, make_habit):
        habit = make_habit("Read")
        result = SyncService.push_changes(db, user.id, [
            _item("update", "habit", habit.id, {"color": "#000000"}),
            _item("delete", "habit", habit.id),
        ])
        assert result["synced_count"] == 2
        db.refresh(habit)
        assert habit.color == "#000000"
        assert habit.deleted_at is not None

    def test_cannot_touch_other_users_habit(self, db, user, other_user, make_habit):
        habit = make_habit("Read")
        result = SyncService.push_changes(db, other_user.id, [
            _item("update", "habit", habit.id, {"title": "Hijacked"}),
            _item("delete", "habit", habit.id),
        ])
        assert result["failed_items"] == [habit.id, habit.id]
        db.refresh(habit)
        assert habit.title == "Read"
        assert habit.deleted_at is None

    def test_log_push_drives_streak_and_xp(self, db, user, make_habit):
        habit = make_habit("Read")
        result = SyncService.push_changes(db, user.id, [
            _item("create", "daily_log", "log-1", {"habit_id": habit.id, "log_date": "2024-01-01", "completed": True}),
            _item("update", "daily_log", "log-2", {"habit_id": habit.id, "log_date": "2024-01-02", "completed": True}),
        ])

        assert result["synced_count"] == 2
        assert db.get(DailyLog, "log-1") is not None
        assert StreakService.get(db, user.id, habit.id).current_streak == 2
        assert db.get(User, user.id).xp == 20

    def test_log_delete_is_a_no_op(self, db, user, make_habit):
        habit = make_habit("Read")
        SyncService.push_changes(db, user.id, [
            _item("create", "daily_log", "log-1", {"habit_id": habit.id, "log_date": "2024-01-01", "completed": True}),
        ])
        result = SyncService.push_changes(db, user.id, [_item("delete", "daily_log", "log-1")])

        assert result["synced_count"] == 1
        assert db.get(DailyLog, "log-1").completed is True

    def test_invalid_log_payload_fails(self, db, user):
        result = SyncService.push_changes(db, user.id, [
            _item("create", "daily_log", "log-1", {"log_date": "2024-01-01"}),
        ])
        assert result["failed_items"] == ["log-1"]


class TestPull:
    def _age(self, db, habit, days):
        old = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days)
        db.query(Habit).filter(Habit.id == habit.id).update({Habit.updated_at: old}, synchronize_session=False)
        db.commit()

    def test_default_window_is_thirty_days(self, db, user, make_habit):
        recent = make_habit("Recent")
        stale = make_habit("Stale")
        self._age(db, stale, 40)

        result = SyncService.pull_changes(db, user.id)
        assert [h["id"] for h in result["habits"]] == [recent.id]

    def test_since_is_exclusive(self, db, user, make_habit):
        habit = make_habit("Read")
        db.refresh(habit)
        result = SyncService.pull_changes(db, user.id, since=habit.updated_at)
        assert result["habits"] == []

    def test_includes_tombstones_and_logs(self, db, user, make_habit):
        habit = make_habit("Read")
        since = datetime.now(timezone.utc) - timedelta(minutes=1)
        SyncService.push_changes(db, user.id, [
            _item("create", "daily_log", "log-1", {"habit_id": habit.id, "log_date": "2024-01-01", "completed": True}),
        ])
        HabitService.delete(db, user.id, habit.id)

        result = SyncService.pull_changes(db, user.id, since=since)
        assert result["habits"][0]["deleted_at"] is not None
        assert [l["id"] for l in result["daily_logs"]] == ["log-1"]

    def test_status(self, db, user):
        status = SyncService.get_status(db, user.id)
        assert status["pending_count"] == 0
        assert status["is_synced"] is True
