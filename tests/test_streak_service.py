"""Tests for streak tracking"""
from datetime import date, datetime

import pytest

from exceptions import NotFoundError
from services.streak_service import (
    StreakService, StreakState, next_streak_state, is_milestone,
)


class TestNextStreakState:
    def test_first_completion_starts_at_one(self):
        state = next_streak_state(StreakState(), date(2024, 1, 1))
        assert state == StreakState(1, 1, date(2024, 1, 1))

    def test_same_day_is_a_no_op(self):
        state = StreakState(3, 5, date(2024, 1, 10))
        assert next_streak_state(state, date(2024, 1, 10)) is state

    def test_consecutive_day_increments(self):
        state = next_streak_state(StreakState(1, 1, date(2024, 1, 1)), date(2024, 1, 2))
        assert state.current_streak == 2
        assert state.longest_streak == 2

    def test_gap_resets_to_one(self):
        state = next_streak_state(StreakState(2, 2, date(2024, 1, 1)), date(2024, 1, 4))
        assert state.current_streak == 1
        assert state.longest_streak == 2
        assert state.last_completed_date == date(2024, 1, 4)

    def test_backdated_completion_resets_and_moves_date_back(self):
        state = next_streak_state(StreakState(4, 4, date(2024, 1, 10)), date(2024, 1, 5))
        assert state.current_streak == 1
        assert state.longest_streak == 4
        assert state.last_completed_date == date(2024, 1, 5)

    def test_time_of_day_is_ignored(self):
        state = next_streak_state(StreakState(1, 1, date(2024, 1, 1)), datetime(2024, 1, 2, 23, 59))
        assert state.current_streak == 2
        assert state.last_completed_date == date(2024, 1, 2)

    def test_longest_never_decreases(self):
        state = StreakState()
        longest = []
        for d in [1, 2, 3, 7, 8, 20, 21, 22, 23, 5]:
            state = next_streak_state(state, date(2024, 1, d))
            longest.append(state.longest_streak)
        assert longest == sorted(longest)
        assert longest[-1] == 4


def test_milestones():
    assert is_milestone(7)
    assert is_milestone(30)
    assert not is_milestone(8)


class TestStreakService:
    def test_habit_gets_empty_streak(self, db, user, make_habit):
        habit = make_habit()
        streak = StreakService.get(db, user.id, habit.id)
        assert streak.to_dict() == {
            "habit_id": habit.id,
            "current_streak": 0,
            "longest_streak": 0,
            "last_completed_date": None,
        }

    def test_read_habit_example(self, db, user, make_habit):
        habit = make_habit("Read")
        for d in (date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4)):
            StreakService.update_after_completion(db, habit.id, d)

        streak = StreakService.get(db, user.id, habit.id)
        assert streak.current_streak == 1
        assert streak.longest_streak == 2
        assert streak.to_dict()["last_completed_date"] == "2024-01-04"

    def test_repeat_completion_reports_unchanged(self, db, user, make_habit):
        habit = make_habit()
        StreakService.update_after_completion(db, habit.id, date(2024, 1, 1))
        result = StreakService.update_after_completion(db, habit.id, date(2024, 1, 1))
        assert result["changed"] is False
        assert result["streak"].current_streak == 1

    def test_milestone_reached_on_seventh_day(self, db, make_habit):
        habit = make_habit()
        results = [
            StreakService.update_after_completion(db, habit.id, date(2024, 2, d))
            for d in range(1, 8)
        ]
        assert [r["milestone_reached"] for r in results] == [False] * 6 + [True]

    def test_other_users_streak_not_found(self, db, other_user, make_habit):
        habit = make_habit()
        with pytest.raises(NotFoundError):
            StreakService.get(db, other_user.id, habit.id)

    def test_unknown_habit(self, db):
        with pytest.raises(NotFoundError):
            StreakService.update_after_completion(db, "missing", date(2024, 1, 1))

    def test_at_risk_streaks(self, db, user, make_habit):
        alive = make_habit("Alive")
        done_today = make_habit("Done today")
        StreakService.update_after_completion(db, alive.id, date(2024, 5, 9))
        StreakService.update_after_completion(db, done_today.id, date(2024, 5, 10))

        at_risk = StreakService.get_at_risk(db, user.id, date(2024, 5, 10))
        assert [s.habit_id for s in at_risk] == [alive.id]
