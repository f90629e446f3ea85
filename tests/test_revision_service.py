"""Tests for the revision habit state machine"""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from exceptions import InvalidStateError, NotFoundError, PersistenceError
from models.habit import Habit
from models.revision_habit import RevisionHabit
from services.revision_service import RevisionService


@pytest.fixture
def make_revision(db, user):
    def _make(skill="Asyncio", status="pending", owner=None):
        r = RevisionHabit(
            user_id=(owner or user).id,
            original_skill=skill,
            source_month=date(2024, 3, 1),
            status=status,
        )
        db.add(r)
        db.commit()
        db.refresh(r)
        return r
    return _make


def test_accept_creates_learning_habit(db, user, make_revision):
    revision = make_revision("Asyncio")
    result = RevisionService.accept(db, user.id, revision.id)

    habit = result["habit"]
    assert result["revision"].status == "accepted"
    assert habit.title == "Revise: Asyncio"
    assert habit.description == "Revision habit from March 2024"
    assert habit.category == "learning"
    assert habit.frequency == "daily"
    assert habit.is_active is True
    assert habit.is_learning_habit is True
    assert habit.streak is not None
    assert db.query(Habit).filter_by(user_id=user.id).count() == 1


def test_decline_has_no_side_effects(db, user, make_revision):
    revision = make_revision()
    assert RevisionService.decline(db, user.id, revision.id).status == "declined"
    assert db.query(Habit).count() == 0


@pytest.mark.parametrize("status", ["accepted", "declined", "completed"])
def test_non_pending_rejects_accept_and_decline(db, user, make_revision, status):
    revision = make_revision(status=status)
    with pytest.raises(InvalidStateError):
        RevisionService.accept(db, user.id, revision.id)
    with pytest.raises(InvalidStateError):
        RevisionService.decline(db, user.id, revision.id)
    assert db.query(Habit).count() == 0


def test_complete_only_after_accept(db, user, make_revision):
    revision = make_revision()
    with pytest.raises(InvalidStateError):
        RevisionService.complete(db, user.id, revision.id)

    RevisionService.accept(db, user.id, revision.id)
    assert RevisionService.complete(db, user.id, revision.id).status == "completed"


def test_pending_filter(db, user, make_revision):
    make_revision("A")
    make_revision("B", status="declined")
    assert [r.original_skill for r in RevisionService.get_all(db, user.id, pending_only=True)] == ["A"]
    assert len(RevisionService.get_all(db, user.id)) == 2


def test_other_users_revision_not_found(db, user, other_user, make_revision):
    revision = make_revision(owner=other_user)
    with pytest.raises(NotFoundError):
        RevisionService.accept(db, user.id, revision.id)


def test_failed_accept_leaves_nothing_behind(db, user, make_revision, monkeypatch):
    revision = make_revision()

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk full"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(PersistenceError):
        RevisionService.accept(db, user.id, revision.id)
    monkeypatch.undo()

    assert db.query(Habit).count() == 0
    assert RevisionService.get(db, user.id, revision.id).status == "pending"
