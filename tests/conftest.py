"""Global test fixtures: in-memory database, users, habits and a stub AI provider"""
import os

# Must be set before config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base
from models.user import User
from providers.base import BaseProvider
from services.habit_service import HabitService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared across connections"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


# ============================================================================
# User & Habit Fixtures
# ============================================================================

@pytest.fixture
def user(db):
    u = User(username="tester", hashed_password="not-a-real-hash", timezone="UTC")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def other_user(db):
    u = User(username="someone-else", hashed_password="not-a-real-hash")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def make_habit(db, user):
    """Factory creating habits for the default test user"""
    def _make(title="Read", **fields):
        return HabitService.create(db, user.id, {"title": title, **fields})
    return _make


# ============================================================================
# AI Provider Fixtures
# ============================================================================

class StubProvider(BaseProvider):
    """Returns a canned reply (or raises) instead of calling an AI service"""

    def __init__(self, text=None, status="success", error=None, raises=None):
        self.text = text
        self.status = status
        self.error = error
        self.raises = raises
        self.calls = []

    @property
    def name(self) -> str:
        return "stub"

    async def chat(self, messages, model=None):
        self.calls.append(messages)
        if self.raises is not None:
            raise self.raises
        return {
            "text": self.text,
            "provider": self.name,
            "model": model or "stub-model",
            "status": self.status,
            "error": self.error,
        }


@pytest.fixture
def stub_provider():
    return StubProvider
