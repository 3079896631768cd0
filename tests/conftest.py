"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

PROJECT_ROOT = Path(__file__).resolve().parent.parent

TEST_SECRET = "test_hmac_secret_for_testing_only"
TEST_API_KEY = "test_admin_api_key"

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("HMAC_SECRET", TEST_SECRET)
os.environ.setdefault("ADMIN_API_KEY", TEST_API_KEY)
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SURVEYS_DIR", str(PROJECT_ROOT / "surveys"))

from app.models.database import Base  # noqa: E402
import app.models  # noqa: E402,F401  (registers all tables)
from app.schemas.survey import SurveyDefinition  # noqa: E402
from app.services.response_store import InMemoryResponseStore, SqlResponseStore  # noqa: E402
from app.services.risk_scorer import RiskPenalties, RiskScorer  # noqa: E402
from app.services.token_codec import TokenCodec  # noqa: E402


class FrozenClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def enable_sqlite_foreign_keys(engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        Uses SQLite in-memory database for fast, isolated tests.
        Database is created fresh for each test function.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,  # Set to True for SQL debugging
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def codec(clock) -> TokenCodec:
    return TokenCodec(
        key_provider=lambda: TEST_SECRET,
        default_expiration_days=14,
        clock=clock,
    )


@pytest.fixture
def scorer() -> RiskScorer:
    return RiskScorer(RiskPenalties())


@pytest.fixture
def sample_survey() -> SurveyDefinition:
    """Provide an emoji survey with three options."""
    return SurveyDefinition(
        id="s1",
        title="How was your order?",
        type="emoji",
        options=[
            {"id": "optA", "label": "Great", "value": "3", "emoji": "😃"},
            {"id": "optB", "label": "Okay", "value": "2", "emoji": "🙂"},
            {"id": "optC", "label": "Bad", "value": "1"},
        ],
        settings={
            "thank_you_message": "Thanks for the feedback!",
            "follow_up_question": {"enabled": True, "question": "Anything else?"},
        },
    )


@pytest.fixture
def memory_store(sample_survey) -> InMemoryResponseStore:
    store = InMemoryResponseStore()
    store.upsert_survey(sample_survey)
    return store


@pytest.fixture
def sql_store(session_factory, sample_survey) -> SqlResponseStore:
    store = SqlResponseStore(session_factory)
    store.upsert_survey(sample_survey)
    return store


@pytest.fixture
def sample_recipient_id() -> str:
    """16 hex chars, the shape of a hashed recipient id."""
    return "a1b2c3d4e5f60718"
