"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from app.models.database import (
    Base,
    create_db_engine,
    create_session_factory,
    get_db,
    get_engine,
    get_session_factory,
    init_db,
)
from app.models.survey import Survey, SurveyOption
from app.models.response import Response
from app.models.response_event import ResponseEvent
from app.models.bot_score import BotScore
from app.models.follow_up import FollowUpResponse

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "get_db",
    "get_engine",
    "get_session_factory",
    "init_db",
    "Survey",
    "SurveyOption",
    "Response",
    "ResponseEvent",
    "BotScore",
    "FollowUpResponse",
]
