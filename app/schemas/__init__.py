"""Pydantic schemas and intake records.

This package contains the survey definition schemas, the response token
payload and the records exchanged with the storage layer.
"""

from app.schemas.survey import (
    SurveyType,
    SurveyOptionDefinition,
    FollowUpQuestion,
    SurveySettings,
    SurveyDefinition,
)
from app.schemas.token import ResponseToken

__all__ = [
    "SurveyType",
    "SurveyOptionDefinition",
    "FollowUpQuestion",
    "SurveySettings",
    "SurveyDefinition",
    "ResponseToken",
]
