"""Pydantic request/response bodies for the HTTP API."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.survey import SurveySettings


class LinkIssueRequest(BaseModel):
    """Body of POST /api/surveys/{survey_id}/links.

    Attributes:
        email: Recipient email; omit to issue links for an anonymous recipient
        expiration_days: Token lifetime, defaults to TOKEN_EXPIRATION_DAYS
    """
    email: Optional[EmailStr] = Field(None, description="Recipient email")
    expiration_days: Optional[int] = Field(None, ge=1, le=365, description="Token lifetime in days")


class ResponseLinkOut(BaseModel):
    option_id: str
    label: str
    emoji: Optional[str] = None
    url: str


class IssuedLinksOut(BaseModel):
    survey_id: str
    recipient_id: str
    links: list[ResponseLinkOut]


class PublicSurveyOut(BaseModel):
    """Public survey data for the thank-you page."""
    id: str
    title: str
    settings: SurveySettings


class FollowUpRequest(BaseModel):
    """Body of POST /api/follow-up-responses (camelCase, as sent by the page)."""
    survey_id: str = Field("", alias="surveyId")
    response: str = ""
    original_response: Optional[str] = Field(None, alias="originalResponse")

    model_config = {"populate_by_name": True}


class FollowUpCreated(BaseModel):
    success: bool = True
    id: str
