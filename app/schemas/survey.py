"""Pydantic schemas for survey definitions.

Survey definitions describe a single question and the answer options that
become one-click response links. They are loaded from YAML catalog files and
returned by the storage layer.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SurveyType(str, Enum):
    """Valid survey types."""
    RATING = "rating"
    EMOJI = "emoji"
    BINARY = "binary"
    MULTIPLE_CHOICE = "multiple_choice"


def _check_identifier(v: str) -> str:
    if not v.replace("_", "").replace("-", "").isalnum():
        raise ValueError("Identifiers must be alphanumeric with underscores/hyphens")
    return v


class SurveyOptionDefinition(BaseModel):
    """A single answer option.

    Attributes:
        id: Option identifier embedded in response tokens
        label: Text shown on the button and the confirmation page
        value: Value used for analytics (e.g. "5" for a 5-star rating)
        emoji: Optional emoji shown with the label
        color: Optional button color
    """
    id: str = Field(..., min_length=1, max_length=100, description="Option identifier")
    label: str = Field(..., min_length=1, max_length=255, description="Display label")
    value: str = Field(..., min_length=1, max_length=255, description="Analytics value")
    emoji: Optional[str] = Field(None, max_length=16, description="Optional emoji")
    color: Optional[str] = Field(None, max_length=20, description="Optional button color")

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v):
        """YAML ratings are usually written as bare numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("id")
    @classmethod
    def id_alphanumeric(cls, v: str) -> str:
        return _check_identifier(v)


class FollowUpQuestion(BaseModel):
    enabled: bool = False
    question: str = ""
    placeholder: Optional[str] = None


class SurveySettings(BaseModel):
    """Thank-you page settings.

    Attributes:
        thank_you_message: Message shown after responding
        redirect_url: Optional page to send respondents to afterwards
        follow_up_question: Optional free-text question on the thank-you page
    """
    thank_you_message: Optional[str] = Field(None, description="Thank-you page message")
    redirect_url: Optional[str] = Field(None, description="Post-response redirect")
    follow_up_question: Optional[FollowUpQuestion] = Field(None, description="Follow-up prompt")


class SurveyDefinition(BaseModel):
    """Complete survey definition.

    Root schema for survey YAML files.
    """
    id: str = Field(..., min_length=1, max_length=100, description="Survey identifier")
    title: str = Field(..., min_length=1, max_length=500, description="Survey title")
    description: Optional[str] = Field(None, description="Survey description")
    type: SurveyType = Field(..., description="Survey type")
    options: list[SurveyOptionDefinition] = Field(..., min_length=2)
    settings: SurveySettings = Field(default_factory=SurveySettings)

    @field_validator("id")
    @classmethod
    def id_alphanumeric(cls, v: str) -> str:
        return _check_identifier(v)

    @model_validator(mode="after")
    def validate_options(self):
        """Validate option ids are unique and binary surveys have two options."""
        option_ids = [option.id for option in self.options]
        if len(option_ids) != len(set(option_ids)):
            duplicates = sorted({oid for oid in option_ids if option_ids.count(oid) > 1})
            raise ValueError(f"Duplicate option IDs found: {duplicates}")

        if self.type == SurveyType.BINARY and len(self.options) != 2:
            raise ValueError("Binary surveys must have exactly 2 options")

        return self

    def get_option(self, option_id: str) -> Optional[SurveyOptionDefinition]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None
