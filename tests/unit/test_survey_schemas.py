"""Unit tests for survey Pydantic schemas.

Tests validation logic for all survey schema components.
"""

import pytest
from pydantic import ValidationError

from app.schemas.survey import (
    FollowUpQuestion,
    SurveyDefinition,
    SurveyOptionDefinition,
    SurveySettings,
    SurveyType,
)


def make_options(count: int) -> list[dict]:
    return [{"id": f"opt{i}", "label": f"Option {i}", "value": str(i)} for i in range(count)]


class TestSurveyOptionDefinition:
    """Tests for SurveyOptionDefinition schema."""

    def test_valid_option(self):
        """Test creating valid option."""
        option = SurveyOptionDefinition(id="love", label="Love it", value="4", emoji="🥰")
        assert option.id == "love"
        assert option.emoji == "🥰"
        assert option.color is None

    def test_numeric_value_coerced(self):
        """Test that numeric values from YAML become strings."""
        assert SurveyOptionDefinition(id="five", label="Five", value=5).value == "5"
        assert SurveyOptionDefinition(id="half", label="Half", value=0.5).value == "0.5"

    def test_empty_label_invalid(self):
        """Test that empty label is invalid."""
        with pytest.raises(ValidationError):
            SurveyOptionDefinition(id="a", label="", value="1")

    @pytest.mark.parametrize("option_id", ["has space", "dot.ted", "q?", ""])
    def test_invalid_ids(self, option_id):
        """Test that ids must be URL-friendly identifiers."""
        with pytest.raises(ValidationError):
            SurveyOptionDefinition(id=option_id, label="Label", value="1")

    @pytest.mark.parametrize("option_id", ["optA", "thumbs_up", "five-star", "1"])
    def test_valid_ids(self, option_id):
        assert SurveyOptionDefinition(id=option_id, label="Label", value="1").id == option_id


class TestSurveySettings:
    """Tests for SurveySettings schema."""

    def test_default_settings(self):
        """Test that every setting is optional."""
        settings = SurveySettings()
        assert settings.thank_you_message is None
        assert settings.redirect_url is None
        assert settings.follow_up_question is None

    def test_follow_up_question(self):
        settings = SurveySettings(follow_up_question={"enabled": True, "question": "Why?"})

        assert isinstance(settings.follow_up_question, FollowUpQuestion)
        assert settings.follow_up_question.enabled is True
        assert settings.follow_up_question.placeholder is None


class TestSurveyDefinition:
    """Tests for complete SurveyDefinition schema."""

    def test_valid_survey(self):
        """Test creating valid survey."""
        survey = SurveyDefinition(
            id="nps_q3",
            title="How likely are you to recommend us?",
            type="rating",
            options=make_options(5),
        )

        assert survey.type == SurveyType.RATING
        assert len(survey.options) == 5
        assert isinstance(survey.settings, SurveySettings)

    def test_single_option_invalid(self):
        """Test that a survey needs at least two options."""
        with pytest.raises(ValidationError):
            SurveyDefinition(id="s", title="T", type="emoji", options=make_options(1))

    def test_duplicate_option_ids_invalid(self):
        """Test that duplicate option IDs are rejected."""
        options = make_options(2) + [{"id": "opt0", "label": "Again", "value": "9"}]

        with pytest.raises(ValidationError, match="Duplicate option IDs"):
            SurveyDefinition(id="s", title="T", type="multiple_choice", options=options)

    def test_binary_requires_two_options(self):
        with pytest.raises(ValidationError, match="exactly 2"):
            SurveyDefinition(id="s", title="T", type="binary", options=make_options(3))

    def test_binary_with_two_options(self):
        survey = SurveyDefinition(id="s", title="T", type="binary", options=make_options(2))
        assert survey.type == SurveyType.BINARY

    def test_unknown_type_invalid(self):
        with pytest.raises(ValidationError):
            SurveyDefinition(id="s", title="T", type="slider", options=make_options(2))

    def test_invalid_survey_id(self):
        with pytest.raises(ValidationError):
            SurveyDefinition(id="not valid", title="T", type="emoji", options=make_options(2))

    def test_get_option(self, sample_survey):
        assert sample_survey.get_option("optB").label == "Okay"
        assert sample_survey.get_option("missing") is None
