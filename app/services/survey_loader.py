"""Survey catalog loader with caching and validation.

This module loads survey definitions from YAML files, validates them against
Pydantic schemas, caches the results, and syncs them into the response
store so response links can be issued and confirmations personalized.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from app.config import get_settings
from app.logging_config import get_logger
from app.schemas.survey import SurveyDefinition

logger = get_logger(__name__)


class SurveyNotFoundError(Exception):
    """Raised when a survey file is not found."""
    pass


class SurveyValidationError(Exception):
    """Raised when a survey fails validation."""
    pass


class SurveyLoader:
    """Service for loading and caching survey definitions.

    Surveys are loaded from ``<surveys_dir>/<survey_id>.yaml`` and validated
    against Pydantic schemas. Results are cached for performance.
    """

    def __init__(self, surveys_dir: str):
        """Initialize survey loader.

        Args:
            surveys_dir: Path to surveys directory
        """
        self.surveys_dir = Path(surveys_dir)

        if not self.surveys_dir.exists():
            logger.warning(f"Surveys directory not found: {self.surveys_dir}")

    @lru_cache(maxsize=128)
    def load_survey(self, survey_id: str) -> SurveyDefinition:
        """Load and validate a survey from YAML file.

        Args:
            survey_id: Survey identifier (matches YAML filename without .yaml)

        Returns:
            Validated SurveyDefinition

        Raises:
            SurveyNotFoundError: If survey file doesn't exist
            SurveyValidationError: If survey fails validation

        Example:
            >>> loader = SurveyLoader("./surveys")
            >>> survey = loader.load_survey("product_feedback")
            >>> [option.id for option in survey.options]
            ['love', 'like', 'meh', 'dislike']
        """
        yaml_path = self.surveys_dir / f"{survey_id}.yaml"

        if not yaml_path.exists():
            logger.error(f"Survey file not found: {yaml_path}")
            raise SurveyNotFoundError(f"Survey '{survey_id}' not found at {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error for {survey_id}: {e}")
            raise SurveyValidationError(f"Invalid YAML in survey '{survey_id}': {e}")
        except OSError as e:
            logger.error(f"Error reading survey file {yaml_path}: {e}")
            raise SurveyValidationError(f"Error reading survey '{survey_id}': {e}")

        if not isinstance(raw_data, dict):
            raise SurveyValidationError(f"Survey '{survey_id}' must be a YAML mapping")

        try:
            survey = SurveyDefinition(**raw_data)
        except ValidationError as e:
            logger.error(f"Validation error for survey {survey_id}: {e}")
            raise SurveyValidationError(f"Validation failed for survey '{survey_id}': {e}")

        if survey.id != survey_id:
            raise SurveyValidationError(
                f"Survey id '{survey.id}' does not match filename '{survey_id}.yaml'"
            )

        logger.info(f"Successfully loaded survey: {survey_id} ({len(survey.options)} options)")
        return survey

    def list_surveys(self) -> list[str]:
        """List all available survey IDs.

        Returns:
            List of survey IDs (filenames without .yaml extension)
        """
        if not self.surveys_dir.exists():
            return []

        survey_ids = [f.stem for f in self.surveys_dir.glob("*.yaml")]

        logger.debug(f"Found {len(survey_ids)} surveys: {survey_ids}")
        return sorted(survey_ids)

    def sync_to_store(self, store) -> list[str]:
        """Upsert every valid catalog survey into ``store``.

        Invalid files are logged and skipped so one bad file does not keep
        the service from starting.

        Args:
            store: ResponseStore to write into

        Returns:
            IDs of the surveys that were synced
        """
        synced = []
        for survey_id in self.list_surveys():
            try:
                store.upsert_survey(self.load_survey(survey_id))
            except SurveyValidationError as e:
                logger.error(f"Skipping invalid survey {survey_id}: {e}")
                continue
            synced.append(survey_id)

        logger.info(f"Synced {len(synced)} surveys from {self.surveys_dir}")
        return synced

    def clear_cache(self):
        """Clear the survey cache.

        Useful during development or when surveys are updated at runtime.
        """
        self.load_survey.cache_clear()
        logger.info("Survey cache cleared")


_loader_instance: Optional[SurveyLoader] = None


def get_survey_loader() -> SurveyLoader:
    """Get global SurveyLoader instance for the configured surveys_dir."""
    global _loader_instance
    if _loader_instance is None:
        _loader_instance = SurveyLoader(get_settings().surveys_dir)
    return _loader_instance
