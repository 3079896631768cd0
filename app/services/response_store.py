"""Storage interface for the response intake, with SQL and in-memory backends.

The intake procedure depends only on ``ResponseStore``. Each backend
implements the same typed operations natively; nothing here rewrites query
text for a particular database.

At-most-one response per (survey, recipient) is enforced by the backend at
write time: ``insert_response_bundle`` raises ``ResponseConflictError`` when
another response for the same pair already exists, including one committed
by a concurrent request after the caller's duplicate check.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from app.logging_config import get_logger
from app.models.bot_score import BotScore
from app.models.follow_up import FollowUpResponse
from app.models.response import Response
from app.models.response_event import ResponseEvent
from app.models.survey import Survey, SurveyOption
from app.schemas.response import OptionDisplay, ResponseBundle, StoredResponse
from app.schemas.survey import SurveyDefinition

logger = get_logger(__name__)


class ResponseStoreError(Exception):
    """Raised when the store cannot complete an operation."""
    pass


class ResponseConflictError(ResponseStoreError):
    """Raised when a response already exists for the (survey, recipient) pair."""
    pass


class ResponseStore(ABC):
    """Operations the response intake and its routes need from storage."""

    @abstractmethod
    def find_response(self, survey_id: str, recipient_id: str) -> Optional[StoredResponse]:
        """Return the existing response for the pair, if any."""

    @abstractmethod
    def insert_response_bundle(self, bundle: ResponseBundle) -> None:
        """Atomically write the response, its audit event and its bot score.

        Raises:
            ResponseConflictError: A response for the pair already exists
            ResponseStoreError: Anything else went wrong; nothing was written
        """

    @abstractmethod
    def lookup_survey_option(self, survey_id: str, option_id: str) -> Optional[OptionDisplay]:
        """Label and emoji of an option, for the confirmation page."""

    @abstractmethod
    def count_recent_events(self, ip_address: str, since: datetime) -> int:
        """Number of audit events from ``ip_address`` at or after ``since``."""

    @abstractmethod
    def get_survey(self, survey_id: str) -> Optional[SurveyDefinition]:
        """Full survey definition, options in display order."""

    @abstractmethod
    def upsert_survey(self, definition: SurveyDefinition) -> None:
        """Create or replace a survey and its options."""

    @abstractmethod
    def add_follow_up_response(
        self,
        survey_id: str,
        response: str,
        original_response: Optional[str] = None,
    ) -> str:
        """Store a follow-up answer and return its id."""


def _to_definition(survey: Survey) -> SurveyDefinition:
    return SurveyDefinition.model_validate({
        "id": survey.id,
        "title": survey.title,
        "description": survey.description,
        "type": survey.type,
        "settings": survey.settings or {},
        "options": [
            {
                "id": option.id,
                "label": option.label,
                "value": option.value,
                "emoji": option.emoji,
                "color": option.color,
            }
            for option in survey.options
        ],
    })


class SqlResponseStore(ResponseStore):
    """SQLAlchemy-backed store (PostgreSQL in production, SQLite in tests).

    Each operation runs in its own short session. The bundle insert is one
    transaction, and the unique constraint on responses(survey_id,
    recipient_id) turns a concurrent second insert into an IntegrityError.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        """Initialize store.

        Args:
            session_factory: Factory producing sessions bound to the target database
        """
        self._session_factory = session_factory

    def find_response(self, survey_id: str, recipient_id: str) -> Optional[StoredResponse]:
        try:
            with self._session_factory() as db:
                row = db.execute(
                    select(Response).where(
                        Response.survey_id == survey_id,
                        Response.recipient_id == recipient_id,
                    )
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Duplicate check failed: {e}", extra={"survey_id": survey_id})
            raise ResponseStoreError(f"Duplicate check failed: {e}") from e

        if row is None:
            return None
        return StoredResponse(
            id=row.id,
            survey_id=row.survey_id,
            recipient_id=row.recipient_id,
            option_id=row.option_id,
            created_at=row.created_at,
        )

    def insert_response_bundle(self, bundle: ResponseBundle) -> None:
        try:
            with self._session_factory.begin() as db:
                db.add(Response(
                    id=bundle.response_id,
                    survey_id=bundle.survey_id,
                    recipient_id=bundle.recipient_id,
                    option_id=bundle.option_id,
                    response_metadata=bundle.metadata,
                    created_at=bundle.submitted_at,
                ))
                # Response row first so the dependent rows' foreign keys resolve
                db.flush()
                db.add_all([
                    ResponseEvent(
                        id=bundle.event_id,
                        response_id=bundle.response_id,
                        event_type=bundle.event_type,
                        ip_address=bundle.ip_address,
                        user_agent=bundle.user_agent,
                        timestamp=bundle.submitted_at,
                    ),
                    BotScore(
                        response_id=bundle.response_id,
                        score=bundle.score,
                        factors=bundle.factors,
                        is_confirmed=False,
                    ),
                ])
        except IntegrityError as e:
            if self.find_response(bundle.survey_id, bundle.recipient_id) is not None:
                raise ResponseConflictError(
                    f"Response already recorded for survey {bundle.survey_id}"
                ) from e
            logger.error(
                f"Integrity error recording response: {e}",
                extra={"survey_id": bundle.survey_id},
            )
            raise ResponseStoreError(f"Failed to record response: {e}") from e
        except SQLAlchemyError as e:
            logger.error(
                f"Database error recording response: {e}",
                extra={"survey_id": bundle.survey_id},
            )
            raise ResponseStoreError(f"Failed to record response: {e}") from e

    def lookup_survey_option(self, survey_id: str, option_id: str) -> Optional[OptionDisplay]:
        try:
            with self._session_factory() as db:
                option = db.get(SurveyOption, {"survey_id": survey_id, "id": option_id})
        except SQLAlchemyError as e:
            raise ResponseStoreError(f"Option lookup failed: {e}") from e

        if option is None:
            return None
        return OptionDisplay(label=option.label, emoji=option.emoji)

    def count_recent_events(self, ip_address: str, since: datetime) -> int:
        try:
            with self._session_factory() as db:
                return db.execute(
                    select(func.count())
                    .select_from(ResponseEvent)
                    .where(
                        ResponseEvent.ip_address == ip_address,
                        ResponseEvent.timestamp >= since,
                    )
                ).scalar_one()
        except SQLAlchemyError as e:
            raise ResponseStoreError(f"Event count failed: {e}") from e

    def get_survey(self, survey_id: str) -> Optional[SurveyDefinition]:
        try:
            with self._session_factory() as db:
                survey = db.execute(
                    select(Survey)
                    .options(selectinload(Survey.options))
                    .where(Survey.id == survey_id)
                ).scalar_one_or_none()
                if survey is None:
                    return None
                return _to_definition(survey)
        except SQLAlchemyError as e:
            raise ResponseStoreError(f"Survey lookup failed: {e}") from e

    def upsert_survey(self, definition: SurveyDefinition) -> None:
        settings = definition.settings.model_dump(exclude_none=True)
        try:
            with self._session_factory.begin() as db:
                survey = db.get(Survey, definition.id)
                if survey is None:
                    survey = Survey(id=definition.id)
                    db.add(survey)
                survey.title = definition.title
                survey.description = definition.description
                survey.type = definition.type.value
                survey.settings = settings

                existing = {option.id: option for option in survey.options}
                options = []
                for position, option_def in enumerate(definition.options):
                    option = existing.get(option_def.id) or SurveyOption(id=option_def.id)
                    option.label = option_def.label
                    option.value = option_def.value
                    option.emoji = option_def.emoji
                    option.color = option_def.color
                    option.position = position
                    options.append(option)
                # delete-orphan removes options that left the definition
                survey.options = options
        except SQLAlchemyError as e:
            raise ResponseStoreError(f"Failed to save survey {definition.id}: {e}") from e

        logger.info(f"Saved survey {definition.id} with {len(definition.options)} options")

    def add_follow_up_response(
        self,
        survey_id: str,
        response: str,
        original_response: Optional[str] = None,
    ) -> str:
        follow_up_id = str(uuid.uuid4())
        try:
            with self._session_factory.begin() as db:
                db.add(FollowUpResponse(
                    id=follow_up_id,
                    survey_id=survey_id,
                    response=response,
                    original_response=original_response,
                ))
        except SQLAlchemyError as e:
            raise ResponseStoreError(f"Failed to save follow-up response: {e}") from e
        return follow_up_id


class InMemoryResponseStore(ResponseStore):
    """Process-local store guarded by a single lock.

    Suitable for tests and single-process demos. The duplicate check inside
    ``insert_response_bundle`` runs under the same lock as the write, which
    gives the same conflict behaviour as the SQL unique constraint.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._surveys: dict[str, SurveyDefinition] = {}
        self._responses: dict[tuple[str, str], StoredResponse] = {}
        self._metadata: dict[str, dict] = {}
        self._events: list[ResponseBundle] = []
        self._bot_scores: dict[str, tuple[int, dict]] = {}
        self._follow_ups: dict[str, tuple[str, str, Optional[str]]] = {}

    def find_response(self, survey_id: str, recipient_id: str) -> Optional[StoredResponse]:
        with self._lock:
            return self._responses.get((survey_id, recipient_id))

    def insert_response_bundle(self, bundle: ResponseBundle) -> None:
        key = (bundle.survey_id, bundle.recipient_id)
        with self._lock:
            if key in self._responses:
                raise ResponseConflictError(
                    f"Response already recorded for survey {bundle.survey_id}"
                )
            self._responses[key] = StoredResponse(
                id=bundle.response_id,
                survey_id=bundle.survey_id,
                recipient_id=bundle.recipient_id,
                option_id=bundle.option_id,
                created_at=bundle.submitted_at,
            )
            self._metadata[bundle.response_id] = dict(bundle.metadata)
            self._events.append(bundle)
            self._bot_scores[bundle.response_id] = (bundle.score, dict(bundle.factors))

    def lookup_survey_option(self, survey_id: str, option_id: str) -> Optional[OptionDisplay]:
        with self._lock:
            survey = self._surveys.get(survey_id)
        if survey is None:
            return None
        option = survey.get_option(option_id)
        if option is None:
            return None
        return OptionDisplay(label=option.label, emoji=option.emoji)

    def count_recent_events(self, ip_address: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1 for event in self._events
                if event.ip_address == ip_address and event.submitted_at >= since
            )

    def get_survey(self, survey_id: str) -> Optional[SurveyDefinition]:
        with self._lock:
            return self._surveys.get(survey_id)

    def upsert_survey(self, definition: SurveyDefinition) -> None:
        with self._lock:
            self._surveys[definition.id] = definition

    def add_follow_up_response(
        self,
        survey_id: str,
        response: str,
        original_response: Optional[str] = None,
    ) -> str:
        follow_up_id = str(uuid.uuid4())
        with self._lock:
            self._follow_ups[follow_up_id] = (survey_id, response, original_response)
        return follow_up_id

    def bot_score_for(self, response_id: str) -> Optional[tuple[int, dict]]:
        """Stored (score, factors) for a response."""
        with self._lock:
            return self._bot_scores.get(response_id)

    def metadata_for(self, response_id: str) -> Optional[dict]:
        with self._lock:
            return self._metadata.get(response_id)

    def response_count(self) -> int:
        with self._lock:
            return len(self._responses)
