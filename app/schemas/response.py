"""Records exchanged between the response intake and its collaborators.

These are plain dataclasses rather than ORM models so the intake procedure
works unchanged against any ResponseStore backend.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from app.services.risk_scorer import RiskScore


class IntakeOutcome(str, Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    BAD_REQUEST = "bad_request"
    INVALID_TOKEN = "invalid_token"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class RedemptionRequest:
    """Request-time evidence for one redemption.

    Attributes:
        token: Raw ``tok`` query parameter (None when absent)
        user_agent: User-Agent header, empty when missing
        ip_address: Client IP as resolved by the HTTP layer
        method: HTTP method that reached the handler
    """
    token: Optional[str]
    user_agent: str = ""
    ip_address: str = "127.0.0.1"
    method: str = "GET"


@dataclass(frozen=True)
class OptionDisplay:
    label: str
    emoji: Optional[str] = None


@dataclass(frozen=True)
class StoredResponse:
    id: str
    survey_id: str
    recipient_id: str
    option_id: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ResponseBundle:
    """Everything written for one accepted redemption, as a single unit.

    Attributes:
        response_id: Generated id of the new response
        survey_id: From the token
        recipient_id: From the token
        option_id: From the token
        metadata: userAgent, ipAddress, timestamp, isBot, botScore
        submitted_at: Time of the redemption
        event_id: Id of the ``response_submitted`` audit event
        event_type: Audit event type
        ip_address: Client IP for the audit event
        user_agent: User agent for the audit event
        score: Risk score total
        factors: Risk score components by rule
    """
    response_id: str
    survey_id: str
    recipient_id: str
    option_id: str
    metadata: Dict[str, Any]
    submitted_at: datetime
    event_id: str
    event_type: str
    ip_address: str
    user_agent: str
    score: int
    factors: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class IntakeDecision:
    """Result of one redemption.

    ``option_label``/``option_emoji`` are empty strings when the option could
    not be looked up; the response is recorded regardless.
    """
    outcome: IntakeOutcome
    reason: Optional[RejectionReason] = None
    survey_id: Optional[str] = None
    response_id: Optional[str] = None
    option_label: str = ""
    option_emoji: str = ""
    risk_score: Optional[RiskScore] = None
    is_bot: bool = False

    @classmethod
    def rejected(cls, reason: RejectionReason, survey_id: Optional[str] = None) -> "IntakeDecision":
        return cls(outcome=IntakeOutcome.REJECTED, reason=reason, survey_id=survey_id)

    @classmethod
    def duplicate(cls, survey_id: str) -> "IntakeDecision":
        return cls(outcome=IntakeOutcome.DUPLICATE, survey_id=survey_id)

    @property
    def is_accepted(self) -> bool:
        return self.outcome == IntakeOutcome.ACCEPTED
