"""Response intake: turn a response-link redemption into a recorded answer.

Flow per redemption:
1. Parse    - token missing -> rejected (bad_request)
2. Verify   - forged/malformed/expired -> rejected (invalid_token)
3. Check    - response exists for (survey, recipient) -> duplicate
4. Score    - risk score from request evidence
5. Persist  - response + audit event + bot score in one transaction;
              conflict -> duplicate, other failure -> rejected (internal_error)
6. Respond  - accepted, with the option's label/emoji when it can be found

Bot-flagged responses are recorded like any other; the verdict is stored
with the response so it can be filtered downstream.
"""

import uuid
from datetime import timedelta
from typing import Optional

from app.config import get_settings
from app.logging_config import get_logger
from app.models.response_event import RESPONSE_SUBMITTED
from app.schemas.response import (
    IntakeDecision,
    IntakeOutcome,
    OptionDisplay,
    RedemptionRequest,
    RejectionReason,
    ResponseBundle,
)
from app.schemas.token import ResponseToken
from app.services.clock import Clock, utc_now
from app.services.recipient_hasher import RecipientHasher
from app.services.response_store import (
    ResponseConflictError,
    ResponseStore,
    ResponseStoreError,
)
from app.services.risk_scorer import RiskScore, RiskScorer
from app.services.token_codec import InvalidTokenError, TokenCodec

logger = get_logger(__name__)

# Methods a browser following an email link never sends to this endpoint
MALFORMED_METHODS = {"HEAD"}


class ResponseIntake:
    """Decide and record the outcome of one response-link redemption.

    Holds no mutable state of its own; concurrent redemptions coordinate
    only through the store.

    Usage:
        intake = ResponseIntake(store, TokenCodec(), RiskScorer())
        decision = intake.redeem(RedemptionRequest(token=tok, user_agent=ua, ip_address=ip))
    """

    def __init__(
        self,
        store: ResponseStore,
        codec: TokenCodec,
        scorer: RiskScorer,
        clock: Clock = utc_now,
        sequential_window_seconds: Optional[int] = None,
        sequential_event_limit: Optional[int] = None,
    ):
        """Initialize intake.

        Args:
            store: Storage backend for duplicate checks and persistence
            codec: Token codec used to verify redemptions
            scorer: Risk scorer
            clock: Source of the current time
            sequential_window_seconds: Look-back window for burst detection
            sequential_event_limit: Events from one IP within the window that
                count as a sequential pattern
        """
        settings = get_settings()
        self.store = store
        self.codec = codec
        self.scorer = scorer
        self.clock = clock
        if sequential_window_seconds is None:
            sequential_window_seconds = settings.sequential_window_seconds
        if sequential_event_limit is None:
            sequential_event_limit = settings.sequential_event_limit
        self.sequential_window = timedelta(seconds=sequential_window_seconds)
        self.sequential_event_limit = sequential_event_limit

    def redeem(self, request: RedemptionRequest) -> IntakeDecision:
        """Process one redemption request.

        Never raises for expected conditions; every path ends in an
        IntakeDecision.

        Args:
            request: Token and request metadata

        Returns:
            IntakeDecision: accepted, duplicate or rejected(reason)
        """
        # 1. Parse
        raw_token = (request.token or "").strip()
        if not raw_token:
            logger.info("Redemption without token", extra={"client_ip": request.ip_address})
            return IntakeDecision.rejected(RejectionReason.BAD_REQUEST)

        # 2. Verify
        try:
            token = self.codec.decode(raw_token)
        except InvalidTokenError as e:
            logger.warning(
                f"Rejected response token from {request.ip_address}: {e.reason}",
                extra={"reason": e.reason, "client_ip": request.ip_address},
            )
            return IntakeDecision.rejected(RejectionReason.INVALID_TOKEN)

        log_context = {
            "survey_id": token.sid,
            "recipient_id": RecipientHasher.truncate_for_logging(token.rid),
        }

        # 3. Check duplicate
        try:
            existing = self.store.find_response(token.sid, token.rid)
        except ResponseStoreError:
            logger.error("Duplicate check failed", extra=log_context, exc_info=True)
            return IntakeDecision.rejected(RejectionReason.INTERNAL_ERROR, survey_id=token.sid)

        if existing is not None:
            logger.info("Duplicate redemption", extra={**log_context, "response_id": existing.id})
            return IntakeDecision.duplicate(token.sid)

        # 4. Score
        now = self.clock()
        score = self.scorer.score(
            user_agent=request.user_agent,
            ip_address=request.ip_address,
            elapsed_ms=self._elapsed_ms(token, now),
            had_malformed_request_shape=request.method.upper() in MALFORMED_METHODS,
            saw_sequential_pattern=self._saw_sequential_pattern(request.ip_address, now),
        )
        is_bot = self.scorer.is_bot(score)

        # 5. Persist
        bundle = self._build_bundle(token, request, score, is_bot, now)
        try:
            self.store.insert_response_bundle(bundle)
        except ResponseConflictError:
            logger.info("Concurrent duplicate redemption", extra=log_context)
            return IntakeDecision.duplicate(token.sid)
        except ResponseStoreError:
            logger.error("Failed to record response", extra=log_context, exc_info=True)
            return IntakeDecision.rejected(RejectionReason.INTERNAL_ERROR, survey_id=token.sid)

        logger.info(
            f"Recorded response: score={score.total} is_bot={is_bot}",
            extra={**log_context, "response_id": bundle.response_id},
        )

        # 6. Respond
        option = self._lookup_option(token)
        return IntakeDecision(
            outcome=IntakeOutcome.ACCEPTED,
            survey_id=token.sid,
            response_id=bundle.response_id,
            option_label=option.label if option else "",
            option_emoji=(option.emoji or "") if option else "",
            risk_score=score,
            is_bot=is_bot,
        )

    def _elapsed_ms(self, token: ResponseToken, now) -> float:
        issued_at = self.codec.issued_at(token)
        return now.timestamp() * 1000 - issued_at * 1000

    def _saw_sequential_pattern(self, ip_address: str, now) -> bool:
        """Several redemptions from one client within the window."""
        try:
            recent = self.store.count_recent_events(ip_address, now - self.sequential_window)
        except ResponseStoreError:
            # Scoring degrades to "no pattern" rather than blocking the response
            logger.warning("Recent event count unavailable", exc_info=True)
            return False
        return recent >= self.sequential_event_limit

    def _build_bundle(
        self,
        token: ResponseToken,
        request: RedemptionRequest,
        score: RiskScore,
        is_bot: bool,
        now,
    ) -> ResponseBundle:
        return ResponseBundle(
            response_id=str(uuid.uuid4()),
            survey_id=token.sid,
            recipient_id=token.rid,
            option_id=token.ans,
            metadata={
                "userAgent": request.user_agent,
                "ipAddress": request.ip_address,
                "timestamp": now.isoformat(),
                "isBot": is_bot,
                "botScore": score.total,
            },
            submitted_at=now,
            event_id=str(uuid.uuid4()),
            event_type=RESPONSE_SUBMITTED,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
            score=score.total,
            factors=score.factors(),
        )

    def _lookup_option(self, token: ResponseToken) -> Optional[OptionDisplay]:
        try:
            option = self.store.lookup_survey_option(token.sid, token.ans)
        except ResponseStoreError:
            logger.error("Option lookup failed", extra={"survey_id": token.sid}, exc_info=True)
            return None

        if option is None:
            logger.error(
                f"Option {token.ans} not found for recorded response",
                extra={"survey_id": token.sid},
            )
        return option
