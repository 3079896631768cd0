"""Response link redemption endpoint.

``GET /r?tok=<token>`` is the target of every one-click response button in
outbound email. It is unauthenticated: the signed token is the
credential. Successful and duplicate redemptions redirect to the thank-you
page; failures return plain-text errors that never say why a token was
refused.
"""

from typing import Annotated, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from app.config import get_settings
from app.dependencies import get_response_intake
from app.logging_config import get_logger
from app.schemas.response import (
    IntakeDecision,
    IntakeOutcome,
    RedemptionRequest,
    RejectionReason,
)
from app.services.response_intake import ResponseIntake

logger = get_logger(__name__)

router = APIRouter()

FALLBACK_CLIENT_IP = "127.0.0.1"

REJECTION_RESPONSES = {
    RejectionReason.BAD_REQUEST: (400, "Missing token"),
    RejectionReason.INVALID_TOKEN: (400, "Invalid or expired token"),
    RejectionReason.INTERNAL_ERROR: (500, "Internal server error"),
}


def get_client_ip(request: Request) -> str:
    """Resolve the client IP, preferring proxy headers.

    Order: first X-Forwarded-For entry, X-Real-IP, socket peer, 127.0.0.1.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return FALLBACK_CLIENT_IP


def thank_you_url(decision: IntakeDecision) -> str:
    params = {"survey": decision.survey_id or ""}
    if decision.outcome == IntakeOutcome.DUPLICATE:
        params["duplicate"] = "true"
    else:
        params["option"] = decision.option_label
        params["emoji"] = decision.option_emoji
    return f"{get_settings().thank_you_path}?{urlencode(params)}"


def decision_to_response(decision: IntakeDecision) -> Response:
    if decision.outcome == IntakeOutcome.REJECTED:
        status_code, message = REJECTION_RESPONSES[decision.reason]
        return PlainTextResponse(message, status_code=status_code)
    return RedirectResponse(thank_you_url(decision), status_code=303)


@router.api_route("/r", methods=["GET", "HEAD"])
def redeem_response_link(
    request: Request,
    intake: Annotated[ResponseIntake, Depends(get_response_intake)],
    tok: Annotated[Optional[str], Query()] = None,
) -> Response:
    """Record the answer carried by a response link.

    Flow:
    1. Collect token, user agent, client IP and method
    2. Run the response intake
    3. Map the decision to a redirect or an error

    Args:
        request: Incoming request (headers, client, method)
        intake: Response intake wired to the application store
        tok: Signed response token from the link

    Returns:
        303 redirect to the thank-you page, or a 400/500 plain-text error
    """
    redemption = RedemptionRequest(
        token=tok,
        user_agent=request.headers.get("user-agent", ""),
        ip_address=get_client_ip(request),
        method=request.method,
    )

    decision = intake.redeem(redemption)
    return decision_to_response(decision)
