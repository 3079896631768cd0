"""API key verification for issuance endpoints.

Link issuance hands out valid response tokens, so it is restricted to
callers holding the configured admin API key (the mail-sending side of the
deployment). Redemption itself (``/r``) is unauthenticated.
"""

import hmac

from fastapi import HTTPException, Request

from app.config import get_settings
from app.logging_config import get_logger


logger = get_logger(__name__)

API_KEY_HEADER = "X-API-Key"


class ApiKeyValidator:
    """Constant-time comparison of presented API keys.

    Security Notes:
        - NEVER log API key values
        - Log rejected attempts with client IP
    """

    def __init__(self, expected_key: str):
        self._expected = expected_key.encode("utf-8")

    def verify(self, presented: str) -> bool:
        return hmac.compare_digest(presented.encode("utf-8"), self._expected)


async def verify_api_key(request: Request) -> None:
    """FastAPI dependency guarding issuance routes.

    Raises:
        HTTPException(401): If the key is missing
        HTTPException(403): If the key is wrong

    Usage:
        @router.post("/api/surveys/{survey_id}/links", dependencies=[Depends(verify_api_key)])
    """
    client_ip = request.client.host if request.client else "unknown"

    presented = request.headers.get(API_KEY_HEADER)
    if not presented:
        logger.warning(
            f"Missing {API_KEY_HEADER} header from IP: {client_ip}",
            extra={"client_ip": client_ip}
        )
        raise HTTPException(status_code=401, detail="Missing API key")

    validator = ApiKeyValidator(get_settings().admin_api_key)
    if not validator.verify(presented):
        logger.warning(
            f"Invalid API key from IP: {client_ip}",
            extra={"client_ip": client_ip}
        )
        raise HTTPException(status_code=403, detail="Invalid API key")

    logger.debug("API key verification passed")
