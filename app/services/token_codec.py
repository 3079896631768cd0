"""Signed response token codec.

Response links carry a bearer-capability token that says "recipient R may
submit option O for survey S until time E". Tokens are verified without any
server-side lookup, so they can be embedded in emails that get cached,
forwarded or fetched by link-preview bots.

Wire format::

    base64url(JSON{sid,rid,ans,exp,nonce[,iat]}) + "." + base64url(HMAC-SHA256(secret, payload))

Both segments use unpadded base64url. The HMAC is computed over the ASCII
payload segment exactly as it appears in the token.
"""

import base64
import binascii
import hashlib
import hmac
import json
import secrets
from datetime import timedelta
from typing import Callable, Optional

from pydantic import ValidationError

from app.config import get_settings
from app.logging_config import get_logger
from app.schemas.token import ResponseToken
from app.services.clock import Clock, utc_now
from app.services.recipient_hasher import RecipientHasher

logger = get_logger(__name__)

NONCE_BYTES = 8


class InvalidTokenError(Exception):
    """Raised when a token cannot be trusted.

    ``reason`` is one of ``malformed``, ``bad_signature``, ``bad_payload`` or
    ``expired``. It is meant for logs only; callers must not echo it back.
    """

    def __init__(self, reason: str):
        super().__init__(f"Invalid response token: {reason}")
        self.reason = reason


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def get_signing_key() -> str:
    """Return the process-wide HMAC key.

    Every read of the signing secret goes through here so key rotation only
    has one place to change.
    """
    return get_settings().hmac_secret


class TokenCodec:
    """Encode and verify signed response tokens.

    The codec is stateless apart from its configuration and is safe to share
    between concurrent requests.

    Usage:
        codec = TokenCodec()
        token = codec.encode("s1", recipient_id, "optA")
        decoded = codec.decode(token)  # raises InvalidTokenError
    """

    def __init__(
        self,
        key_provider: Callable[[], str] = get_signing_key,
        default_expiration_days: Optional[int] = None,
        clock: Clock = utc_now,
    ):
        """Initialize codec.

        Args:
            key_provider: Callable returning the current HMAC secret
            default_expiration_days: Token lifetime when encode() is not
                given one (defaults to settings.token_expiration_days)
            clock: Source of the current time
        """
        if default_expiration_days is None:
            default_expiration_days = get_settings().token_expiration_days
        self._key_provider = key_provider
        self.default_expiration_days = default_expiration_days
        self.clock = clock

    def _sign(self, payload: str) -> str:
        key = self._key_provider().encode("utf-8")
        digest = hmac.new(key, payload.encode("ascii"), hashlib.sha256).digest()
        return b64url_encode(digest)

    def encode(
        self,
        survey_id: str,
        recipient_id: str,
        option_id: str,
        expiration_days: Optional[int] = None,
    ) -> str:
        """Create a signed token for one survey option.

        Args:
            survey_id: Survey identifier
            recipient_id: Recipient identifier from generate_recipient_id()
            option_id: Option the link submits
            expiration_days: Token lifetime, defaults to the configured window

        Returns:
            ``payload.signature`` string, safe to use as a URL query value
        """
        if expiration_days is None:
            expiration_days = self.default_expiration_days

        issued_at = int(self.clock().timestamp())
        record = {
            "sid": survey_id,
            "rid": recipient_id,
            "ans": option_id,
            "exp": issued_at + int(timedelta(days=expiration_days).total_seconds()),
            "nonce": secrets.token_hex(NONCE_BYTES),
            "iat": issued_at,
        }

        serialized = json.dumps(record, separators=(",", ":"), ensure_ascii=False)
        payload = b64url_encode(serialized.encode("utf-8"))
        return f"{payload}.{self._sign(payload)}"

    def decode(self, token: str) -> ResponseToken:
        """Verify a token and return its payload.

        The signature is checked before the payload is parsed, and the check
        compares the signature segment text in constant time, so any change
        to either segment invalidates the token.

        Args:
            token: Token string from a response link

        Returns:
            ResponseToken: The verified payload

        Raises:
            InvalidTokenError: Malformed, forged, unparsable or expired token
        """
        payload, sep, signature = token.rpartition(".")
        if not sep or not payload or not signature:
            raise InvalidTokenError("malformed")

        try:
            expected = self._sign(payload)
        except UnicodeEncodeError:
            raise InvalidTokenError("malformed")

        if not hmac.compare_digest(signature.encode("utf-8", "replace"), expected.encode("ascii")):
            raise InvalidTokenError("bad_signature")

        try:
            decoded = ResponseToken.model_validate(json.loads(b64url_decode(payload)))
        except (binascii.Error, ValueError, ValidationError):
            raise InvalidTokenError("bad_payload")

        if decoded.is_expired(self.clock()):
            raise InvalidTokenError("expired")

        return decoded

    def issued_at(self, token: ResponseToken) -> int:
        """Issuance time of ``token`` as Unix seconds.

        Legacy tokens carry no ``iat``; their issuance is back-computed from
        the expiry and the configured default window, which is only exact
        when the token was issued with that window.
        """
        if token.iat is not None:
            return token.iat
        window = int(timedelta(days=self.default_expiration_days).total_seconds())
        return token.exp - window

    def generate_recipient_id(self, email: Optional[str] = None) -> str:
        """Stable pseudonymous id for ``email``, or a random one if absent."""
        return RecipientHasher(self._key_provider()).generate(email)
