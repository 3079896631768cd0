"""Pydantic schema for the signed response token payload.

The payload is serialized as compact JSON with the keys ``sid``, ``rid``,
``ans``, ``exp`` and ``nonce`` in that order. ``iat`` is appended by newer
issuers; tokens without it remain valid.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class ResponseToken(BaseModel):
    """Decoded response token.

    Attributes:
        sid: Survey identifier
        rid: Recipient identifier (salted hash, never an email)
        ans: Option identifier the link submits
        exp: Expiry as Unix seconds
        nonce: Random hex so repeated issuance never yields identical tokens
        iat: Issuance as Unix seconds, absent on legacy tokens
    """

    sid: str = Field(..., min_length=1, description="Survey identifier")
    rid: str = Field(..., min_length=1, description="Recipient identifier")
    ans: str = Field(..., min_length=1, description="Option identifier")
    exp: int = Field(..., description="Expiry (Unix seconds)")
    nonce: str = Field(..., min_length=1, description="Random uniqueness value")
    iat: Optional[int] = Field(default=None, description="Issued at (Unix seconds)")

    model_config = {"extra": "ignore"}

    @property
    def survey_id(self) -> str:
        return self.sid

    @property
    def recipient_id(self) -> str:
        return self.rid

    @property
    def option_id(self) -> str:
        return self.ans

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    def is_expired(self, now: datetime) -> bool:
        """A token is usable strictly before its expiry second."""
        return self.exp <= int(now.timestamp())
