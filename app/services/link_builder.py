"""Response link issuance.

Builds the one-click ``/r?tok=...`` links embedded in outbound emails: one
signed token per survey option, all bound to the same recipient id.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from app.logging_config import get_logger
from app.schemas.survey import SurveyDefinition
from app.services.recipient_hasher import RecipientHasher
from app.services.token_codec import TokenCodec

logger = get_logger(__name__)

REDEMPTION_PATH = "/r"


@dataclass(frozen=True)
class ResponseLink:
    option_id: str
    label: str
    emoji: Optional[str]
    url: str


@dataclass(frozen=True)
class IssuedLinks:
    survey_id: str
    recipient_id: str
    links: list[ResponseLink]


class LinkBuilder:
    """Issue signed response links for a survey.

    Usage:
        builder = LinkBuilder(codec, "https://feedback.example.com")
        issued = builder.build(survey, email="alice@example.com")
    """

    def __init__(self, codec: TokenCodec, base_url: str):
        self.codec = codec
        self.base_url = base_url.rstrip("/")

    def response_url(self, token: str) -> str:
        return f"{self.base_url}{REDEMPTION_PATH}?{urlencode({'tok': token})}"

    def build(
        self,
        survey: SurveyDefinition,
        email: Optional[str] = None,
        expiration_days: Optional[int] = None,
    ) -> IssuedLinks:
        """Issue one link per option of ``survey``.

        Args:
            survey: Survey to issue links for
            email: Recipient email; omitted for anonymous recipients
            expiration_days: Token lifetime, defaults to the codec's window

        Returns:
            IssuedLinks with the recipient id and a link per option
        """
        recipient_id = self.codec.generate_recipient_id(email)
        links = [
            ResponseLink(
                option_id=option.id,
                label=option.label,
                emoji=option.emoji,
                url=self.response_url(
                    self.codec.encode(survey.id, recipient_id, option.id, expiration_days)
                ),
            )
            for option in survey.options
        ]

        logger.info(
            f"Issued {len(links)} response links",
            extra={
                "survey_id": survey.id,
                "recipient_id": RecipientHasher.truncate_for_logging(recipient_id),
            },
        )
        return IssuedLinks(survey_id=survey.id, recipient_id=recipient_id, links=links)
