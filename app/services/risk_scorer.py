"""Rule-based risk scoring for response redemptions.

Each redemption request is scored from evidence available in the request
itself: user agent, client IP, time since the link was issued and the
request shape. Every rule contributes either zero or its full penalty, so
a stored score can always be explained by naming the rules that fired.
"""

import ipaddress
from dataclasses import dataclass
from typing import Dict, Optional

from app.config import Settings, get_settings
from app.logging_config import get_logger

logger = get_logger(__name__)

# Case-insensitive substrings of crawler and link-preview user agents.
KNOWN_BOT_SIGNATURES = (
    "googlebot",
    "bingbot",
    "slurp",
    "duckduckbot",
    "baiduspider",
    "yandexbot",
    "facebookexternalhit",
    "twitterbot",
    "linkedinbot",
    "whatsapp",
    "telegrambot",
    "crawler",
    "spider",
    "scraper",
)

# Cloud provider and CDN ranges; residential and mobile clients are not here.
DATACENTER_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "52.0.0.0/8",
        "54.0.0.0/8",
        "18.0.0.0/8",
        "3.0.0.0/8",
        "13.0.0.0/8",
        "23.0.0.0/8",
        "104.16.0.0/16",
        "104.17.0.0/16",
        "162.158.0.0/16",
        "172.64.0.0/16",
    )
)


@dataclass(frozen=True)
class RiskPenalties:
    """Penalty per rule and the bot threshold."""
    user_agent: int = 20
    timing: int = 15
    ip_address: int = 25
    head_request: int = 30
    pattern: int = 20
    threshold: int = 50
    timing_floor_ms: int = 30000

    @classmethod
    def from_settings(cls, settings: Settings) -> "RiskPenalties":
        return cls(
            user_agent=settings.bot_penalty_user_agent,
            timing=settings.bot_penalty_timing,
            ip_address=settings.bot_penalty_ip_address,
            head_request=settings.bot_penalty_head_request,
            pattern=settings.bot_penalty_sequential_pattern,
            threshold=settings.bot_score_threshold,
            timing_floor_ms=settings.bot_timing_floor_ms,
        )


@dataclass(frozen=True)
class RiskScore:
    """Per-rule contributions for one request.

    Attributes:
        user_agent: Known crawler signature in the user agent
        timing: Clicked implausibly soon after issuance
        ip_address: Request came from a datacenter/CDN range
        head_request: Malformed request shape (e.g. HEAD reached the handler)
        pattern: Sequential/burst redemption pattern
    """
    user_agent: int = 0
    timing: int = 0
    ip_address: int = 0
    head_request: int = 0
    pattern: int = 0

    @property
    def total(self) -> int:
        return self.user_agent + self.timing + self.ip_address + self.head_request + self.pattern

    def factors(self) -> Dict[str, int]:
        """Components keyed the same way as response metadata, for storage."""
        return {
            "userAgent": self.user_agent,
            "timing": self.timing,
            "ipAddress": self.ip_address,
            "headRequest": self.head_request,
            "pattern": self.pattern,
        }


def is_bot_user_agent(user_agent: Optional[str]) -> bool:
    if not user_agent:
        return False
    lowered = user_agent.lower()
    return any(signature in lowered for signature in KNOWN_BOT_SIGNATURES)


def is_datacenter_ip(ip_address: Optional[str]) -> bool:
    if not ip_address:
        return False
    try:
        address = ipaddress.ip_address(ip_address.strip())
    except ValueError:
        return False
    # Dual-stack listeners report IPv4 peers as ::ffff:a.b.c.d
    if address.version == 6 and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return any(address in network for network in DATACENTER_NETWORKS)


class RiskScorer:
    """Additive, explainable bot-risk scorer.

    Stateless: one instance can be shared across concurrent requests.

    Usage:
        scorer = RiskScorer()
        score = scorer.score("Googlebot/2.1", "52.1.2.3", 5000)
        scorer.is_bot(score)  # True: 20 + 15 + 25 >= 50
    """

    def __init__(self, penalties: Optional[RiskPenalties] = None):
        if penalties is None:
            penalties = RiskPenalties.from_settings(get_settings())
        self.penalties = penalties

    def score(
        self,
        user_agent: Optional[str],
        ip_address: Optional[str],
        elapsed_ms: float,
        had_malformed_request_shape: bool = False,
        saw_sequential_pattern: bool = False,
    ) -> RiskScore:
        """Score a redemption request.

        Args:
            user_agent: User-Agent header value (may be empty)
            ip_address: Client IP address
            elapsed_ms: Milliseconds between token issuance and this request
            had_malformed_request_shape: Request shape a browser would not send
            saw_sequential_pattern: Caller detected a sequential/burst pattern

        Returns:
            RiskScore with one entry per rule
        """
        p = self.penalties
        return RiskScore(
            user_agent=p.user_agent if is_bot_user_agent(user_agent) else 0,
            timing=p.timing if elapsed_ms < p.timing_floor_ms else 0,
            ip_address=p.ip_address if is_datacenter_ip(ip_address) else 0,
            head_request=p.head_request if had_malformed_request_shape else 0,
            pattern=p.pattern if saw_sequential_pattern else 0,
        )

    def is_bot(self, score: RiskScore) -> bool:
        """Scores at or above the threshold are classified as bots."""
        return score.total >= self.penalties.threshold
