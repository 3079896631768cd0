"""Persisted risk score of a response."""

from sqlalchemy import Boolean, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class BotScore(Base):
    """Risk score record, one-to-one with a Response.

    Attributes:
        response_id: Primary key and foreign key to responses (CASCADE)
        score: Total risk score
        factors: Per-rule contributions, e.g. {"user_agent": 20, "timing": 0, ...}
        is_confirmed: Reserved for manual review; never set by intake
    """

    __tablename__ = "bot_scores"

    response_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("responses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    factors: Mapped[dict] = mapped_column(JSON, nullable=False)
    is_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    response: Mapped["Response"] = relationship("Response", back_populates="bot_score")

    def __repr__(self) -> str:
        return f"<BotScore(response_id={self.response_id}, score={self.score})>"
