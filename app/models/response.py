"""Response model for recorded survey answers.

A Response is written exactly once, when a recipient first redeems a valid
response token, and is never updated afterwards.
"""

from datetime import datetime

from sqlalchemy import (
    DateTime,
    Index,
    JSON,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class Response(Base):
    """Model for storing one recipient's answer to a survey.

    Survey and option ids are copied from the verified token. They carry no
    foreign keys so a deleted or unknown option never blocks recording.

    Attributes:
        id: UUID primary key
        survey_id: Survey the answer belongs to
        recipient_id: Pseudonymous recipient (salted hash)
        option_id: Chosen option
        response_metadata: User agent, IP, timestamp, bot verdict and score
            (column ``metadata``)
        created_at: When the response was recorded
        bot_score: One-to-one risk score record
    """

    __tablename__ = "responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    survey_id: Mapped[str] = mapped_column(String(100), nullable=False)
    recipient_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Salted hash of the recipient, never an email"
    )
    option_id: Mapped[str] = mapped_column(String(100), nullable=False)
    response_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        comment="Request metadata captured at submission"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    bot_score: Mapped["BotScore"] = relationship(
        "BotScore",
        back_populates="response",
        cascade="all, delete-orphan",
        uselist=False,
    )

    __table_args__ = (
        # One response per recipient per survey; concurrent duplicates fail here
        UniqueConstraint("survey_id", "recipient_id", name="uq_responses_survey_recipient"),
        Index("idx_responses_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Response(id={self.id}, survey_id={self.survey_id}, "
            f"recipient_id={self.recipient_id[:8]}..., option_id={self.option_id})>"
        )
