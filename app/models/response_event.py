"""Append-only audit trail of response lifecycle events."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.database import Base

RESPONSE_SUBMITTED = "response_submitted"


class ResponseEvent(Base):
    """One row per response lifecycle event; never updated.

    Attributes:
        id: UUID primary key
        response_id: Related response (NULL once the response is deleted)
        event_type: Currently always ``response_submitted``
        ip_address: Client IP of the request
        user_agent: User-Agent header of the request
        timestamp: When the event happened
    """

    __tablename__ = "response_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    response_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("responses.id", ondelete="SET NULL"),
        nullable=True,
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_response_events_timestamp", "timestamp"),
        Index("idx_response_events_ip_timestamp", "ip_address", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<ResponseEvent(id={self.id}, type={self.event_type}, response_id={self.response_id})>"
