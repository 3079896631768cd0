"""Free-text follow-up answers submitted from the thank-you page."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.database import Base


class FollowUpResponse(Base):
    __tablename__ = "follow_up_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    survey_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    response: Mapped[str] = mapped_column(Text, nullable=False)
    original_response: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Label of the option answered before the follow-up"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
