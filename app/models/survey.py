"""Survey and SurveyOption models.

Surveys and their options are authored elsewhere (dashboard or YAML catalog);
the response intake only reads them to build a personalized confirmation.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class Survey(Base):
    """A one-question survey whose options are embedded as email links.

    Attributes:
        id: Survey identifier (appears in tokens as ``sid``)
        title: Human-readable title
        description: Optional longer description
        type: One of rating, emoji, binary, multiple_choice
        settings: Thank-you page settings (message, redirect, follow-up)
        created_at: Creation timestamp
        options: Ordered answer options
    """

    __tablename__ = "surveys"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="rating, emoji, binary or multiple_choice"
    )
    settings: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Thank-you page settings"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    options: Mapped[list["SurveyOption"]] = relationship(
        "SurveyOption",
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="SurveyOption.position",
    )

    def __repr__(self) -> str:
        return f"<Survey(id={self.id}, type={self.type}, title={self.title!r})>"


class SurveyOption(Base):
    """One answer option of a survey (appears in tokens as ``ans``)."""

    __tablename__ = "survey_options"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    survey_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("surveys.id", ondelete="CASCADE"),
        primary_key=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    emoji: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    survey: Mapped[Survey] = relationship("Survey", back_populates="options")

    def __repr__(self) -> str:
        return f"<SurveyOption(id={self.id}, survey_id={self.survey_id}, label={self.label!r})>"
