"""Assessment, question and evidence image models."""

from datetime import date as calendar_date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from safecheck.database import Base


class Assessment(Base):
    """One inspection of a site by its owner."""

    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("profiles.id"), nullable=False
    )
    store_name: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[calendar_date] = mapped_column(Date, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class AssessmentQuestion(Base):
    """Checklist item - prompt fixed at creation, answer/comment mutable."""

    __tablename__ = "assessment_questions"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    assessment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_number: Mapped[int] = mapped_column(Integer, nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)  # yes|no|n/a
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "assessment_id", "question_number", name="uq_assessment_questions_number"
        ),
        CheckConstraint(
            "answer IS NULL OR answer IN ('yes', 'no', 'n/a')",
            name="ck_assessment_questions_answer",
        ),
    )


class QuestionImage(Base):
    """Evidence photo reference - the bytes live in object storage."""

    __tablename__ = "question_images"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    question_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("assessment_questions.id", ondelete="CASCADE"),
        nullable=False,
    )
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
