"""SQLAlchemy ORM models for enriched exam questions."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Index, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class QuestionRecord(Base):
    """One scraped question plus its AI enrichment, keyed by header."""
    __tablename__ = "questions"
    __table_args__ = (Index("idx_questions_has_ai", "ai_raw", "ai_question"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    header: Mapped[str] = mapped_column(Text, unique=True)
    raw: Mapped[str] = mapped_column(Text, default="")
    ai_raw: Mapped[str] = mapped_column(Text, default="")

    # Decoded AI fields; options and notes are stored as JSON text
    ai_question: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_options: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    ai_correct_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_correct_answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_topic: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_notes: Mapped[list | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
