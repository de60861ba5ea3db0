"""Question store: SQLite persistence keyed by question header."""

import logging
from pathlib import Path

from sqlalchemy import create_engine, func, or_, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from db.models import Base, QuestionRecord, utcnow
from modules.questions import AIResult, Question

logger = logging.getLogger(__name__)

# Columns rewritten on every upsert (everything except id and created_at)
UPSERT_COLUMNS = (
    "raw",
    "ai_raw",
    "ai_question",
    "ai_options",
    "ai_correct_answer",
    "ai_correct_answer_text",
    "ai_topic",
    "ai_explanation",
    "ai_notes",
    "updated_at",
)


class StoreError(Exception):
    """Raised when the question database cannot be read or written."""


def has_ai_clause():
    """SQL predicate shared by has_ai_result and get_all(only_with_ai=True)."""
    return or_(
        func.coalesce(QuestionRecord.ai_raw, "") != "",
        func.coalesce(QuestionRecord.ai_question, "") != "",
    )


class QuestionStore:
    """Durable header -> Question mapping backed by SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.engine = create_engine(f"sqlite:///{self.db_path}", echo=False)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def ensure_ready(self) -> None:
        """Create the schema if needed and add any columns an older file lacks."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            Base.metadata.create_all(bind=self.engine)
            self._run_migrations()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Cannot initialise question database {self.db_path}: {e}") from e

    def _run_migrations(self) -> None:
        """Run additive migrations for databases created by earlier versions."""
        table = QuestionRecord.__table__
        with self.engine.connect() as conn:
            result = conn.execute(text(f"PRAGMA table_info({table.name})"))
            existing = {row[1] for row in result.fetchall()}

            for column in table.columns:
                if column.name in existing:
                    continue
                column_type = column.type.compile(dialect=self.engine.dialect)
                logger.info(f"Adding {column.name} column to {table.name} table...")
                conn.execute(
                    text(f"ALTER TABLE {table.name} ADD COLUMN {column.name} {column_type}")
                )
            conn.commit()

    def has_ai_result(self, header: str) -> bool:
        """True iff a row with this header exists and holds an AI reply or decoded question."""
        stmt = (
            select(func.count())
            .select_from(QuestionRecord)
            .where(QuestionRecord.header == (header or ""), has_ai_clause())
        )
        try:
            with self.SessionLocal() as session:
                return session.execute(stmt).scalar_one() > 0
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up {header!r}: {e}") from e

    def upsert(self, question: Question) -> None:
        """Insert the question or overwrite every field of the existing row."""
        now = utcnow()
        result = question.ai_result or AIResult()
        values = {
            "header": question.header or "",
            "raw": question.raw or "",
            "ai_raw": question.ai_raw or "",
            "ai_question": result.question or "",
            "ai_options": result.options,
            "ai_correct_answer": result.correct_answer or "",
            "ai_correct_answer_text": result.correct_answer_text or "",
            "ai_topic": result.topic or "",
            "ai_explanation": result.explanation or "",
            "ai_notes": result.notes,
            "created_at": now,
            "updated_at": now,
        }

        stmt = sqlite_insert(QuestionRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[QuestionRecord.header],
            set_={name: stmt.excluded[name] for name in UPSERT_COLUMNS},
        )

        try:
            with self.SessionLocal() as session, session.begin():
                session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save {question.header!r}: {e}") from e

    def get_all(self, only_with_ai: bool = True) -> list[Question]:
        """Return every stored question, optionally only those with AI results."""
        stmt = select(QuestionRecord)
        if only_with_ai:
            stmt = stmt.where(has_ai_clause())

        try:
            with self.SessionLocal() as session:
                return [self._to_question(record) for record in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load questions: {e}") from e

    def count(self) -> int:
        try:
            with self.SessionLocal() as session:
                return session.execute(select(func.count()).select_from(QuestionRecord)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count questions: {e}") from e

    def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _to_question(record: QuestionRecord) -> Question:
        result = AIResult(
            question=record.ai_question or None,
            options=record.ai_options if isinstance(record.ai_options, dict) else None,
            correct_answer=record.ai_correct_answer or None,
            correct_answer_text=record.ai_correct_answer_text or None,
            topic=record.ai_topic or None,
            explanation=record.ai_explanation or None,
            notes=record.ai_notes if isinstance(record.ai_notes, list) else None,
        )
        return Question(
            header=record.header,
            raw=record.raw or "",
            ai_raw=record.ai_raw or "",
            ai_result=None if result.is_empty() else result,
        )
