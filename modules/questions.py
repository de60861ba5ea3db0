"""
Question Models Module
---------------------
Scraped exam questions and the structured AI content attached to them.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


def _lookup(data: dict, key: str):
    """Read `key` from `data`, falling back to a case-insensitive match."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return None


@dataclass
class AIResult:
    """Structured content decoded from an AI reply. Every field is optional."""

    question: str | None = None
    options: dict[str, str] | None = None
    correct_answer: str | None = None
    correct_answer_text: str | None = None
    topic: str | None = None
    explanation: str | None = None
    notes: list[str] | None = None

    def sorted_options(self) -> list[tuple[str, str]]:
        """Options in ascending letter order."""
        return sorted((self.options or {}).items())

    def correct_letters(self) -> set[str]:
        """The comma-separated correct answer as a set of upper-case letters."""
        if not self.correct_answer:
            return set()
        return {
            part.strip().upper()
            for part in self.correct_answer.split(",")
            if part.strip()
        }

    def is_empty(self) -> bool:
        return not any(
            (
                self.question,
                self.options,
                self.correct_answer,
                self.correct_answer_text,
                self.topic,
                self.explanation,
                self.notes,
            )
        )

    def to_dict(self) -> dict:
        """
        Convert the result to a dictionary using the AI reply's key names.

        Returns:
            Dictionary representation of the result
        """
        return {
            "question": self.question,
            "options": self.options,
            "correctAnswer": self.correct_answer,
            "correctAnswerText": self.correct_answer_text,
            "topic": self.topic,
            "explanation": self.explanation,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AIResult":
        """
        Build a result from a decoded JSON object.

        Only the documented keys are read. A value of the wrong type is
        treated as absent rather than as an error.

        Args:
            data: Decoded JSON object

        Returns:
            AIResult with whatever fields were usable
        """
        def text(key: str) -> str | None:
            value = _lookup(data, key)
            return value if isinstance(value, str) else None

        options = None
        raw_options = _lookup(data, "options")
        if isinstance(raw_options, dict):
            options = {
                str(letter).strip().upper(): value
                for letter, value in raw_options.items()
                if isinstance(value, str)
            }

        notes = None
        raw_notes = _lookup(data, "notes")
        if isinstance(raw_notes, list):
            notes = [note for note in raw_notes if isinstance(note, str)]

        return cls(
            question=text("question"),
            options=options,
            correct_answer=text("correctAnswer"),
            correct_answer_text=text("correctAnswerText"),
            topic=text("topic"),
            explanation=text("explanation"),
            notes=notes,
        )


@dataclass
class Question:
    """A scraped exam question identified by its "Topic N Question #M" header."""

    header: str
    raw: str = ""
    ai_raw: str = ""
    ai_result: AIResult | None = field(default=None)

    def append_line(self, line: str) -> None:
        self.raw += line + "\n"

    def has_any_ai(self) -> bool:
        return bool(self.ai_raw and self.ai_raw.strip()) or self.ai_result is not None

    def to_dict(self) -> dict:
        return {
            "header": self.header,
            "raw": self.raw,
            "aiRaw": self.ai_raw,
            "aiResult": self.ai_result.to_dict() if self.ai_result else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        """
        Create a question from a dictionary.

        Keys are matched case-insensitively so files written by other tools
        still load.

        Args:
            data: Dictionary representation of a question

        Returns:
            Question instance
        """
        ai_result = _lookup(data, "aiResult")
        return cls(
            header=_lookup(data, "header") or "",
            raw=_lookup(data, "raw") or "",
            ai_raw=_lookup(data, "aiRaw") or "",
            ai_result=AIResult.from_dict(ai_result) if isinstance(ai_result, dict) else None,
        )


def save_questions_json(questions: list[Question], file_path: str | Path) -> Path:
    """Write questions to an indented JSON array."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as file:
        json.dump([q.to_dict() for q in questions], file, indent=2, ensure_ascii=False)
    logger.info(f"Saved {len(questions)} questions to {file_path}")
    return file_path


def load_questions_json(file_path: str | Path) -> list[Question]:
    """
    Load questions from a JSON array written by save_questions_json.

    A missing file yields an empty list.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        logger.warning(f"Question file not found: {file_path}")
        return []

    with open(file_path, encoding="utf-8") as file:
        data = json.load(file)

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of questions in {file_path}")

    return [Question.from_dict(item) for item in data if isinstance(item, dict)]
