"""
Note Rendering Module
---------------------
Turns enriched questions into Anki "Basic" notes (HTML front and back).
"""

import html
import logging
from dataclasses import dataclass, field

from config.settings import DEFAULT_MODEL_NAME, DEFAULT_TAG
from modules.questions import AIResult, Question
from modules.response_decoder import decode

logger = logging.getLogger(__name__)

# Scraped pages append the community discussion after the question body
STOP_PREFIXES = ("correct answer:", "references:", "select and place:")
STOP_FRAGMENTS = ("highly voted", "upvoted", "most recent")
URL_PREFIXES = ("http://", "https://")
DISCUSSION_ICON = "\uf147"


@dataclass
class FlashcardNote:
    """A rendered note in the shape AnkiConnect expects."""
    deck_name: str
    model_name: str
    front: str
    back: str
    tags: list[str] = field(default_factory=list)

    def to_anki(self) -> dict:
        return {
            "deckName": self.deck_name,
            "modelName": self.model_name,
            "fields": {"Front": self.front, "Back": self.back},
            "tags": list(self.tags),
        }


def _is_noise(line: str) -> bool:
    lowered = line.lower()
    return (
        lowered.startswith(STOP_PREFIXES)
        or any(fragment in lowered for fragment in STOP_FRAGMENTS)
        or lowered.startswith(URL_PREFIXES)
        or line.startswith(DISCUSSION_ICON)
    )


def clean_question_text(raw: str) -> str:
    """
    Cut scraped question text down to the question itself.

    Leading blank lines are dropped and everything from the first discussion,
    answer-reveal or link line onwards is removed.
    """
    if not raw or not raw.strip():
        return ""

    cleaned = []
    for line in raw.splitlines():
        stripped = line.strip()
        if not cleaned and not stripped:
            continue
        if _is_noise(stripped):
            break
        cleaned.append(stripped)

    return "\n".join(cleaned).strip()


def _escape(text: str) -> str:
    return html.escape(text, quote=True)


class NoteRenderer:
    """Builds flashcard notes for enriched questions."""

    def __init__(
        self,
        deck_name: str,
        model_name: str = DEFAULT_MODEL_NAME,
        tags: list[str] | None = None,
    ):
        """
        Initialize the renderer.

        Args:
            deck_name: Target Anki deck
            model_name: Anki note type
            tags: Extra tags added after the default tag
        """
        self.deck_name = deck_name
        self.model_name = model_name
        self.tags = self._format_tags([DEFAULT_TAG] + list(tags or []))

    def _format_tags(self, tags: list[str]) -> list[str]:
        """
        Clean tags for Anki: spaces become underscores and anything other
        than letters, digits, '_' and '-' is removed. Order is kept.
        """
        clean_tags = []
        for tag in tags:
            clean_tag = tag.replace(" ", "_")
            clean_tag = "".join(c for c in clean_tag if c.isalnum() or c in "_-")
            if clean_tag and clean_tag not in clean_tags:
                clean_tags.append(clean_tag)
        return clean_tags

    def _caption(self, header: str, style: str) -> str:
        return f"<div style='{style}'>{_escape(header)}</div>\n"

    def _format_front_options(self, result: AIResult | None) -> str:
        if result is None or not result.options:
            return ""

        lines = [
            "<div style='margin-top: 15px;'>",
            "<ul style='list-style-type: none; padding-left: 0; margin: 10px 0;'>",
        ]
        for letter, text in result.sorted_options():
            lines.append(
                f"<li style='margin: 8px 0; padding: 5px;'><strong>{_escape(letter)}:</strong> {_escape(text)}</li>"
            )
        lines += ["</ul>", "</div>"]
        return "\n".join(lines) + "\n"

    def _format_back(self, result: AIResult | None, ai_raw: str) -> str:
        """Render the answer side, or the raw reply if nothing could be decoded."""
        if result is None:
            return f"<pre>{_escape(ai_raw or '')}</pre>"

        parts = []

        if result.question and result.question.strip():
            parts.append(
                "<div style='font-weight: bold; font-size: 1.1em; margin-bottom: 10px;'>"
                f"{_escape(result.question)}</div>"
            )

        if result.options:
            correct = result.correct_letters()
            parts.append("<div style='margin-bottom: 10px;'>")
            parts.append("<strong>Options:</strong>")
            parts.append("<ul style='margin-top: 5px;'>")
            for letter, text in result.sorted_options():
                style = "color: green; font-weight: bold;" if letter.upper() in correct else ""
                parts.append(
                    f"<li style='{style}'><strong>{_escape(letter)}:</strong> {_escape(text)}</li>"
                )
            parts.append("</ul>")
            parts.append("</div>")

        if result.correct_answer and result.correct_answer.strip():
            parts.append("<div style='margin-bottom: 10px;'>")
            parts.append(
                "<strong>Correct Answer:</strong> "
                f"<span style='color: green; font-weight: bold;'>{_escape(result.correct_answer)}</span>"
            )
            if result.correct_answer_text and result.correct_answer_text.strip():
                parts.append(
                    "<div style='margin-left: 20px; margin-top: 5px;'>"
                    f"{_escape(result.correct_answer_text)}</div>"
                )
            parts.append("</div>")

        if result.explanation and result.explanation.strip():
            parts.append("<div style='margin-bottom: 10px;'>")
            parts.append("<strong>Explanation:</strong>")
            parts.append(
                f"<div style='margin-left: 20px; margin-top: 5px;'>{_escape(result.explanation)}</div>"
            )
            parts.append("</div>")

        if result.topic and result.topic.strip():
            parts.append(
                f"<div style='margin-bottom: 10px;'><em>Topic: {_escape(result.topic)}</em></div>"
            )

        notes = [note for note in (result.notes or []) if note.strip()]
        if notes:
            parts.append("<div style='margin-bottom: 10px;'>")
            parts.append("<strong>Notes:</strong>")
            parts.append("<ul style='margin-top: 5px;'>")
            parts.extend(f"<li>{_escape(note)}</li>" for note in notes)
            parts.append("</ul>")
            parts.append("</div>")

        return "\n".join(parts) + "\n" if parts else ""

    def render(self, question: Question) -> FlashcardNote | None:
        """
        Render one question as a note.

        Args:
            question: The question to render

        Returns:
            The note, or None if the question has no AI content at all
        """
        if not question.has_any_ai():
            return None

        header = (question.header or "").strip()
        result = question.ai_result or decode(question.ai_raw)
        if result is not None and result.is_empty():
            # Nothing recognisable was decoded; show the raw reply instead
            result = None
        cleaned = clean_question_text(question.raw or "")

        front = ""
        if header:
            front += self._caption(
                header, "font-weight: bold; color: #666; font-size: 0.9em; margin-bottom: 10px;"
            )
        front += f"<div>{_escape(cleaned).replace(chr(10), '<br>')}</div>\n"
        front += self._format_front_options(result)

        back = self._format_back(result, question.ai_raw)
        if header:
            back = self._caption(
                header,
                "font-weight: bold; color: #999; font-size: 0.85em; margin-bottom: 8px; "
                "border-bottom: 1px solid #ddd; padding-bottom: 5px;",
            ) + back

        return FlashcardNote(
            deck_name=self.deck_name,
            model_name=self.model_name,
            front=front,
            back=back,
            tags=list(self.tags),
        )

    def render_all(self, questions: list[Question]) -> list[FlashcardNote]:
        """Render every question that has AI content, in order."""
        notes = []
        for question in questions:
            note = self.render(question)
            if note is None:
                logger.debug(f"No AI content for {question.header}; no note rendered")
                continue
            notes.append(note)

        logger.info(f"Rendered {len(notes)} notes from {len(questions)} questions")
        return notes
