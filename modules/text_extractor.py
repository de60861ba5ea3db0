"""
Text Extraction Module
--------------------
Splits scraped exam dumps into individual questions.
"""

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from modules.questions import Question

logger = logging.getLogger(__name__)

QUESTION_MARKER = re.compile(r"Topic\s+\d+\s*Question\s+#\d+")


class TextExtractor:
    """Turns lines of scraped text into Question records."""

    def __init__(self, marker: re.Pattern = QUESTION_MARKER):
        self.marker = marker

    def is_header(self, line: str) -> bool:
        return self.marker.search(line) is not None

    def extract_questions(self, lines: Iterable[str]) -> list[Question]:
        """
        Split lines into questions at each header line.

        Lines before the first header are discarded.

        Args:
            lines: Lines of text without trailing newlines

        Returns:
            Questions in input order
        """
        questions = []
        current = None

        for line in lines:
            if self.is_header(line):
                current = Question(header=line)
                questions.append(current)
            elif current is not None:
                current.append_line(line)

        return questions

    def load_files(self, paths: Iterable[str | Path]) -> list[Question]:
        """
        Read each file in order and concatenate the questions found.

        Duplicate headers across files are kept; the store collapses them.

        Args:
            paths: Text files to read

        Returns:
            Questions from all files
        """
        questions = []
        for path in paths:
            path = Path(path)
            lines = path.read_text(encoding="utf-8").splitlines()
            file_questions = self.extract_questions(lines)
            logger.info(f"Extracted {len(file_questions)} questions from {path}")
            questions.extend(file_questions)

        return questions
