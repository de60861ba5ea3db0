"""Tests for question models and JSON files."""

import json

import pytest

from modules.questions import Question, load_questions_json, save_questions_json


class TestQuestionJSON:
    """Tests for saving and loading question files."""

    def test_saved_file_uses_camel_case_keys(self, tmp_path, enriched_question):
        path = save_questions_json([enriched_question], tmp_path / "out" / "questions.json")

        [item] = json.loads(path.read_text(encoding="utf-8"))
        assert set(item) == {"header", "raw", "aiRaw", "aiResult"}
        assert item["aiResult"]["correctAnswerText"] == "Consumption-based model"

    def test_load_returns_saved_questions(self, tmp_path, enriched_question):
        pending = Question(header="Topic 1 Question #2", raw="pending\n")
        path = save_questions_json([enriched_question, pending], tmp_path / "questions.json")

        loaded = load_questions_json(path)

        assert loaded == [enriched_question, pending]

    def test_missing_file_is_empty(self, tmp_path):
        assert load_questions_json(tmp_path / "missing.json") == []

    def test_keys_are_matched_case_insensitively(self, tmp_path):
        path = tmp_path / "questions.json"
        path.write_text(
            json.dumps([{"Header": "Topic 1 Question #1", "AIRaw": "reply", "AIResult": {"Topic": "Storage"}}]),
            encoding="utf-8",
        )

        [question] = load_questions_json(path)

        assert question.header == "Topic 1 Question #1"
        assert question.ai_raw == "reply"
        assert question.ai_result.topic == "Storage"

    def test_non_array_is_rejected(self, tmp_path):
        path = tmp_path / "questions.json"
        path.write_text('{"header": "x"}', encoding="utf-8")

        with pytest.raises(ValueError):
            load_questions_json(path)


class TestQuestion:
    """Tests for Question helpers."""

    def test_append_line(self):
        question = Question(header="Topic 1 Question #1")
        question.append_line("first")
        question.append_line("")

        assert question.raw == "first\n\n"

    def test_has_any_ai(self, ai_result):
        assert not Question(header="h").has_any_ai()
        assert not Question(header="h", ai_raw=" \n").has_any_ai()
        assert Question(header="h", ai_raw="text").has_any_ai()
        assert Question(header="h", ai_result=ai_result).has_any_ai()
