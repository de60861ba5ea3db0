"""Tests for the SQLite question store."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine, select, text

import db.store as store_module
from db.models import QuestionRecord
from db.store import QuestionStore, StoreError
from modules.questions import AIResult, Question


class TestEnsureReady:
    """Tests for schema creation and migration."""

    def test_is_idempotent(self, store):
        store.ensure_ready()
        store.ensure_ready()

        assert store.count() == 0

    def test_creates_missing_parent_directory(self, tmp_path):
        store = QuestionStore(tmp_path / "nested" / "dir" / "q.db")
        store.ensure_ready()

        assert (tmp_path / "nested" / "dir" / "q.db").exists()
        store.close()

    def test_adds_columns_to_legacy_table(self, tmp_path):
        db_path = tmp_path / "legacy.db"
        engine = create_engine(f"sqlite:///{db_path}")
        with engine.connect() as conn:
            conn.execute(text(
                "CREATE TABLE questions ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "header TEXT NOT NULL UNIQUE, raw TEXT, ai_raw TEXT)"
            ))
            conn.execute(text(
                "INSERT INTO questions (header, raw, ai_raw) VALUES ('Topic 1 Question #1', 'old', '')"
            ))
            conn.commit()
        engine.dispose()

        store = QuestionStore(db_path)
        store.ensure_ready()
        store.upsert(Question(header="Topic 1 Question #2", raw="new", ai_raw="reply"))

        headers = {q.header for q in store.get_all(only_with_ai=False)}
        assert headers == {"Topic 1 Question #1", "Topic 1 Question #2"}
        assert store.has_ai_result("Topic 1 Question #2")
        store.close()

    def test_unusable_path_raises_store_error(self, tmp_path):
        # A directory cannot be opened as a database file
        store = QuestionStore(tmp_path)

        with pytest.raises(StoreError):
            store.ensure_ready()


class TestUpsert:
    """Tests for insert-or-replace semantics."""

    def test_repeated_upsert_keeps_one_row(self, store, enriched_question):
        store.upsert(enriched_question)
        store.upsert(enriched_question)

        questions = store.get_all(only_with_ai=False)
        assert store.count() == 1
        assert [q.header for q in questions] == ["Topic 1 Question #1"]

    def test_no_duplicate_headers_across_many_upserts(self, store):
        headers = [f"Topic 1 Question #{i % 4}" for i in range(20)]
        for i, header in enumerate(headers):
            store.upsert(Question(header=header, raw=f"body {i}"))

        stored = [q.header for q in store.get_all(only_with_ai=False)]
        assert sorted(stored) == sorted(set(headers))

    def test_last_write_wins_without_merging(self, store, enriched_question):
        store.upsert(enriched_question)
        store.upsert(Question(header=enriched_question.header, raw="replacement"))

        [question] = store.get_all(only_with_ai=False)
        assert question.raw == "replacement"
        assert question.ai_raw == ""
        assert question.ai_result is None

    def test_round_trips_all_fields(self, store, enriched_question, ai_result):
        store.upsert(enriched_question)

        [question] = store.get_all()
        assert question.raw == enriched_question.raw
        assert question.ai_raw == enriched_question.ai_raw
        assert question.ai_result == ai_result

    def test_partial_result_is_rebuilt(self, store):
        partial = AIResult(explanation="Only this parsed.")
        store.upsert(Question(header="Topic 1 Question #9", ai_raw="{...}", ai_result=partial))

        [question] = store.get_all()
        assert question.ai_result == partial

    def test_updated_at_refreshes_and_created_at_stays(self, store, monkeypatch):
        times = iter([datetime(2024, 1, 1, 12, 0), datetime(2024, 1, 2, 12, 0)])
        monkeypatch.setattr(store_module, "utcnow", lambda: next(times))

        store.upsert(Question(header="Topic 1 Question #1", raw="v1"))
        store.upsert(Question(header="Topic 1 Question #1", raw="v2"))

        with store.SessionLocal() as session:
            record = session.scalars(select(QuestionRecord)).one()
        assert record.created_at == datetime(2024, 1, 1, 12, 0)
        assert record.updated_at == datetime(2024, 1, 2, 12, 0)


class TestHasAIResult:
    """Tests for the skip predicate."""

    def test_unknown_header(self, store):
        assert not store.has_ai_result("Topic 9 Question #9")

    def test_row_without_ai(self, store):
        store.upsert(Question(header="Topic 1 Question #1", raw="body"))

        assert not store.has_ai_result("Topic 1 Question #1")

    def test_undecodable_reply_counts(self, store):
        store.upsert(Question(header="Topic 1 Question #1", ai_raw="not json at all"))

        assert store.has_ai_result("Topic 1 Question #1")

    def test_decoded_question_counts(self, store):
        store.upsert(
            Question(header="Topic 1 Question #1", ai_result=AIResult(question="Q?"))
        )

        assert store.has_ai_result("Topic 1 Question #1")

    def test_stays_true_after_unrelated_update(self, store, enriched_question):
        store.upsert(enriched_question)
        enriched_question.raw = "edited body"
        store.upsert(enriched_question)

        assert store.has_ai_result(enriched_question.header)


class TestGetAll:
    """Tests for bulk retrieval."""

    def test_filters_to_questions_with_ai(self, store, enriched_question):
        store.upsert(enriched_question)
        store.upsert(Question(header="Topic 1 Question #2", raw="pending"))

        with_ai = store.get_all(only_with_ai=True)
        everything = store.get_all(only_with_ai=False)

        assert [q.header for q in with_ai] == ["Topic 1 Question #1"]
        assert {q.header for q in everything} == {"Topic 1 Question #1", "Topic 1 Question #2"}

    def test_default_is_only_with_ai(self, store):
        store.upsert(Question(header="Topic 1 Question #2", raw="pending"))

        assert store.get_all() == []


class TestCount:
    """Tests for the row count."""

    def test_counts_every_row(self, store, enriched_question):
        store.upsert(enriched_question)
        store.upsert(Question(header="Topic 1 Question #2", raw="pending"))

        assert store.count() == 2

    def test_missing_table_raises_store_error(self, store):
        with store.engine.begin() as conn:
            conn.execute(text("DROP TABLE questions"))

        with pytest.raises(StoreError):
            store.count()
