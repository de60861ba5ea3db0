"""Shared fixtures for the test suite."""

import pytest

from db.store import QuestionStore
from modules.llm_interface import ProviderError
from modules.questions import AIResult, Question
from modules.response_decoder import encode

SCRAPED_BODY = """
A company plans to migrate its workloads to Azure.
Which cloud model lets the company pay only for the resources it uses?
A. Capital expenditure
B. Consumption-based model
C. Reserved capacity
D. Fixed pricing
Correct Answer: B
Highly Voted
  user123 2 years, 1 month ago
https://learn.microsoft.com/en-us/azure/
"""


class FakeProvider:
    """Scripted AIProvider. A reply that is an exception instance is raised."""

    def __init__(self, replies=None, default=None):
        self.replies = dict(replies or {})
        self.default = default
        self.calls = []

    def run(self, content):
        self.calls.append(content)
        reply = self.replies.get(content, self.default)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise ProviderError("no scripted reply")
        return reply


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def store(tmp_path):
    store = QuestionStore(tmp_path / "questions.db")
    store.ensure_ready()
    yield store
    store.close()


@pytest.fixture
def ai_result():
    return AIResult(
        question="Which cloud model lets a company pay only for the resources it uses?",
        options={
            "A": "Capital expenditure",
            "B": "Consumption-based model",
            "C": "Reserved capacity",
            "D": "Fixed pricing",
        },
        correct_answer="B",
        correct_answer_text="Consumption-based model",
        topic="Cloud Concepts",
        explanation="Cloud services are billed by actual consumption.",
        notes=["OpEx replaces CapEx in the cloud", "Pay-as-you-go"],
    )


@pytest.fixture
def enriched_question(ai_result):
    return Question(
        header="Topic 1 Question #1",
        raw=SCRAPED_BODY,
        ai_raw=encode(ai_result),
        ai_result=ai_result,
    )
