from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quizrank.core.models import Question, Quiz
from quizrank.core.results_manager import ResultsManager
from quizrank.core.services.quiz_catalog import QuizCatalog
from quizrank.core.services.result_store import InMemoryResultStore


def make_quiz(quiz_id: str, answer_key: list[int], option_count: int = 4) -> Quiz:
    options = [f"Option {letter}" for letter in "ABCDEFGHIJ"[:option_count]]
    return Quiz(
        quiz_id=quiz_id,
        title=quiz_id.title(),
        questions=[Question(options=list(options), answer_index=index) for index in answer_key],
    )


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def catalog() -> QuizCatalog:
    catalog = QuizCatalog()
    catalog.add_quiz(make_quiz("five", [0, 1, 2, 3, 0]))
    catalog.add_quiz(make_quiz("ten", [1] * 10))
    catalog.add_quiz(make_quiz("empty", []))
    return catalog


@pytest.fixture
def store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manager(catalog: QuizCatalog, store: InMemoryResultStore) -> ResultsManager:
    return ResultsManager(catalog=catalog, store=store)
