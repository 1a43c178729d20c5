from concurrent.futures import ThreadPoolExecutor

import pytest

from quizrank.core.errors import (
    ConcurrencyConflictError,
    InvalidArgumentError,
    NotFoundError,
    StorageUnavailableError,
)
from quizrank.core.services.result_aggregator import ResultAggregator
from quizrank.core.services.result_store import InMemoryResultStore


@pytest.fixture
def aggregator(store, catalog, clock) -> ResultAggregator:
    return ResultAggregator(store, catalog, clock=clock)


def test_first_submission_creates_record(aggregator, store):
    report = aggregator.submit_result("u1", "five", 4, 5, 80, 42, username="alice")

    assert report.is_first_attempt
    assert report.is_new_best
    assert report.current_attempt_count == 1
    record = store.get("u1", "five")
    assert record.attempts == 1
    assert record.score == 4
    assert record.percentage == 80
    assert record.time_spent == 42
    assert record.username == "alice"


def test_lower_score_keeps_best_and_counts_attempt(aggregator, store):
    aggregator.submit_result("u1", "five", 5, 5, 100, 30)
    first = store.get("u1", "five")

    report = aggregator.submit_result("u1", "five", 3, 5, 60, 10)

    assert not report.is_new_best
    assert not report.is_first_attempt
    assert report.current_attempt_count == 2
    assert report.score == 3
    assert report.percentage == 60
    record = store.get("u1", "five")
    assert (record.score, record.percentage, record.time_spent) == (5, 100, 30)
    assert record.attempts == 2
    assert record.completed_at > first.completed_at


def test_tied_score_is_not_a_new_best(aggregator, store):
    aggregator.submit_result("u1", "five", 4, 5, 80, 50)

    report = aggregator.submit_result("u1", "five", 4, 5, 80, 5)

    assert not report.is_new_best
    assert store.get("u1", "five").time_spent == 50


def test_higher_score_overwrites_best(aggregator, store):
    aggregator.submit_result("u1", "five", 2, 5, 40, 50)

    report = aggregator.submit_result("u1", "five", 4, 5, 80, 70)

    assert report.is_new_best
    assert report.current_attempt_count == 2
    record = store.get("u1", "five")
    assert (record.score, record.percentage, record.time_spent, record.attempts) == (4, 80, 70, 2)


def test_missing_time_is_recorded_as_zero(aggregator, store):
    aggregator.submit_result("u1", "five", 1, 5, 20, None)

    assert store.get("u1", "five").time_spent == 0


def test_unknown_quiz_raises_not_found(aggregator, store):
    with pytest.raises(NotFoundError):
        aggregator.submit_result("u1", "missing", 1, 1, 100, 3)
    assert store.list_by_user("u1") == []


@pytest.mark.parametrize(
    ("correct", "total", "percentage", "time_spent"),
    [(-1, 5, 0, 1), (1, -5, 0, 1), (6, 5, 100, 1), (1, 5, 20, -1), (1, 5, 120, 1)],
)
def test_invalid_arguments_are_rejected_before_storage(aggregator, store, correct, total, percentage, time_spent):
    with pytest.raises(InvalidArgumentError):
        aggregator.submit_result("u1", "five", correct, total, percentage, time_spent)
    assert store.get("u1", "five") is None


def test_concurrent_submissions_for_one_key_lose_no_updates(aggregator, store):
    def submit(_: int):
        return aggregator.submit_result("u1", "ten", 1, 10, 10, 5)

    with ThreadPoolExecutor(max_workers=16) as pool:
        reports = list(pool.map(submit, range(100)))

    record = store.get("u1", "ten")
    assert record.attempts == 100
    assert record.score == 1
    assert len(store.list_by_quiz("ten")) == 1
    assert sum(report.is_first_attempt for report in reports) == 1
    assert sorted(report.current_attempt_count for report in reports) == list(range(1, 101))


class ConflictingStore(InMemoryResultStore):
    """Store whose first ``conflicts`` writes lose a simulated race."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.save_calls = 0

    def save(self, record, expected_version):
        self.save_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise ConcurrencyConflictError("lost the race")
        return super().save(record, expected_version)


def test_conflict_is_retried(catalog, clock):
    store = ConflictingStore(conflicts=2)
    aggregator = ResultAggregator(store, catalog, max_retries=3, clock=clock)

    report = aggregator.submit_result("u1", "five", 3, 5, 60, 10)

    assert report.current_attempt_count == 1
    assert store.save_calls == 3


def test_persistent_conflicts_surface_as_storage_unavailable(catalog, clock):
    store = ConflictingStore(conflicts=100)
    aggregator = ResultAggregator(store, catalog, max_retries=2, clock=clock)

    with pytest.raises(StorageUnavailableError):
        aggregator.submit_result("u1", "five", 3, 5, 60, 10)
    assert store.save_calls == 3
    assert store.get("u1", "five") is None
