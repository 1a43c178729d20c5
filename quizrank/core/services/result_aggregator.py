"""Service applying the best-score policy to submitted attempts."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging

from quizrank.constants.result_constants import DEFAULT_MAX_WRITE_RETRIES
from quizrank.core.errors import (
    ConcurrencyConflictError,
    InvalidArgumentError,
    NotFoundError,
    StorageUnavailableError,
)
from quizrank.core.models import ResultRecord, SubmissionReport
from quizrank.core.services.quiz_catalog import QuizCatalog
from quizrank.core.services.result_store import ResultStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResultAggregator:
    """Records attempts and keeps the best result per (user, quiz).

    Each submission is one read-modify-write against the store, held under the
    store's key lock. A lost compare-and-set race (a writer outside this
    process) re-reads and retries, bounded by ``max_retries``.
    """

    def __init__(
        self,
        store: ResultStore,
        catalog: QuizCatalog,
        max_retries: int = DEFAULT_MAX_WRITE_RETRIES,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must not be negative.")
        self._store = store
        self._catalog = catalog
        self._max_retries = max_retries
        self._clock = clock

    def submit_result(
        self,
        user_id: str,
        quiz_id: str,
        correct_count: int,
        total_questions: int,
        percentage: int,
        time_spent: int | None,
        username: str | None = None,
    ) -> SubmissionReport:
        time_spent = 0 if time_spent is None else time_spent
        self._validate(user_id, correct_count, total_questions, percentage, time_spent)
        if not self._catalog.has_quiz(quiz_id):
            raise NotFoundError(f"Quiz {quiz_id!r} not found.")

        for attempt in range(self._max_retries + 1):
            try:
                with self._store.key_lock(user_id, quiz_id):
                    current = self._store.get(user_id, quiz_id)
                    updated, is_new_best = self._apply_submission(
                        current,
                        user_id=user_id,
                        quiz_id=quiz_id,
                        username=username,
                        correct_count=correct_count,
                        total_questions=total_questions,
                        percentage=percentage,
                        time_spent=time_spent,
                    )
                    expected_version = current.version if current is not None else None
                    stored = self._store.save(updated, expected_version=expected_version)
            except ConcurrencyConflictError:
                logger.debug(
                    "Write conflict for user %s on quiz %s (try %d of %d)",
                    user_id,
                    quiz_id,
                    attempt + 1,
                    self._max_retries + 1,
                )
                continue

            if is_new_best:
                logger.info(
                    "New best for user %s on quiz %s: %d/%d",
                    user_id,
                    quiz_id,
                    correct_count,
                    total_questions,
                )
            return SubmissionReport(
                score=correct_count,
                total_questions=total_questions,
                percentage=percentage,
                is_new_best=is_new_best,
                is_first_attempt=current is None,
                current_attempt_count=stored.attempts,
            )

        logger.warning("Giving up on result write for user %s on quiz %s", user_id, quiz_id)
        raise StorageUnavailableError(
            f"Could not record result for user {user_id!r} on quiz {quiz_id!r}: "
            f"too many concurrent updates."
        )

    def _apply_submission(
        self,
        current: ResultRecord | None,
        *,
        user_id: str,
        quiz_id: str,
        username: str | None,
        correct_count: int,
        total_questions: int,
        percentage: int,
        time_spent: int,
    ) -> tuple[ResultRecord, bool]:
        """Return the record to write and whether it holds a new best."""
        now = self._clock()
        if current is None:
            record = ResultRecord(
                user_id=user_id,
                quiz_id=quiz_id,
                username=username or user_id,
                score=correct_count,
                total_questions=total_questions,
                percentage=percentage,
                time_spent=time_spent,
                attempts=1,
                completed_at=now,
            )
            return record, True

        # Ties are not improvements.
        is_new_best = correct_count > current.score
        record = ResultRecord(
            user_id=user_id,
            quiz_id=quiz_id,
            username=username or current.username,
            score=correct_count if is_new_best else current.score,
            total_questions=total_questions if is_new_best else current.total_questions,
            percentage=percentage if is_new_best else current.percentage,
            time_spent=time_spent if is_new_best else current.time_spent,
            attempts=current.attempts + 1,
            completed_at=now,
            version=current.version,
        )
        return record, is_new_best

    @staticmethod
    def _validate(
        user_id: str,
        correct_count: int,
        total_questions: int,
        percentage: int,
        time_spent: int,
    ) -> None:
        if not user_id:
            raise InvalidArgumentError("A user id is required.")
        if correct_count < 0 or total_questions < 0:
            raise InvalidArgumentError("Correct count and total questions must not be negative.")
        if correct_count > total_questions:
            raise InvalidArgumentError("Correct count cannot exceed the number of questions.")
        if not 0 <= percentage <= 100:
            raise InvalidArgumentError("Percentage must be between 0 and 100.")
        if time_spent < 0:
            raise InvalidArgumentError("Time spent must not be negative.")
