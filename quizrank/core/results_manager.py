"""Business logic for recording and querying quiz results, shared by the API."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path

from quizrank.constants.result_constants import DEFAULT_MAX_WRITE_RETRIES
from quizrank.core.errors import InvalidArgumentError, NotFoundError
from quizrank.core.models import (
    AttemptSubmission,
    LeaderboardEntry,
    Quiz,
    ResultRecord,
    SubmissionReport,
    UserStats,
)
from quizrank.core.quiz_loader import load_quizzes_from_directory
from quizrank.core.scoring import score_answers
from quizrank.core.services.leaderboard import LeaderboardRanker
from quizrank.core.services.quiz_catalog import QuizCatalog
from quizrank.core.services.result_aggregator import ResultAggregator
from quizrank.core.services.result_store import InMemoryResultStore, ResultStore
from quizrank.core.services.statistics import StatisticsCalculator

logger = logging.getLogger(__name__)


class ResultsManager:
    """Facade for result services: Catalog, Store, Aggregator, Statistics and Leaderboard.

    One instance is the process-scoped state of the application; create it at
    startup and hand it to whatever serves requests.
    """

    def __init__(
        self,
        catalog: QuizCatalog | None = None,
        store: ResultStore | None = None,
        max_retries: int = DEFAULT_MAX_WRITE_RETRIES,
    ) -> None:
        # Services
        self._catalog = catalog if catalog is not None else QuizCatalog()
        self._store = store if store is not None else InMemoryResultStore()
        self._aggregator = ResultAggregator(self._store, self._catalog, max_retries=max_retries)
        self._statistics = StatisticsCalculator(self._store)
        self._leaderboard = LeaderboardRanker(self._store)

    # --- Quiz Catalog Delegation ---

    def add_quiz(self, quiz: Quiz) -> Quiz:
        return self._catalog.add_quiz(quiz)

    def get_quiz(self, quiz_id: str) -> Quiz:
        return self._catalog.get_quiz(quiz_id)

    def load_quizzes_from_directory(self, directory: Path) -> int:
        """Register every quiz file in ``directory`` and return how many were loaded."""
        quizzes = load_quizzes_from_directory(directory)
        for quiz in quizzes:
            self._catalog.add_quiz(quiz)
        return len(quizzes)

    # --- Submissions ---

    def submit_answers(
        self,
        user_id: str,
        quiz_id: str,
        answers: Sequence[int | None] | None,
        time_spent: int | None = 0,
        username: str | None = None,
    ) -> SubmissionReport:
        """Score a completed attempt against the quiz's answer key and record it."""
        if not quiz_id or answers is None:
            raise InvalidArgumentError("Quiz ID and answers are required.")
        quiz = self._catalog.get_quiz(quiz_id)
        scored = score_answers(quiz.answer_key, answers)
        return self._aggregator.submit_result(
            user_id,
            quiz_id,
            scored.correct_count,
            scored.total_questions,
            scored.percentage,
            time_spent,
            username=username,
        )

    def submit_attempt(self, submission: AttemptSubmission) -> SubmissionReport:
        return self.submit_answers(
            submission.user_id,
            submission.quiz_id,
            submission.answers,
            submission.time_spent,
            username=submission.username,
        )

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
        """Record an attempt that was already scored by the caller."""
        return self._aggregator.submit_result(
            user_id,
            quiz_id,
            correct_count,
            total_questions,
            percentage,
            time_spent,
            username=username,
        )

    # --- Result History ---

    def get_user_results(self, user_id: str) -> list[ResultRecord]:
        """Return the user's records, most recently completed first."""
        records = self._store.list_by_user(user_id)
        return sorted(records, key=lambda r: r.completed_at, reverse=True)

    def get_quiz_result(self, user_id: str, quiz_id: str) -> ResultRecord | None:
        return self._store.get(user_id, quiz_id)

    def delete_quiz_result(self, user_id: str, quiz_id: str) -> None:
        if not self._store.delete(user_id, quiz_id):
            raise NotFoundError(f"No result for quiz {quiz_id!r}.")
        logger.info("Deleted result of user %s on quiz %s", user_id, quiz_id)

    # --- Statistics & Leaderboard Delegation ---

    def get_stats(self, user_id: str) -> UserStats:
        return self._statistics.compute_stats(user_id)

    def get_leaderboard(self, quiz_id: str, limit: object = None) -> list[LeaderboardEntry]:
        return self._leaderboard.rank_leaderboard(quiz_id, limit)
