"""Service computing per-user aggregate statistics from result records."""

from __future__ import annotations

from quizrank.constants.result_constants import PERFECT_PERCENTAGE
from quizrank.core.models import UserStats
from quizrank.core.scoring import round_half_up
from quizrank.core.services.result_store import ResultStore


class StatisticsCalculator:
    """Read-only view over a user's result records."""

    def __init__(self, store: ResultStore) -> None:
        self._store = store

    def compute_stats(self, user_id: str) -> UserStats:
        """Summarize best results across every quiz the user attempted.

        Time spent sums the best attempt of each quiz, not every attempt.
        """
        records = self._store.list_by_user(user_id)
        if not records:
            return UserStats()

        total_quizzes = len(records)
        return UserStats(
            total_quizzes=total_quizzes,
            total_attempts=sum(record.attempts for record in records),
            average_score=round_half_up(sum(record.percentage for record in records), total_quizzes),
            total_time_spent=sum(record.time_spent for record in records),
            perfect_scores=sum(1 for record in records if record.percentage == PERFECT_PERCENTAGE),
        )
