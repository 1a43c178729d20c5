"""Service ranking participants on a single quiz."""

from __future__ import annotations

from quizrank.constants.result_constants import DEFAULT_LEADERBOARD_LIMIT
from quizrank.core.models import LeaderboardEntry
from quizrank.core.services.result_store import ResultStore


def normalize_limit(limit: object) -> int:
    """Coerce a caller-supplied limit to a positive integer.

    Anything that is not a positive integer (or a string holding one) falls
    back to the default.
    """
    if isinstance(limit, bool):
        return DEFAULT_LEADERBOARD_LIMIT
    if isinstance(limit, str):
        try:
            limit = int(limit.strip())
        except ValueError:
            return DEFAULT_LEADERBOARD_LIMIT
    if isinstance(limit, int) and limit > 0:
        return limit
    return DEFAULT_LEADERBOARD_LIMIT


class LeaderboardRanker:
    """Builds leaderboard snapshots from the result store. Nothing is cached."""

    def __init__(self, store: ResultStore) -> None:
        self._store = store

    def rank_leaderboard(self, quiz_id: str, limit: object = None) -> list[LeaderboardEntry]:
        """Return the top entries sorted by best score, then by time spent."""
        records = self._store.list_by_quiz(quiz_id)
        # sorted() is stable: full ties keep the store's first-attempt order
        ranked = sorted(records, key=lambda r: (-r.score, r.time_spent))

        return [
            LeaderboardEntry(
                username=record.username,
                score=record.score,
                percentage=record.percentage,
                time_spent=record.time_spent,
                completed_at=record.completed_at,
            )
            for record in ranked[: normalize_limit(limit)]
        ]
