"""Domain models for quiz results and rankings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Question:
    """Multiple-choice question; only the answer key matters to scoring."""

    options: list[str]
    answer_index: int
    question_text: str = ""


@dataclass(slots=True)
class Quiz:
    """Quiz content as provided by the catalog. Read-only to the result core."""

    quiz_id: str
    questions: list[Question] = field(default_factory=list)
    title: str = ""

    @property
    def answer_key(self) -> list[int]:
        return [question.answer_index for question in self.questions]


@dataclass(slots=True)
class AttemptSubmission:
    """One completed quiz-taking session, consumed once by the aggregator."""

    user_id: str
    quiz_id: str
    answers: list[int | None] | None
    time_spent: int | None = 0
    username: str | None = None


@dataclass(slots=True, frozen=True)
class ScoreResult:
    correct_count: int
    total_questions: int
    percentage: int


@dataclass(slots=True, frozen=True)
class ResultRecord:
    """Best performance and attempt counter for one (user, quiz) pair.

    Records are immutable snapshots. ``version`` is bumped by the store on
    every successful write and is what compare-and-set checks against.
    """

    user_id: str
    quiz_id: str
    username: str
    score: int
    total_questions: int
    percentage: int
    time_spent: int
    attempts: int
    completed_at: datetime
    version: int = 0


@dataclass(slots=True, frozen=True)
class SubmissionReport:
    score: int
    total_questions: int
    percentage: int
    is_new_best: bool
    is_first_attempt: bool
    current_attempt_count: int


@dataclass(slots=True, frozen=True)
class UserStats:
    total_quizzes: int = 0
    total_attempts: int = 0
    average_score: int = 0
    total_time_spent: int = 0
    perfect_scores: int = 0


@dataclass(slots=True, frozen=True)
class LeaderboardEntry:
    """Snapshot row returned to leaderboard consumers."""

    username: str
    score: int
    percentage: int
    time_spent: int
    completed_at: datetime
