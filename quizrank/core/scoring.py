"""Pure scoring helpers for submitted quiz answers."""

from __future__ import annotations

from collections.abc import Sequence

from quizrank.core.errors import InvalidArgumentError
from quizrank.core.models import ScoreResult


def score_answers(answer_key: Sequence[int], answers: Sequence[int | None]) -> ScoreResult:
    """Compare submitted answers with the answer key position by position.

    Only the first ``len(answer_key)`` positions count. Missing or ``None``
    answers are incorrect, surplus answers are ignored.
    """
    total_questions = len(answer_key)
    correct_count = 0
    for index, expected in enumerate(answer_key):
        if index >= len(answers):
            break
        submitted = answers[index]
        # bool is an int subclass; True must not match option 1
        if submitted is None or isinstance(submitted, bool):
            continue
        if submitted == expected:
            correct_count += 1

    return ScoreResult(
        correct_count=correct_count,
        total_questions=total_questions,
        percentage=calculate_percentage(correct_count, total_questions),
    )


def calculate_percentage(correct_count: int, total_questions: int) -> int:
    """Return the 0-100 percentage rounded half up. An empty quiz scores 0."""
    if correct_count < 0 or total_questions < 0:
        raise InvalidArgumentError("Counts must not be negative.")
    if total_questions == 0:
        return 0
    return round_half_up(correct_count * 100, total_questions)


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounding .5 upwards, for non-negative operands."""
    return (2 * numerator + denominator) // (2 * denominator)
