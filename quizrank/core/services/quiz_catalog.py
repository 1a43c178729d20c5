"""Service holding the quizzes whose answer keys results are scored against."""

from __future__ import annotations

from threading import Lock

from quizrank.core.errors import InvalidArgumentError, NotFoundError
from quizrank.core.models import Question, Quiz


class QuizCatalog:
    """Read-mostly registry of quizzes keyed by quiz id."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, Quiz] = {}

    def add_quiz(self, quiz: Quiz) -> Quiz:
        """Validate and register a quiz, replacing any quiz with the same id."""
        prepared = self._prepare_quiz(quiz)
        with self._lock:
            self._quizzes[prepared.quiz_id] = prepared
        return prepared

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id!r} not found.")
        return quiz

    def has_quiz(self, quiz_id: str) -> bool:
        with self._lock:
            return quiz_id in self._quizzes

    def remove_quiz(self, quiz_id: str) -> None:
        with self._lock:
            if self._quizzes.pop(quiz_id, None) is None:
                raise NotFoundError(f"Quiz {quiz_id!r} not found.")

    def list_quizzes(self) -> list[Quiz]:
        with self._lock:
            return list(self._quizzes.values())

    def get_quiz_count(self) -> int:
        with self._lock:
            return len(self._quizzes)

    def _prepare_quiz(self, quiz: Quiz) -> Quiz:
        quiz_id = quiz.quiz_id.strip()
        if not quiz_id:
            raise InvalidArgumentError("Quiz id must not be empty.")
        questions = [self._prepare_question(q, position) for position, q in enumerate(quiz.questions, 1)]
        return Quiz(quiz_id=quiz_id, questions=questions, title=quiz.title.strip())

    @staticmethod
    def _prepare_question(question: Question, position: int) -> Question:
        options = [option.strip() for option in question.options]
        if len(options) < 2:
            raise InvalidArgumentError(f"Question {position} must have at least two options.")
        if any(not option for option in options):
            raise InvalidArgumentError(f"Question {position} has an empty option.")
        if isinstance(question.answer_index, bool) or not isinstance(question.answer_index, int):
            raise InvalidArgumentError(f"Question {position} answer index must be an integer.")
        if not 0 <= question.answer_index < len(options):
            raise InvalidArgumentError(
                f"Question {position} answer index {question.answer_index} is outside its {len(options)} options."
            )
        return Question(
            options=options,
            answer_index=question.answer_index,
            question_text=question.question_text.strip(),
        )
