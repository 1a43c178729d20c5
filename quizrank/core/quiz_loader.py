"""Utilities for loading quiz answer keys from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    TITLE: Optional quiz title (must be the first block if present)

    Q: Question text. Additional lines until the next marker are treated
       as part of the question.
    A: First option text
    B: Second option text
    ...up to J:
    CORRECT: letter of the correct option

Example:

    TITLE: Unit circle

    Q: What is $30^o$ in radians?
    A: \\frac{\\pi}{2}
    B: \\frac{\\pi}{6}
    C: \\frac{\\pi}{3}
    CORRECT: B

The quiz id is the file name without its extension.
"""

from __future__ import annotations

import logging
from pathlib import Path
import string

from quizrank.core.models import Question, Quiz

logger = logging.getLogger(__name__)


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


_OPTION_ORDER = list(string.ascii_uppercase[:10])
_QUIZ_FILE_SUFFIX = ".txt"


def load_quiz_from_file(file_path: Path) -> Quiz:
    text = file_path.read_text(encoding="utf-8")
    title, questions = _parse_quiz_text(text)
    if not questions:
        raise QuizImportError(f"Quiz file {file_path.name} did not contain any questions.")
    return Quiz(quiz_id=file_path.stem, questions=questions, title=title or file_path.stem)


def load_quizzes_from_directory(directory: Path) -> list[Quiz]:
    """Load every ``*.txt`` quiz in ``directory``, sorted by file name."""
    if not directory.is_dir():
        raise QuizImportError(f"Quiz directory {directory} does not exist.")
    quizzes = [load_quiz_from_file(path) for path in sorted(directory.glob(f"*{_QUIZ_FILE_SUFFIX}"))]
    logger.info("Loaded %d quiz file(s) from %s", len(quizzes), directory)
    return quizzes


def _parse_quiz_text(text: str) -> tuple[str | None, list[Question]]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    title: str | None = None
    if blocks and blocks[0].upper().startswith("TITLE:"):
        header = blocks.pop(0)
        if "\n" in header:
            raise QuizImportError("TITLE must be on its own block.")
        title = header.split(":", 1)[1].strip() or None

    return title, [_parse_block(block) for block in blocks if block]


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")

    used_letters = _OPTION_ORDER[: len(options)]
    if len(options) < 2 or set(options) != set(used_letters):
        raise QuizImportError("Each question must define at least two consecutive options starting at A.")

    option_list = [options[letter].strip() for letter in used_letters]
    if any(not opt for opt in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError("Each question must declare its CORRECT option.")
    if correct_letter not in used_letters:
        raise QuizImportError(f"CORRECT must be one of {', '.join(used_letters)}.")

    return Question(
        options=option_list,
        answer_index=used_letters.index(correct_letter),
        question_text="\n".join(question_lines).strip(),
    )
