"""Application entry point for the QuizRank results service."""

from __future__ import annotations

import sys

from quizrank.core.errors import InvalidArgumentError
from quizrank.core.quiz_loader import QuizImportError
from quizrank.core.results_manager import ResultsManager
from quizrank.server.api_server import run_api_server
from quizrank.utils.logging_config import configure_logging
from quizrank.utils.settings import Settings, build_store


def main() -> None:
    """Read settings, initialize logging and state, then serve the API."""
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    logger = configure_logging(settings.log_level)
    logger.info("Starting QuizRank with %s result store", settings.store_backend)

    results_manager = ResultsManager(store=build_store(settings), max_retries=settings.max_retries)
    if settings.quiz_dir is not None:
        try:
            count = results_manager.load_quizzes_from_directory(settings.quiz_dir)
        except (QuizImportError, InvalidArgumentError) as exc:
            logger.error("Could not load quizzes: %s", exc)
            sys.exit(1)
        logger.info("Loaded %d quiz(zes) from %s", count, settings.quiz_dir)
    else:
        logger.warning("QUIZRANK_QUIZ_DIR is not set; no quizzes are available for submissions")

    run_api_server(results_manager, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
