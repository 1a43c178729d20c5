"""Environment-driven settings for the results service."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
import os
from pathlib import Path

from quizrank.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizrank.constants.result_constants import (
    DEFAULT_DB_PATH,
    DEFAULT_MAX_WRITE_RETRIES,
    STORE_BACKENDS,
)
from quizrank.core.services.result_store import InMemoryResultStore, ResultStore
from quizrank.core.services.sqlite_result_store import SqliteResultStore

_ENV_PREFIX = "QUIZRANK_"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True, frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    store_backend: str = "memory"
    db_path: Path = Path(DEFAULT_DB_PATH)
    quiz_dir: Path | None = None
    log_level: str = "INFO"
    max_retries: int = DEFAULT_MAX_WRITE_RETRIES

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``QUIZRANK_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        def read(name: str) -> str | None:
            value = env.get(_ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        store_backend = (read("STORE") or "memory").lower()
        if store_backend not in STORE_BACKENDS:
            raise ValueError(f"QUIZRANK_STORE must be one of {', '.join(STORE_BACKENDS)}.")

        log_level = (read("LOG_LEVEL") or "INFO").upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"QUIZRANK_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}.")

        port = _parse_int("PORT", read("PORT"), DEFAULT_PORT)
        if not 0 < port < 65536:
            raise ValueError("QUIZRANK_PORT must be between 1 and 65535.")

        max_retries = _parse_int("MAX_RETRIES", read("MAX_RETRIES"), DEFAULT_MAX_WRITE_RETRIES)
        if max_retries < 0:
            raise ValueError("QUIZRANK_MAX_RETRIES must not be negative.")

        quiz_dir = read("QUIZ_DIR")
        return cls(
            host=read("HOST") or DEFAULT_HOST,
            port=port,
            store_backend=store_backend,
            db_path=Path(read("DB_PATH") or DEFAULT_DB_PATH),
            quiz_dir=Path(quiz_dir) if quiz_dir else None,
            log_level=log_level,
            max_retries=max_retries,
        )


def build_store(settings: Settings) -> ResultStore:
    """Create the result store selected by ``settings``."""
    if settings.store_backend == "sqlite":
        logging.getLogger(__name__).info("Using SQLite result store at %s", settings.db_path)
        return SqliteResultStore(settings.db_path)
    return InMemoryResultStore()


def _parse_int(name: str, raw_value: str | None, default: int) -> int:
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer.") from exc
