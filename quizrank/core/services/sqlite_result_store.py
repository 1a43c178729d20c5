"""SQLite-backed result store that survives process restarts."""

from __future__ import annotations

from contextlib import AbstractContextManager, closing
from dataclasses import replace
from datetime import datetime
import logging
from pathlib import Path
import sqlite3

from quizrank.core.errors import ConcurrencyConflictError, StorageUnavailableError
from quizrank.core.models import ResultRecord
from quizrank.core.services.result_store import KeyLockRegistry, ResultStore

logger = logging.getLogger(__name__)

_COLUMNS = (
    "user_id, quiz_id, username, score, total_questions, percentage, "
    "time_spent, attempts, completed_at, version"
)


class SqliteResultStore(ResultStore):
    """Result store on a single SQLite file.

    Every call opens its own connection, so instances can be shared between
    threads. Compare-and-set is a conditional ``UPDATE`` on the version column;
    writers sharing this instance also serialize per key in process.
    """

    def __init__(self, db_path: str | Path, timeout_seconds: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self._timeout_seconds = timeout_seconds
        self._key_locks = KeyLockRegistry()
        self._ensure_schema()

    def key_lock(self, user_id: str, quiz_id: str) -> AbstractContextManager:
        return self._key_locks.lock_for((user_id, quiz_id))

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path, timeout=self._timeout_seconds)
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot open result database {self.db_path}: {exc}") from exc

    def _ensure_schema(self) -> None:
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS results (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                quiz_id TEXT NOT NULL,
                username TEXT NOT NULL,
                score INTEGER NOT NULL,
                total_questions INTEGER NOT NULL,
                percentage INTEGER NOT NULL,
                time_spent INTEGER NOT NULL,
                attempts INTEGER NOT NULL,
                completed_at TEXT NOT NULL,
                version INTEGER NOT NULL,
                UNIQUE (user_id, quiz_id)
            )
            """
        )
        self._execute("CREATE INDEX IF NOT EXISTS idx_results_quiz ON results(quiz_id)")

    def get(self, user_id: str, quiz_id: str) -> ResultRecord | None:
        rows = self._query(
            f"SELECT {_COLUMNS} FROM results WHERE user_id = ? AND quiz_id = ?",
            (user_id, quiz_id),
        )
        return _row_to_record(rows[0]) if rows else None

    def list_by_quiz(self, quiz_id: str) -> list[ResultRecord]:
        rows = self._query(
            f"SELECT {_COLUMNS} FROM results WHERE quiz_id = ? ORDER BY seq",
            (quiz_id,),
        )
        return [_row_to_record(row) for row in rows]

    def list_by_user(self, user_id: str) -> list[ResultRecord]:
        rows = self._query(
            f"SELECT {_COLUMNS} FROM results WHERE user_id = ? ORDER BY seq",
            (user_id,),
        )
        return [_row_to_record(row) for row in rows]

    def save(self, record: ResultRecord, expected_version: int | None) -> ResultRecord:
        new_version = (expected_version or 0) + 1
        values = (
            record.username,
            record.score,
            record.total_questions,
            record.percentage,
            record.time_spent,
            record.attempts,
            record.completed_at.isoformat(),
            new_version,
        )
        if expected_version is None:
            try:
                self._execute(
                    "INSERT INTO results (username, score, total_questions, percentage, "
                    "time_spent, attempts, completed_at, version, user_id, quiz_id) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    values + (record.user_id, record.quiz_id),
                    reraise_integrity=True,
                )
            except sqlite3.IntegrityError as exc:
                raise ConcurrencyConflictError(
                    f"Result for user {record.user_id!r} on quiz {record.quiz_id!r} already exists."
                ) from exc
        else:
            updated = self._execute(
                "UPDATE results SET username = ?, score = ?, total_questions = ?, "
                "percentage = ?, time_spent = ?, attempts = ?, completed_at = ?, version = ? "
                "WHERE user_id = ? AND quiz_id = ? AND version = ?",
                values + (record.user_id, record.quiz_id, expected_version),
            )
            if updated != 1:
                raise ConcurrencyConflictError(
                    f"Result for user {record.user_id!r} on quiz {record.quiz_id!r} "
                    f"is no longer at version {expected_version}."
                )
        return replace(record, version=new_version)

    def delete(self, user_id: str, quiz_id: str) -> bool:
        deleted = self._execute(
            "DELETE FROM results WHERE user_id = ? AND quiz_id = ?",
            (user_id, quiz_id),
        )
        return deleted > 0

    def _execute(self, sql: str, params: tuple = (), reraise_integrity: bool = False) -> int:
        """Run a write statement in its own transaction and return the row count."""
        try:
            with closing(self._connect()) as conn:
                with conn:
                    cursor = conn.execute(sql, params)
                    return cursor.rowcount
        except sqlite3.IntegrityError as exc:
            if reraise_integrity:
                raise
            logger.error("Integrity error on result database %s: %s", self.db_path, exc)
            raise StorageUnavailableError(f"Result database rejected the write: {exc}") from exc
        except sqlite3.Error as exc:
            logger.error("Result database %s failed: %s", self.db_path, exc)
            raise StorageUnavailableError(f"Result database failure: {exc}") from exc

    def _query(self, sql: str, params: tuple) -> list[tuple]:
        try:
            with closing(self._connect()) as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            logger.error("Result database %s failed: %s", self.db_path, exc)
            raise StorageUnavailableError(f"Result database failure: {exc}") from exc


def _row_to_record(row: tuple) -> ResultRecord:
    return ResultRecord(
        user_id=row[0],
        quiz_id=row[1],
        username=row[2],
        score=row[3],
        total_questions=row[4],
        percentage=row[5],
        time_spent=row[6],
        attempts=row[7],
        completed_at=datetime.fromisoformat(row[8]),
        version=row[9],
    )
