"""Repository interface for result records and its in-memory implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from dataclasses import replace
from threading import Lock, RLock

from quizrank.core.errors import ConcurrencyConflictError, InvalidArgumentError
from quizrank.core.models import ResultRecord

ResultKey = tuple[str, str]


class ResultStore(ABC):
    """Canonical owner of result records keyed by (user, quiz).

    Writers go through :meth:`save`, an atomic compare-and-set on the record
    version. Listing methods return records in the order they were first
    created.
    """

    @abstractmethod
    def get(self, user_id: str, quiz_id: str) -> ResultRecord | None:
        pass

    @abstractmethod
    def list_by_quiz(self, quiz_id: str) -> list[ResultRecord]:
        pass

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[ResultRecord]:
        pass

    @abstractmethod
    def save(self, record: ResultRecord, expected_version: int | None) -> ResultRecord:
        """Store ``record`` if the current version matches ``expected_version``.

        ``expected_version=None`` inserts and requires the key to be absent.
        Returns the stored record with its new version. Raises
        :class:`ConcurrencyConflictError` when another writer got there first.
        """

    @abstractmethod
    def delete(self, user_id: str, quiz_id: str) -> bool:
        pass

    def key_lock(self, user_id: str, quiz_id: str) -> AbstractContextManager:
        """Optional in-process lock serializing writers of one key.

        Stores without one rely on compare-and-set alone.
        """
        return nullcontext()


class KeyLockRegistry:
    """Lazily created reentrant lock per (user, quiz) key."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._locks: dict[ResultKey, RLock] = {}

    def lock_for(self, key: ResultKey) -> RLock:
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = RLock()
                self._locks[key] = lock
            return lock


class InMemoryResultStore(ResultStore):
    """Thread-safe process-local store.

    The index lock guards the key map only and is never held while waiting on
    a key lock, so readers do not block behind writers and writers of
    different keys do not wait on each other.
    """

    def __init__(self) -> None:
        self._index_lock = Lock()
        self._records: dict[ResultKey, ResultRecord] = {}
        self._key_locks = KeyLockRegistry()

    def get(self, user_id: str, quiz_id: str) -> ResultRecord | None:
        with self._index_lock:
            return self._records.get((user_id, quiz_id))

    def list_by_quiz(self, quiz_id: str) -> list[ResultRecord]:
        return [record for record in self._snapshot() if record.quiz_id == quiz_id]

    def list_by_user(self, user_id: str) -> list[ResultRecord]:
        return [record for record in self._snapshot() if record.user_id == user_id]

    def save(self, record: ResultRecord, expected_version: int | None) -> ResultRecord:
        if expected_version is not None and expected_version < 1:
            raise InvalidArgumentError("Expected version must be positive or None.")
        key = (record.user_id, record.quiz_id)
        with self._key_locks.lock_for(key):
            with self._index_lock:
                current = self._records.get(key)
            current_version = current.version if current is not None else None
            if current_version != expected_version:
                raise ConcurrencyConflictError(
                    f"Result for user {record.user_id!r} on quiz {record.quiz_id!r} "
                    f"is at version {current_version}, expected {expected_version}."
                )
            stored = replace(record, version=(expected_version or 0) + 1)
            with self._index_lock:
                # Reassigning an existing key keeps its creation position.
                self._records[key] = stored
            return stored

    def delete(self, user_id: str, quiz_id: str) -> bool:
        key = (user_id, quiz_id)
        with self._key_locks.lock_for(key):
            with self._index_lock:
                return self._records.pop(key, None) is not None

    def key_lock(self, user_id: str, quiz_id: str) -> AbstractContextManager:
        return self._key_locks.lock_for((user_id, quiz_id))

    def _snapshot(self) -> list[ResultRecord]:
        with self._index_lock:
            return list(self._records.values())
