"""Error types raised by the result core."""

from __future__ import annotations


class QuizRankError(Exception):
    """Base class for all result core errors."""


class InvalidArgumentError(QuizRankError, ValueError):
    """Raised for malformed submissions such as negative counts or missing answers."""


class NotFoundError(QuizRankError, LookupError):
    """Raised when a quiz or result record required by an operation is absent."""


class StorageUnavailableError(QuizRankError, RuntimeError):
    """Raised when the result store fails or keeps losing compare-and-set races."""


class ConcurrencyConflictError(QuizRankError, RuntimeError):
    """Raised by a store when a compare-and-set write loses a race."""
