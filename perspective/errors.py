"""Exceptions raised by the perspective concurrency helpers."""

from __future__ import annotations

from typing import Any


class ParallelProcessingError(Exception):
    """Base exception for all perspective errors."""

    pass


class ConfigurationError(ParallelProcessingError, ValueError):
    """Raised when an option value is invalid, before any task is scheduled."""

    pass


class ItemProcessingError(ParallelProcessingError):
    """Wraps a failure value that was not an exception.

    Attributes:
        value: The original failure value as supplied by caller code
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value


def normalize_error(value: Any) -> Exception:
    """
    Convert a failure value into an exception.

    Exceptions are returned unchanged so identity, traceback and cause are
    preserved. Anything else is wrapped in ItemProcessingError carrying the
    original value and its string form as the message.
    """
    if isinstance(value, Exception):
        return value
    error = ItemProcessingError(str(value), value=value)
    if isinstance(value, BaseException):
        error.__cause__ = value
    return error
