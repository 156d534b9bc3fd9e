"""
Typed errors for joblog.

joblog never raises while handling a lifecycle event; formatter failures are
caught and logged as warnings. The errors here are raised at construction
time only, when the subscriber is configured with something it cannot honour.

Examples:
    >>> error = ConfigError("Unknown event", context={"event": "enqueue_later"})
    >>> error.to_dict()["context"]
    {'event': 'enqueue_later'}

Tags:
    error-handling, configuration, joblog
"""

from __future__ import annotations

from typing import Any


class JobLogError(Exception):
    """Base class for all joblog errors.

    Carries a message and an optional context mapping so callers can log
    the failure with structured fields.
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context,
        }
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ConfigError(JobLogError):
    """Invalid subscriber configuration (unknown event, bad severity)."""


__all__ = ["JobLogError", "ConfigError"]
