"""Log sinks: where formatted job lines are written.

A sink accepts ``(severity, message)`` and reports whether the message
passed its own threshold.  The subscriber uses that answer to decide whether
to chain the enqueue-source line after it, and ``enabled_for`` to skip
formatting entirely for events nobody would see.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from joblog.errors import ConfigError
from joblog.logging import get_logger


class Severity(str, Enum):
    """Severities produced by the log subscriber."""

    INFO = "info"
    ERROR = "error"

    @property
    def level(self) -> int:
        """Numeric stdlib logging level."""
        return _LEVELS[self.value]


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def to_level(level: str | int | Severity) -> int:
    """Normalize a level name, ``Severity`` or number to a stdlib level."""
    if isinstance(level, Severity):
        return level.level
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[level.lower()]
    except KeyError:
        raise ConfigError(f"Unknown log level: {level!r}", context={"level": level}) from None


@runtime_checkable
class Sink(Protocol):
    """Destination for formatted records."""

    def enabled_for(self, severity: Severity) -> bool:
        """Whether a record at ``severity`` would be written."""
        ...

    def log(self, severity: Severity, message: str, **fields: Any) -> bool:
        """Write a record; return False if it was below the threshold."""
        ...


class StructlogSink:
    """Sink writing through a structlog logger.

    The message becomes the structlog event; extra fields (the subscriber
    binds ``job_event``) are passed through as key/values.

    Example:
        >>> sink = StructlogSink(level="error")
        >>> sink.log(Severity.INFO, "Enqueued ReportJob (Job ID: 1) to Async(default)")
        False
    """

    def __init__(self, logger: Any = None, level: str | int | Severity = "info") -> None:
        self._logger = logger if logger is not None else get_logger("joblog")
        self.level = to_level(level)

    def enabled_for(self, severity: Severity) -> bool:
        return severity.level >= self.level

    def log(self, severity: Severity, message: str, **fields: Any) -> bool:
        if not self.enabled_for(severity):
            return False
        getattr(self._logger, severity.value)(message, **fields)
        return True


__all__ = ["Severity", "Sink", "StructlogSink", "to_level"]
