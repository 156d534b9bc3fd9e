"""Settings for the job log subscriber.

Configuration is read from ``JOBLOG_``-prefixed environment variables (and a
``.env`` file) so a worker can switch on enqueue attribution or quieten an
event without code changes.

Fields
──────
verbose_enqueue_logs : Follow each line with the application frame that caused it
log_level            : Threshold of the default structlog sink
backtrace_root       : Show attributed frames relative to this directory
silenced_paths       : Extra source trees to skip during attribution (job framework)
thresholds           : Per-event minimum severity, e.g. ``{"perform_start": "error"}``

Examples:
    >>> import os
    >>> os.environ["JOBLOG_VERBOSE_ENQUEUE_LOGS"] = "true"
    >>> os.environ["JOBLOG_THRESHOLDS"] = '{"perform_start": "error"}'
    >>> JobLogSettings().thresholds
    {'perform_start': <Severity.ERROR: 'error'>}
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from joblog.sink import Severity

EVENT_NAMES = (
    "enqueue",
    "enqueue_at",
    "enqueue_all",
    "perform_start",
    "perform",
    "enqueue_retry",
    "retry_stopped",
    "discard",
)


class JobLogSettings(BaseSettings):
    """Environment-driven configuration for :func:`joblog.attach_to`."""

    model_config = SettingsConfigDict(
        env_prefix="JOBLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    verbose_enqueue_logs: bool = False
    log_level: str = "INFO"
    backtrace_root: Path | None = None
    silenced_paths: list[str] = Field(default_factory=list)
    thresholds: dict[str, Severity] = Field(default_factory=dict)

    @field_validator("thresholds", mode="before")
    @classmethod
    def _lowercase_severities(cls, value: object) -> object:
        if isinstance(value, dict):
            return {name: sev.lower() if isinstance(sev, str) else sev for name, sev in value.items()}
        return value

    @field_validator("thresholds")
    @classmethod
    def _known_events(cls, value: dict[str, Severity]) -> dict[str, Severity]:
        unknown = sorted(set(value) - set(EVENT_NAMES))
        if unknown:
            raise ValueError(f"unknown job events: {', '.join(unknown)}")
        return value


__all__ = ["EVENT_NAMES", "JobLogSettings"]
