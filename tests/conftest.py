"""
Shared pytest fixtures for joblog tests.

This module provides:
- structlog reset between tests so ``capture_logs`` always sees output
- A recording sink with an adjustable threshold
- Factories for job snapshots and lifecycle events
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest
import structlog

# Ensure joblog package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from joblog.backtrace import BacktraceCleaner
from joblog.events import Event
from joblog.jobs import JobSnapshot
from joblog.settings import JobLogSettings
from joblog.sink import Severity
from joblog.subscriber import LogSubscriber


class RecordingSink:
    """Sink that keeps ``(severity, message)`` pairs in memory."""

    def __init__(self, level: Severity = Severity.INFO) -> None:
        self.level = level
        self.records: list[tuple[Severity, str]] = []
        self.fields: list[dict[str, Any]] = []

    def enabled_for(self, severity: Severity) -> bool:
        return severity.level >= self.level.level

    def log(self, severity: Severity, message: str, **fields: Any) -> bool:
        if not self.enabled_for(severity):
            return False
        self.records.append((severity, message))
        self.fields.append(fields)
        return True

    @property
    def messages(self) -> list[str]:
        return [message for _, message in self.records]


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings() -> JobLogSettings:
    """Settings isolated from the environment and any .env file."""
    return JobLogSettings(_env_file=None)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def subscriber(sink: RecordingSink, settings: JobLogSettings) -> LogSubscriber:
    """Subscriber writing to the recording sink, attribution off."""
    return LogSubscriber(sink, settings=settings, cleaner=BacktraceCleaner(), verbose_enqueue_logs=False)


@pytest.fixture
def make_job():
    def _make(class_name: str = "MyJob", **kwargs: Any) -> JobSnapshot:
        kwargs.setdefault("job_id", "abc123")
        return JobSnapshot(class_name=class_name, **kwargs)

    return _make


@pytest.fixture
def make_event(make_job):
    def _make(name: str, job: JobSnapshot | None = None, duration: float | None = None, **payload: Any) -> Event:
        payload.setdefault("adapter", "Async")
        if "jobs" not in payload:
            payload["job"] = job if job is not None else make_job()
        return Event(name=name, payload=payload, duration=duration)

    return _make
