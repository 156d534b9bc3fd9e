"""
joblog - human-readable lifecycle logs for background jobs.

Subscribes to the notifications a job pipeline publishes (enqueue,
enqueue_at, enqueue_all, perform_start, perform, enqueue_retry,
retry_stopped, discard) and writes one deterministic line per event at a
severity that reflects its outcome, optionally followed by the application
frame that enqueued the job.

Usage::

    from joblog import Notifier, attach_to

    bus = Notifier()
    attach_to(bus, verbose_enqueue_logs=True)

    with bus.instrument("perform", {"job": job, "adapter": adapter}):
        job.run()
"""

from __future__ import annotations

from typing import Any

from joblog.adapters import AdapterNameResolver, adapter_name
from joblog.backtrace import BacktraceCleaner, default_cleaner
from joblog.errors import ConfigError, JobLogError
from joblog.events import Event, Notifier
from joblog.jobs import GlobalId, GlobalIdentifiable, JobSnapshot
from joblog.settings import JobLogSettings
from joblog.sink import Severity, Sink, StructlogSink
from joblog.subscriber import FormattedRecord, LogSubscriber

__version__ = "0.1.0"


def attach_to(
    bus: Any,
    *,
    sink: Sink | None = None,
    settings: JobLogSettings | None = None,
    adapter_name: AdapterNameResolver = adapter_name,
    cleaner: BacktraceCleaner | None = None,
    verbose_enqueue_logs: bool | None = None,
    thresholds: dict[str, Severity | str] | None = None,
) -> LogSubscriber:
    """Create a :class:`LogSubscriber` and subscribe it to ``bus``.

    ``bus`` needs ``subscribe(name, handler) -> id`` and
    ``unsubscribe(id)``; :class:`Notifier` is the in-process default.
    """
    subscriber = LogSubscriber(
        sink,
        settings=settings,
        adapter_name=adapter_name,
        cleaner=cleaner,
        verbose_enqueue_logs=verbose_enqueue_logs,
        thresholds=thresholds,
    )
    subscriber.attach_to(bus)
    return subscriber


__all__ = [
    "BacktraceCleaner",
    "ConfigError",
    "Event",
    "FormattedRecord",
    "GlobalId",
    "GlobalIdentifiable",
    "JobLogError",
    "JobLogSettings",
    "JobSnapshot",
    "LogSubscriber",
    "Notifier",
    "Severity",
    "Sink",
    "StructlogSink",
    "attach_to",
    "default_cleaner",
]
