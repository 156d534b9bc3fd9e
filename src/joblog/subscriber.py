"""
Job lifecycle log subscriber.

Manifesto:
    Operators read job logs line by line.  Each lifecycle event gets exactly
    one deterministic, human-readable line at a severity that reflects what
    happened, plus, when verbose enqueue logs are on, one ``↳`` line naming
    the application code that caused it.

    Observability is best-effort: nothing raised while formatting an event
    may reach the job pipeline.

Architecture:
    ::

        Notifier ──publish──▶ LogSubscriber.handle(event)
                                 │  threshold guard (sink.enabled_for)
                                 ▼
                              formatter(event) ──▶ FormattedRecord
                                 │                  (severity, message)
                                 ▼
                              log_and_attribute ──▶ sink.log
                                                     └─▶ "↳ <frame>" (verbose)

    Every formatter decides the event's Outcome once and matches on it:

        Failed(exception) ─ hard failure
        Aborted()         ─ a before_* callback halted the operation
        Succeeded()       ─ everything else

Examples:
    >>> from joblog import Event, JobSnapshot, Notifier, attach_to
    >>> bus = Notifier()
    >>> subscriber = attach_to(bus)
    >>> job = JobSnapshot("ReportJob", job_id="7c1e", arguments=(42,))
    >>> bus.publish(Event("enqueue", {"job": job, "adapter": "Async"}))
    # Enqueued ReportJob (Job ID: 7c1e) to Async(default) with arguments: 42

Tags:
    logging, jobs, subscriber, observability, joblog
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from joblog.adapters import AdapterNameResolver
from joblog.adapters import adapter_name as default_adapter_name
from joblog.backtrace import BacktraceCleaner, caller_frames, default_cleaner, extract_source_location
from joblog.errors import ConfigError
from joblog.events import Event
from joblog.fields import (
    args_info,
    attempts,
    duration,
    enqueue_info,
    exception_info,
    job_info,
    job_of,
    queue_name,
    scheduled_at,
    squeeze,
    wait_time,
)
from joblog.jobs import Aborted, Failed, Succeeded, outcome_of
from joblog.logging import get_logger
from joblog.settings import EVENT_NAMES, JobLogSettings
from joblog.sink import Severity, Sink, StructlogSink
from joblog.summary import summarize_enqueue_all

log = get_logger(__name__)

# Events that only ever report failures; their threshold cannot be lowered.
FORCED_THRESHOLDS = {
    "retry_stopped": Severity.ERROR,
    "discard": Severity.ERROR,
}


@dataclass(frozen=True, slots=True)
class FormattedRecord:
    """One formatted log line."""

    severity: Severity
    message: str

    @classmethod
    def info(cls, message: str) -> FormattedRecord:
        return cls(Severity.INFO, squeeze(message))

    @classmethod
    def error(cls, message: str) -> FormattedRecord:
        return cls(Severity.ERROR, squeeze(message))


Formatter = Callable[[Event], FormattedRecord]


class LogSubscriber:
    """Formats job lifecycle events and writes them to a sink.

    Args:
        sink: Where lines go; defaults to a ``StructlogSink`` at
            ``settings.log_level``
        settings: Configuration; read from the environment when omitted
        adapter_name: Resolves the payload's adapter to a display name
        cleaner: Backtrace cleaning policy for enqueue attribution; defaults
            to :func:`joblog.backtrace.default_cleaner` built from settings
        verbose_enqueue_logs: Overrides ``settings.verbose_enqueue_logs``
        thresholds: Per-event minimum severities, applied after the ones
            from settings

    Raises:
        ConfigError: A threshold names an unknown event or severity, or
            tries to lower ``retry_stopped``/``discard`` below error
    """

    def __init__(
        self,
        sink: Sink | None = None,
        *,
        settings: JobLogSettings | None = None,
        adapter_name: AdapterNameResolver = default_adapter_name,
        cleaner: BacktraceCleaner | None = None,
        verbose_enqueue_logs: bool | None = None,
        thresholds: dict[str, Severity | str] | None = None,
    ) -> None:
        settings = settings if settings is not None else JobLogSettings()

        self.sink: Sink = sink if sink is not None else StructlogSink(level=settings.log_level)
        self.resolve_adapter = adapter_name
        self.cleaner = cleaner if cleaner is not None else default_cleaner(
            settings.backtrace_root, settings.silenced_paths
        )
        self.verbose_enqueue_logs = (
            settings.verbose_enqueue_logs if verbose_enqueue_logs is None else verbose_enqueue_logs
        )

        self._formatters: dict[str, Formatter] = {
            "enqueue": self.enqueue,
            "enqueue_at": self.enqueue_at,
            "enqueue_all": self.enqueue_all,
            "perform_start": self.perform_start,
            "perform": self.perform,
            "enqueue_retry": self.enqueue_retry,
            "retry_stopped": self.retry_stopped,
            "discard": self.discard,
        }
        self._thresholds: dict[str, Severity] = {name: Severity.INFO for name in EVENT_NAMES}
        self._thresholds.update(FORCED_THRESHOLDS)
        for name, severity in {**settings.thresholds, **(thresholds or {})}.items():
            self.subscribe_log_level(name, severity)

        self._bus: Any = None
        self._subscription_ids: list[str] = []

    # ── Dispatch registration ────────────────────────────────────────────

    def subscribe_log_level(self, name: str, severity: Severity | str) -> None:
        """Set the minimum severity at which ``name`` events are formatted."""
        if name not in self._formatters:
            raise ConfigError(f"Unknown job event: {name!r}", context={"event": name})
        try:
            severity = Severity(severity.lower() if isinstance(severity, str) else severity)
        except ValueError:
            raise ConfigError(
                f"Unknown severity for {name}: {severity!r}",
                context={"event": name, "severity": severity},
            ) from None
        forced = FORCED_THRESHOLDS.get(name)
        if forced is not None and severity.level < forced.level:
            raise ConfigError(
                f"{name} is always logged at {forced.value}",
                context={"event": name, "severity": severity.value},
            )
        self._thresholds[name] = severity

    def threshold(self, name: str) -> Severity:
        return self._thresholds[name]

    def attach_to(self, bus: Any) -> list[str]:
        """Subscribe one handler per lifecycle event on ``bus``."""
        if self._bus is not None:
            self.detach()
        self._bus = bus
        self._subscription_ids = [bus.subscribe(name, self.handle) for name in self._formatters]
        return list(self._subscription_ids)

    def detach(self) -> None:
        if self._bus is None:
            return
        for sub_id in self._subscription_ids:
            self._bus.unsubscribe(sub_id)
        self._bus = None
        self._subscription_ids = []

    def handle(self, event: Event) -> None:
        """Format and log one event; never raises."""
        formatter = self._formatters.get(event.name)
        if formatter is None:
            return
        if not self.sink.enabled_for(self._thresholds[event.name]):
            return

        try:
            self.log_and_attribute(formatter(event), job_event=event.name)
        except Exception as e:
            log.warning(
                "log_subscriber_error",
                job_event=event.name,
                event_id=event.event_id,
                error_type=type(e).__name__,
                error=str(e),
            )

    def log_and_attribute(self, record: FormattedRecord, **fields: Any) -> bool:
        """Write ``record``; in verbose mode follow it with its source frame.

        Returns whether the sink accepted the record.
        """
        if not self.sink.log(record.severity, record.message, **fields):
            return False
        if self.verbose_enqueue_logs:
            source = extract_source_location(caller_frames(), self.cleaner)
            if source:
                self.sink.log(Severity.INFO, f"↳ {source}", **fields)
        return True

    # ── Formatters ───────────────────────────────────────────────────────

    def enqueue(self, event: Event) -> FormattedRecord:
        return self._enqueued(event, "")

    def enqueue_at(self, event: Event) -> FormattedRecord:
        return self._enqueued(event, f"at {scheduled_at(event)}")

    def _enqueued(self, event: Event, schedule: str) -> FormattedRecord:
        job = job_of(event)
        queue = queue_name(event, self.resolve_adapter)

        match outcome_of(event.payload, fallback=job.enqueue_error):
            case Failed(exc):
                return FormattedRecord.error(
                    f"Failed enqueuing {job_info(event, include_job_id=False)} to {queue}: "
                    f"{exception_info(exc)}"
                )
            case Aborted():
                return FormattedRecord.info(
                    f"Failed enqueuing {job_info(event, include_job_id=False)} to {queue}, "
                    "a before_enqueue callback halted the enqueuing execution."
                )
            case Succeeded():
                return FormattedRecord.info(
                    f"Enqueued {job_info(event)} to {queue} {schedule} {args_info(event)}"
                )

    def enqueue_all(self, event: Event) -> FormattedRecord:
        return FormattedRecord.info(
            summarize_enqueue_all(
                event.payload.get("jobs") or (),
                self.resolve_adapter(event.payload.get("adapter")),
                event.payload.get("enqueued_count"),
            )
        )

    def perform_start(self, event: Event) -> FormattedRecord:
        return FormattedRecord.info(
            f"Performing {job_info(event)} from {enqueue_info(event, self.resolve_adapter)} "
            f"{args_info(event)}"
        )

    def perform(self, event: Event) -> FormattedRecord:
        prefix = (
            f"{job_info(event)} from {queue_name(event, self.resolve_adapter)} in {duration(event)}"
        )

        match outcome_of(event.payload):
            case Failed(exc):
                return FormattedRecord.error(
                    f"Error performing {prefix}: {exception_info(exc, include_backtrace=True)}"
                )
            case Aborted():
                return FormattedRecord.error(
                    f"Error performing {prefix}: a before_perform callback halted the job execution"
                )
            case Succeeded():
                return FormattedRecord.info(f"Performed {prefix}")

    def enqueue_retry(self, event: Event) -> FormattedRecord:
        retry = f"Retrying {job_info(event)} after {attempts(event)} in {wait_time(event)}"

        match outcome_of(event.payload, error_key="error"):
            case Failed(exc):
                return FormattedRecord.info(f"{retry}, due to a {exception_info(exc)}.")
            case _:
                return FormattedRecord.info(f"{retry}.")

    def retry_stopped(self, event: Event) -> FormattedRecord:
        return FormattedRecord.error(
            f"Stopped retrying {job_info(event)} due to a "
            f"{exception_info(event.payload.get('error'))}, "
            f"which reoccurred on {attempts(event)}."
        )

    def discard(self, event: Event) -> FormattedRecord:
        return FormattedRecord.error(
            f"Discarded {job_info(event)} due to a {exception_info(event.payload.get('error'))}."
        )


__all__ = ["FORCED_THRESHOLDS", "FormattedRecord", "LogSubscriber"]
