"""Field extractors: displayable fragments pulled from an event.

Every extractor degrades instead of raising when an optional field is
missing, returning an empty string (or a zero count) so the composed message
still reads cleanly after whitespace normalization.
"""

from __future__ import annotations

import math
import re
import traceback
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation

from joblog.adapters import AdapterNameResolver, adapter_name
from joblog.arguments import format_arguments
from joblog.events import Event
from joblog.jobs import JobSnapshot, Timestamp

_SPACES = re.compile(r" {2,}")


def squeeze(message: str) -> str:
    """Collapse runs of spaces left behind by empty fragments."""
    return _SPACES.sub(" ", message).strip(" ")


def job_of(event: Event) -> JobSnapshot:
    return event.payload["job"]


def queue_name(event: Event, resolve: AdapterNameResolver = adapter_name) -> str:
    """``Async(default)``: adapter display name and the job's queue."""
    job = job_of(event)
    return f"{resolve(event.payload.get('adapter'))}({job.queue_name})"


def enqueue_info(event: Event, resolve: AdapterNameResolver = adapter_name) -> str:
    """Queue name, plus when the job was enqueued if that is known."""
    if job_of(event).enqueued_at is None:
        return queue_name(event, resolve)
    return f"{queue_name(event, resolve)} enqueued at {enqueued_at(event)}"


def job_info(event: Event, include_job_id: bool = True) -> str:
    """``ReportJob (Job ID: 9f1c...)``, or the bare class name.

    Use ``include_job_id=False`` for failures that can happen before the
    job was assigned an identifier.
    """
    job = job_of(event)
    if include_job_id:
        return f"{job.class_name} (Job ID: {job.job_id})"
    return job.class_name


def duration(event: Event) -> str:
    if event.duration is None:
        return ""
    return f"{round(event.duration, 2)}ms"


def wait_time(event: Event) -> str:
    wait = event.payload.get("wait") or 0
    if isinstance(wait, timedelta):
        wait = wait.total_seconds()
    return f"{int(wait)} seconds"


def attempts(event: Event) -> str:
    return f"{job_of(event).executions} attempts"


def format_time(value: Timestamp | None) -> str:
    """UTC ISO-8601 with nanosecond precision: ``2024-03-01T12:00:00.250000000Z``.

    Accepts epoch seconds (int, float, Decimal or numeric string) or a
    ``datetime``; naive datetimes are taken as UTC.  Values that are not a
    representable moment (NaN, infinity, out of range) give ``""``.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        moment = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
        return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond * 1000:09d}Z"

    try:
        seconds = Decimal(str(value))
        whole = math.floor(seconds)
        moment = datetime.fromtimestamp(whole, UTC)
    except (InvalidOperation, ValueError, OverflowError, OSError):
        return ""
    nanos = int((seconds - whole) * 1_000_000_000)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{nanos:09d}Z"


def scheduled_at(event: Event) -> str:
    return format_time(job_of(event).scheduled_at)


def enqueued_at(event: Event) -> str:
    return format_time(job_of(event).enqueued_at)


def args_info(event: Event) -> str:
    """``with arguments: 42, 'eu'``, or nothing when arguments are not logged."""
    job = job_of(event)
    if not job.logs_arguments() or not job.arguments:
        return ""
    return "with arguments: " + format_arguments(job.arguments)


def _backtrace_lines(exc: BaseException) -> list[str]:
    explicit = getattr(exc, "backtrace", None)
    if isinstance(explicit, str):
        return explicit.splitlines()
    if explicit:
        return [str(line) for line in explicit]
    frames = traceback.extract_tb(exc.__traceback__)
    return [f"{frame.filename}:{frame.lineno}:in `{frame.name}`" for frame in reversed(frames)]


def exception_info(exc: BaseException | None, include_backtrace: bool = False) -> str:
    """``ValueError (bad input)``, optionally followed by the backtrace.

    Backtrace lines are innermost first, one per line.
    """
    if exc is None:
        return ""
    info = f"{type(exc).__name__} ({exc})"
    if include_backtrace:
        lines = _backtrace_lines(exc)
        if lines:
            info += ":\n" + "\n".join(lines)
    return info


__all__ = [
    "args_info",
    "attempts",
    "duration",
    "enqueue_info",
    "enqueued_at",
    "exception_info",
    "format_time",
    "job_info",
    "job_of",
    "queue_name",
    "scheduled_at",
    "squeeze",
    "wait_time",
]
