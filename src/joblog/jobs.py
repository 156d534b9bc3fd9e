"""Job snapshots, event outcomes and global references.

WHY
───
Formatters must never guess at what a payload means.  A ``JobSnapshot`` is
the read-only view of a job at the moment a lifecycle event fires, and an
``Outcome`` is decided once per event so message construction is a single
exhaustive ``match`` instead of nil checks spread through string building.

ARCHITECTURE
────────────
::

    JobSnapshot        ─ class_name, job_id, queue_name, arguments, timestamps
    Outcome            ─ Succeeded | Aborted | Failed(exception)
    GlobalIdentifiable ─ capability protocol: to_global_id() -> GlobalId
    GlobalId           ─ stable "gid://app/Model/id" reference

Related modules:
    arguments.py  : recursive argument formatting over these values
    subscriber.py : formatters matching on Outcome
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

Timestamp = float | int | Decimal | str | datetime


@dataclass(frozen=True)
class GlobalId:
    """Stable, serializable identifier for a persisted object.

    Example:
        >>> GlobalId.create("app", "User", 42)
        GlobalId(uri='gid://app/User/42')
    """

    uri: str

    @classmethod
    def create(cls, app: str, model_name: str, model_id: Any) -> GlobalId:
        return cls(f"gid://{app}/{model_name}/{model_id}")

    def __str__(self) -> str:
        return self.uri


@runtime_checkable
class GlobalIdentifiable(Protocol):
    """Values that can be logged as a ``GlobalId`` instead of their full repr."""

    def to_global_id(self) -> GlobalId: ...


@dataclass(frozen=True)
class JobSnapshot:
    """Read-only view of a job at event time.

    ``job_id`` is ``None`` when the job failed before an identifier was
    assigned.  ``scheduled_at`` and ``enqueued_at`` are epoch seconds (or a
    ``datetime``) as handed over by the job system.
    """

    class_name: str
    job_id: str | None = None
    queue_name: str = "default"
    arguments: tuple[Any, ...] = ()
    scheduled_at: Timestamp | None = None
    enqueued_at: Timestamp | None = None
    executions: int = 0
    log_arguments: bool = True
    successfully_enqueued: bool = False
    enqueue_error: BaseException | None = None

    def logs_arguments(self) -> bool:
        """Whether the job's class allows its arguments to appear in logs."""
        return self.log_arguments


# ── Outcome ──────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Succeeded:
    """The operation completed."""


@dataclass(frozen=True, slots=True)
class Aborted:
    """A before-callback halted the operation."""


@dataclass(frozen=True, slots=True)
class Failed:
    """The operation raised."""

    exception: BaseException


Outcome = Succeeded | Aborted | Failed


def outcome_of(
    payload: Mapping[str, Any],
    *,
    error_key: str = "exception_object",
    fallback: BaseException | None = None,
) -> Outcome:
    """Decide the outcome of an event from its payload.

    A present exception wins over an abort flag.  ``fallback`` is consulted
    when the payload carries no exception under ``error_key`` (the job's own
    ``enqueue_error`` for enqueue events).
    """
    exc = payload.get(error_key) or fallback
    if exc is not None:
        return Failed(exc)
    if payload.get("aborted"):
        return Aborted()
    return Succeeded()


__all__ = [
    "Aborted",
    "Failed",
    "GlobalId",
    "GlobalIdentifiable",
    "JobSnapshot",
    "Outcome",
    "Succeeded",
    "Timestamp",
    "outcome_of",
]
