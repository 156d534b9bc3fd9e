"""
Lifecycle events and the in-process notification bus.

Manifesto:
    Job lifecycle logging is a subscriber concern.  The job system only has
    to publish ``Event`` objects; the log subscriber (and anything else)
    attaches by name without the producer importing it.

    Delivery is synchronous on the publishing thread so the log lines for an
    event are written before the job moves on, in the order they were raised.

Usage::

    from joblog.events import Notifier

    bus = Notifier()
    bus.subscribe("perform", lambda event: print(event.duration))

    with bus.instrument("perform", {"job": job, "adapter": "Async"}):
        job.run()

Tags:
    events, notifications, pub-sub, instrumentation, joblog
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from joblog.logging import get_logger

__all__ = ["Event", "EventHandler", "Notifier", "Subscription"]

log = get_logger(__name__)


# ── Event Model ──────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Event:
    """Immutable lifecycle notification.

    Attributes:
        name: Lifecycle stage (``enqueue``, ``perform``, ``discard``, ...)
        payload: Event-specific data (``job``, ``adapter``, ``exception_object``, ...)
        duration: Elapsed milliseconds for completion-style events, else None
        time: When the event was published (UTC)
        event_id: Unique event identifier
    """

    name: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    duration: float | None = None
    time: datetime = field(default_factory=_utcnow)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def matches(self, pattern: str) -> bool:
        """Check if the event name matches a pattern (supports wildcards).

        Examples:
            - ``*`` matches everything
            - ``enqueue*`` matches ``enqueue``, ``enqueue_at``, ``enqueue_all``
            - ``perform`` matches exactly ``perform``
        """
        if pattern == "*":
            return True
        if pattern.endswith("*"):
            return self.name.startswith(pattern[:-1])
        return self.name == pattern


EventHandler = Callable[[Event], None]


@dataclass
class Subscription:
    """Internal subscription record."""

    id: str
    pattern: str
    handler: EventHandler


# ── Notifier ─────────────────────────────────────────────────────────────


class Notifier:
    """Synchronous in-process notification bus.

    Handlers run on the publishing thread, in subscription order.  A failing
    handler is logged and skipped; it never breaks delivery to the others
    or propagates into the job that published the event.

    Example::

        bus = Notifier()
        seen = []
        bus.subscribe("enqueue*", seen.append)
        bus.publish(Event("enqueue_at", {"job": job}))
        assert seen[0].name == "enqueue_at"
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def publish(self, event: Event) -> None:
        """Deliver an event to every matching subscriber."""
        with self._lock:
            handlers = [
                (sub.id, sub.handler)
                for sub in self._subscriptions.values()
                if event.matches(sub.pattern)
            ]

        for sub_id, handler in handlers:
            try:
                handler(event)
            except Exception as e:
                log.warning(
                    "event_handler_error",
                    subscription_id=sub_id,
                    event_name=event.name,
                    error=str(e),
                )

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        """Subscribe to events matching a pattern.

        Returns:
            Subscription ID for :meth:`unsubscribe`
        """
        sub_id = f"sub_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._subscriptions[sub_id] = Subscription(
                id=sub_id,
                pattern=pattern,
                handler=handler,
            )
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        """Remove a subscription."""
        with self._lock:
            self._subscriptions.pop(subscription_id, None)

    @contextmanager
    def instrument(self, name: str, payload: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
        """Time a block and publish an event for it when the block exits.

        The payload is yielded so the block can add to it (``aborted``,
        ``enqueued_count``, ...).  If the block raises, the exception is
        stored under ``exception_object``, the event is published and the
        exception re-raised.
        """
        data: dict[str, Any] = dict(payload or {})
        started = time.perf_counter()
        try:
            yield data
        except Exception as e:
            data["exception_object"] = e
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            self.publish(Event(name=name, payload=data, duration=duration_ms))

    @property
    def subscription_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._subscriptions)
