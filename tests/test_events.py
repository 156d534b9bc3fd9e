"""Tests for joblog.events: Event model and the synchronous Notifier."""

import pytest
from structlog.testing import capture_logs

from joblog.events import Event, Notifier


class TestEvent:
    def test_defaults(self):
        event = Event("enqueue")
        assert event.payload == {}
        assert event.duration is None
        assert event.event_id
        assert event.time.tzinfo is not None

    def test_immutable(self):
        event = Event("enqueue")
        with pytest.raises(AttributeError):
            event.name = "perform"

    def test_unique_ids(self):
        assert Event("enqueue").event_id != Event("enqueue").event_id


class TestEventMatches:
    def test_exact_match(self):
        assert Event("enqueue").matches("enqueue") is True
        assert Event("enqueue_at").matches("enqueue") is False

    def test_wildcard_all(self):
        assert Event("discard").matches("*") is True

    def test_prefix_wildcard(self):
        assert Event("enqueue_all").matches("enqueue*") is True
        assert Event("perform").matches("enqueue*") is False


class TestNotifier:
    @pytest.fixture
    def bus(self):
        return Notifier()

    def test_publish_no_subscribers(self, bus):
        bus.publish(Event("enqueue"))

    def test_subscribe_and_receive_in_order(self, bus):
        received = []
        bus.subscribe("perform", lambda event: received.append(("first", event.name)))
        bus.subscribe("perform*", lambda event: received.append(("second", event.name)))
        bus.subscribe("enqueue", lambda event: received.append(("other", event.name)))

        bus.publish(Event("perform"))

        assert received == [("first", "perform"), ("second", "perform")]

    def test_unsubscribe(self, bus):
        received = []
        sub_id = bus.subscribe("*", received.append)
        bus.unsubscribe(sub_id)

        bus.publish(Event("enqueue"))

        assert received == []
        assert bus.subscription_count == 0

    def test_unsubscribe_unknown_is_noop(self, bus):
        bus.unsubscribe("sub_missing")

    def test_failing_handler_does_not_stop_delivery(self, bus):
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        bus.subscribe("*", broken)
        bus.subscribe("*", received.append)

        with capture_logs() as logs:
            bus.publish(Event("discard"))

        assert len(received) == 1
        assert logs[0]["event"] == "event_handler_error"
        assert logs[0]["event_name"] == "discard"
        assert logs[0]["error"] == "handler bug"


class TestInstrument:
    def test_publishes_with_duration(self):
        bus = Notifier()
        received = []
        bus.subscribe("perform", received.append)

        with bus.instrument("perform", {"job": "j"}) as payload:
            payload["aborted"] = True

        (event,) = received
        assert event.payload == {"job": "j", "aborted": True}
        assert event.duration is not None and event.duration >= 0

    def test_exception_recorded_and_reraised(self):
        bus = Notifier()
        received = []
        bus.subscribe("enqueue", received.append)

        with pytest.raises(ValueError):
            with bus.instrument("enqueue"):
                raise ValueError("bad job")

        assert isinstance(received[0].payload["exception_object"], ValueError)
