# tests/test_broadcast_stream.py
"""Unit tests for BroadcastStream and StreamSubscription.

Test categories:
- Asynchronous, ordered fan-out delivery
- Cancellation drops queued values synchronously
- Snapshot semantics (listen/cancel during delivery)
- Closed streams
"""

import pytest

from evented_bloc.core.clock import ManualClock
from evented_bloc.core.errors import SourceClosedError
from evented_bloc.core.state import BroadcastStream


@pytest.fixture
def stream(clock: ManualClock) -> BroadcastStream:
    return BroadcastStream(clock, name="test.events")


class TestDelivery:
    def test_delivery_is_asynchronous(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[str] = []
        stream.listen(received.append)

        stream.add("a")
        assert received == []

        clock.pump()
        assert received == ["a"]

    def test_values_delivered_in_add_order(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[int] = []
        stream.listen(received.append)

        for value in range(5):
            stream.add(value)
        clock.pump()

        assert received == [0, 1, 2, 3, 4]

    def test_fan_out_to_every_listener(self, clock: ManualClock, stream: BroadcastStream) -> None:
        first: list[str] = []
        second: list[str] = []
        stream.listen(first.append)
        stream.listen(second.append)

        stream.add("x")
        clock.pump()

        assert first == ["x"]
        assert second == ["x"]
        assert stream.listener_count == 2

    def test_listener_added_after_add_misses_value(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[str] = []
        stream.add("early")
        stream.listen(received.append)
        stream.add("late")
        clock.pump()

        assert received == ["late"]

    def test_value_added_by_listener_is_delivered_later(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[str] = []

        def echo(value: str) -> None:
            received.append(value)
            if value == "ping":
                stream.add("pong")

        stream.listen(echo)
        stream.add("ping")

        clock.tick()
        assert received == ["ping"]
        clock.pump()
        assert received == ["ping", "pong"]

    def test_listener_exception_keeps_remaining_values(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[int] = []

        def picky(value: int) -> None:
            if value == 1:
                raise RuntimeError("bad value")
            received.append(value)

        stream.listen(picky)
        stream.add(1)
        stream.add(2)

        with pytest.raises(RuntimeError, match="bad value"):
            clock.pump()
        clock.pump()

        assert received == [2]


class TestCancellation:
    def test_cancel_drops_queued_values(self, clock: ManualClock, stream: BroadcastStream) -> None:
        """Values added before cancel() but not yet delivered are never delivered."""
        received: list[str] = []
        subscription = stream.listen(received.append)

        stream.add("in flight")
        assert subscription.pending == 1
        subscription.cancel()

        assert subscription.pending == 0
        assert clock.pending == 0
        clock.pump()
        assert received == []
        assert not stream.has_listener

    def test_cancel_is_idempotent(self, stream: BroadcastStream) -> None:
        subscription = stream.listen(lambda value: None)
        subscription.cancel()
        subscription.cancel()
        assert subscription.is_cancelled

    def test_cancel_from_inside_listener_stops_delivery(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[int] = []

        def once(value: int) -> None:
            received.append(value)
            subscription.cancel()

        subscription = stream.listen(once)
        stream.add(1)
        stream.add(2)
        clock.pump()

        assert received == [1]

    def test_cancel_one_listener_keeps_others(self, clock: ManualClock, stream: BroadcastStream) -> None:
        kept: list[str] = []
        dropped: list[str] = []
        stream.listen(kept.append)
        subscription = stream.listen(dropped.append)

        stream.add("a")
        subscription.cancel()
        clock.pump()

        assert kept == ["a"]
        assert dropped == []


class TestClose:
    def test_add_after_close_raises(self, stream: BroadcastStream) -> None:
        stream.close()
        with pytest.raises(SourceClosedError):
            stream.add("x")

    def test_listen_after_close_returns_cancelled_subscription(self, stream: BroadcastStream) -> None:
        stream.close()
        subscription = stream.listen(lambda value: None)
        assert subscription.is_cancelled

    def test_values_queued_before_close_are_delivered(self, clock: ManualClock, stream: BroadcastStream) -> None:
        received: list[str] = []
        stream.listen(received.append)
        stream.add("last")
        stream.close()
        clock.pump()

        assert received == ["last"]
        assert stream.is_closed
