# evented_bloc/core/state/stream.py
"""Broadcast notification sequence (Kivy-independent, single-threaded).

BroadcastStream fans every value out to all current listeners. Delivery is
asynchronous: ``add()`` queues the value on each subscription and schedules a
drain on the clock, so listeners run from the event loop, never from inside
the producer's call.

Delivery Semantics:
- add() takes a snapshot of the listener list; a subscription created during
  add() does not receive that value
- each subscription owns a FIFO queue, so per-listener order equals add() order
- cancel() clears the subscription's queue and cancels its scheduled drain
  before returning; nothing queued earlier is delivered afterwards
- listener exceptions propagate to the clock's caller (not swallowed)
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from evented_bloc.core.clock import Clock, ClockEventProtocol
from evented_bloc.core.errors import SourceClosedError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class StreamSubscription(Generic[T]):
    """A single registration on a BroadcastStream.

    Created by ``BroadcastStream.listen()``; never instantiated directly.
    """

    def __init__(
        self, stream: "BroadcastStream[T] | None", on_data: Callable[[T], Any], clock: Clock | None = None
    ) -> None:
        self._stream = stream
        self._clock = clock
        self._on_data = on_data
        self._pending: deque[T] = deque()
        self._drain_event: ClockEventProtocol | None = None
        self._cancelled = stream is None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> int:
        """Number of values queued but not yet delivered."""
        return len(self._pending)

    def cancel(self) -> None:
        """Close the subscription. Idempotent.

        Queued values are discarded and the scheduled drain is cancelled
        before this returns.
        """
        if self._cancelled:
            return
        self._cancelled = True
        self._pending.clear()
        if self._drain_event is not None:
            self._drain_event.cancel()
            self._drain_event = None
        if self._stream is not None:
            self._stream._remove(self)
            self._stream = None

    def _enqueue(self, value: T) -> None:
        self._pending.append(value)
        self._schedule_drain()

    def _schedule_drain(self) -> None:
        if self._drain_event is None and self._clock is not None:
            self._drain_event = self._clock.schedule_once(self._drain, 0)

    def _drain(self, _dt: float) -> None:
        self._drain_event = None
        # values queued by a listener during this drain wait for the next one
        count = len(self._pending)
        try:
            for _ in range(count):
                if not self._pending:
                    break  # cancelled from inside a listener
                value = self._pending.popleft()
                self._on_data(value)
        finally:
            # a raising listener leaves the rest queued for the next drain
            if self._pending and not self._cancelled:
                self._schedule_drain()


class BroadcastStream(Generic[T]):
    """Fan-out sequence of values delivered through a clock.

    Example:
        >>> clock = ManualClock()
        >>> stream = BroadcastStream(clock, name="events")
        >>> sub = stream.listen(print)
        >>> stream.add("fired")
        >>> clock.pump()
        fired
        1
    """

    def __init__(self, clock: Clock, name: str = "stream") -> None:
        self._clock = clock
        self._name = name
        self._subscriptions: list[StreamSubscription[T]] = []
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_listener(self) -> bool:
        return bool(self._subscriptions)

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def listen(self, on_data: Callable[[T], Any]) -> StreamSubscription[T]:
        """Register ``on_data`` for values added after this call.

        Listening to a closed stream returns an already-cancelled subscription.
        """
        if self._closed:
            return StreamSubscription(None, on_data)
        subscription = StreamSubscription(self, on_data, self._clock)
        self._subscriptions.append(subscription)
        return subscription

    def add(self, value: T) -> None:
        """Queue ``value`` for every current listener.

        Raises:
            SourceClosedError: if the stream has been closed.
        """
        if self._closed:
            raise SourceClosedError(
                f"Cannot add to closed stream {self._name!r}",
                context={"stream": self._name},
            )
        # Snapshot: listeners added during delivery wait for the next value
        for subscription in self._subscriptions[:]:
            subscription._enqueue(value)

    def close(self) -> None:
        """Stop accepting values. Values already queued are still delivered."""
        if self._closed:
            return
        self._closed = True
        logger.debug("Closed %s with %d listener(s)", self._name, len(self._subscriptions))
        self._subscriptions.clear()

    def _remove(self, subscription: StreamSubscription[T]) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass  # already removed by close()
