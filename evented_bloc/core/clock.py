# evented_bloc/core/clock.py
"""Event-loop clock abstraction (Kivy-independent).

Every notification in evented_bloc is delivered through a clock: a single
execution queue shared with the rendering pipeline. The protocol mirrors
``kivy.clock.Clock.schedule_once`` so Kivy's global clock can be injected
directly, while ``ManualClock`` drives delivery deterministically in headless
environments and tests.

Usage:
    clock = ManualClock()
    clock.schedule_once(lambda dt: print("ran"), 0)
    clock.tick()  # prints "ran"
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from evented_bloc.core.errors import ClockError, ConfigError

if TYPE_CHECKING:
    from evented_bloc.common.typed_config import BindingConfig

ClockCallback = Callable[[float], Any]

DEFAULT_MAX_ITERATIONS = 10000

logger = logging.getLogger(__name__)


class ClockEventProtocol(Protocol):
    """Handle returned by ``schedule_once`` (kivy.clock.ClockEvent compatible)."""

    def cancel(self) -> None: ...


class Clock(Protocol):
    """Interface of the single execution queue used for delivery."""

    def schedule_once(self, callback: ClockCallback, timeout: float = 0) -> ClockEventProtocol: ...


class ManualClockEvent:
    """Callback scheduled on a ManualClock."""

    def __init__(self, clock: "ManualClock", callback: ClockCallback, scheduled_at: float, deadline: float) -> None:
        self._clock = clock
        self.callback = callback
        self.scheduled_at = scheduled_at
        self.deadline = deadline
        self.cancelled = False

    @property
    def is_triggered(self) -> bool:
        """True while the callback is still waiting in the queue."""
        return not self.cancelled and self in self._clock._queue

    def cancel(self) -> None:
        """Remove the callback from the queue. Idempotent."""
        if self.cancelled:
            return
        self.cancelled = True
        self._clock._discard(self)

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"<ManualClockEvent {name} deadline={self.deadline}>"


class ManualClock:
    """Deterministic FIFO clock.

    Callbacks run only when ``tick()`` or ``pump()`` is called, in the order
    they were scheduled. Callbacks scheduled while a tick is running wait for
    the next tick, which keeps "pump once" and "pump until idle" distinct.

    Exceptions raised by callbacks propagate to the caller of ``tick()``;
    callbacks that did not run yet stay queued.
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> None:
        self._queue: list[ManualClockEvent] = []
        self._now = 0.0
        self.max_iterations = max_iterations

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of callbacks waiting in the queue (due or not)."""
        return len(self._queue)

    def schedule_once(self, callback: ClockCallback, timeout: float = 0) -> ManualClockEvent:
        deadline = self._now + max(timeout, 0)
        event = ManualClockEvent(self, callback, self._now, deadline)
        self._queue.append(event)
        return event

    def _discard(self, event: ManualClockEvent) -> None:
        try:
            self._queue.remove(event)
        except ValueError:
            pass  # already ran or never queued

    def tick(self, dt: float = 0.0) -> int:
        """Advance virtual time by ``dt`` and run every callback already due.

        Returns:
            Number of callbacks that ran.
        """
        self._now += dt
        due = [event for event in self._queue if event.deadline <= self._now]
        ran = 0
        for event in due:
            if event.cancelled or event not in self._queue:
                continue
            self._queue.remove(event)
            ran += 1
            event.callback(self._now - event.scheduled_at)
        return ran

    def pump(self, max_iterations: int | None = None) -> int:
        """Tick until no due callback remains.

        Raises:
            ClockError: if the queue is still busy after ``max_iterations`` ticks.
        """
        limit = self.max_iterations if max_iterations is None else max_iterations
        total = 0
        for _ in range(limit):
            ran = self.tick()
            if ran == 0:
                return total
            total += ran
        if any(event.deadline <= self._now for event in self._queue):
            raise ClockError(
                f"ManualClock still busy after {limit} ticks",
                context={"pending": self.pending, "ran": total},
            )
        return total

    def clear(self) -> None:
        """Drop every queued callback (primarily for testing)."""
        for event in list(self._queue):
            event.cancel()


def create_clock(config: "BindingConfig") -> Clock:
    """Build the clock named by ``config.clock``.

    Kivy and Qt are imported lazily so the core stays importable without them.
    """
    name = config.clock
    logger.debug("Creating %s clock", name)
    if name == "manual":
        return ManualClock(max_iterations=config.max_pump_iterations)
    if name == "kivy":
        from kivy.clock import Clock as KivyClock

        return KivyClock
    if name == "qt":
        from evented_bloc_qt.clock import QtClock

        return QtClock()
    raise ConfigError(f"Unknown clock backend: {name!r}", context={"clock": name})
