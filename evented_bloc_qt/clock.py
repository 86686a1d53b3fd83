"""
QtClock - evented_bloc clock backed by the Qt event loop.

Each ``schedule_once`` call starts a single-shot QTimer. Zero-timeout timers
started in sequence fire in the same order, which keeps per-subscription
delivery FIFO. A QCoreApplication (or QApplication) must exist and its event
loop must run for callbacks to fire.

Usage:
    from evented_bloc_qt import QtClock
    cubit = CounterCubit(0, clock=QtClock())
"""

import time
from typing import Any, Callable, Optional, Set

from PySide6.QtCore import QObject, QTimer


class QtClockEvent:
    """Pending callback on a QtClock (cancel() is idempotent)."""

    def __init__(self, clock: "QtClock", callback: Callable[[float], Any], timeout: float):
        self._clock = clock
        self._callback = callback
        self._started = time.monotonic()
        self._timer: Optional[QTimer] = QTimer(clock)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)
        self._timer.start(max(int(timeout * 1000), 0))

    @property
    def is_triggered(self) -> bool:
        return self._timer is not None

    def cancel(self):
        if self._timer is None:
            return
        self._timer.stop()
        self._release()

    def _fire(self):
        if self._timer is None:
            return
        self._release()
        self._callback(time.monotonic() - self._started)

    def _release(self):
        timer, self._timer = self._timer, None
        self._clock._live.discard(self)
        if timer is not None:
            timer.deleteLater()


class QtClock(QObject):
    """Clock whose callbacks run as Qt timer events."""

    def __init__(self, parent=None):
        super().__init__(parent)
        # Strong references keep pending timers alive until they fire
        self._live: Set[QtClockEvent] = set()

    @property
    def pending(self) -> int:
        return len(self._live)

    def schedule_once(self, callback: Callable[[float], Any], timeout: float = 0) -> QtClockEvent:
        event = QtClockEvent(self, callback, timeout)
        self._live.add(event)
        return event
