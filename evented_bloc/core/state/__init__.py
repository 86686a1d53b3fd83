# evented_bloc/core/state/__init__.py
"""Notification primitives for evented_bloc.

This package provides the Kivy-independent broadcast sequences that sources
use to publish state changes and fired events.

Public API:
    - BroadcastStream: Fan-out sequence delivered through a clock
    - StreamSubscription: Cancellable registration on a BroadcastStream
    - Change: Immutable record of a state transition

Example:
    >>> from evented_bloc.core.clock import ManualClock
    >>> from evented_bloc.core.state import BroadcastStream
    >>>
    >>> clock = ManualClock()
    >>> stream = BroadcastStream(clock, name="counter.events")
    >>> subscription = stream.listen(lambda event: print(f"fired: {event}"))
    >>> stream.add("incremented")
    >>> clock.pump()
    fired: incremented
    1
"""
from evented_bloc.core.state.events import Change
from evented_bloc.core.state.stream import BroadcastStream, StreamSubscription

__all__ = ["BroadcastStream", "StreamSubscription", "Change"]
