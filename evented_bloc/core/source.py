# evented_bloc/core/source.py
"""Event sources: the capability consumed by bindings, plus a reference cubit.

A source holds a current state, publishes every state transition, and
independently fires discrete one-shot events. Bindings only ever observe a
source; creating and closing it belongs to the application.

Identity Rule:
- Two references denote "the same source" only if they are the same object
  (``is``). Equal state never makes two sources interchangeable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from evented_bloc.core.clock import Clock
from evented_bloc.core.errors import SourceClosedError
from evented_bloc.core.state import BroadcastStream, Change, StreamSubscription
from evented_bloc.core.state.events import describe

if TYPE_CHECKING:
    from evented_bloc.common.typed_config import BindingConfig

E = TypeVar("E")
S = TypeVar("S")


@runtime_checkable
class EventSource(Protocol[E, S]):
    """Capability set required by the bindings."""

    @property
    def state(self) -> S: ...

    def subscribe_to_events(self, on_event: Callable[[E], Any]) -> StreamSubscription[E]: ...

    def subscribe_to_state_changes(self, on_state: Callable[[S], Any]) -> StreamSubscription[S]: ...


def same_instance(a: Any, b: Any) -> bool:
    """Identity comparison used for every rebind decision."""
    return a is b


class BlocObserver:
    """Hooks called by sources on lifecycle changes. All methods are no-ops."""

    def on_create(self, source: Any) -> None:
        pass

    def on_change(self, source: Any, change: Change[Any]) -> None:
        pass

    def on_fire_event(self, source: Any, event: Any) -> None:
        pass

    def on_close(self, source: Any) -> None:
        pass


class LoggingBlocObserver(BlocObserver):
    """BlocObserver that writes every hook to ``logging``."""

    def __init__(self, level: int = logging.DEBUG, logger_name: str = "evented_bloc.observer") -> None:
        self.level = level
        self._logger = logging.getLogger(logger_name)

    @classmethod
    def from_config(cls, config: "BindingConfig") -> "LoggingBlocObserver":
        return cls(level=config.observer_level)

    def on_create(self, source: Any) -> None:
        self._logger.log(self.level, "%s created", type(source).__name__)

    def on_change(self, source: Any, change: Change[Any]) -> None:
        self._logger.log(
            self.level,
            "%s changed %s -> %s",
            type(source).__name__,
            describe(change.current_state),
            describe(change.next_state),
        )

    def on_fire_event(self, source: Any, event: Any) -> None:
        self._logger.log(self.level, '"%s" fired Event => %s', type(source).__name__, describe(event))

    def on_close(self, source: Any) -> None:
        self._logger.log(self.level, "%s closed", type(source).__name__)


class EventedCubit(Generic[E, S]):
    """Minimal state container with an outgoing event channel.

    State is updated synchronously by ``emit()``; listeners are notified
    through the clock. ``fire_event()`` publishes a one-shot event that is not
    part of the state.

    Example:
        >>> class CounterCubit(EventedCubit[str, int]):
        ...     def increment(self) -> None:
        ...         self.emit(self.state + 1)
        ...         self.fire_event("incremented")
        >>> cubit = CounterCubit(0, clock=ManualClock())
    """

    def __init__(self, initial_state: S, *, clock: Clock, observer: BlocObserver | None = None) -> None:
        self._state = initial_state
        self._clock = clock
        self._observer = observer or BlocObserver()
        name = type(self).__name__
        self._state_stream: BroadcastStream[S] = BroadcastStream(clock, name=f"{name}.states")
        self._event_stream: BroadcastStream[E] = BroadcastStream(clock, name=f"{name}.events")
        self._emitted = False
        self._closed = False
        self._observer.on_create(self)

    @property
    def state(self) -> S:
        return self._state

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def state_stream(self) -> BroadcastStream[S]:
        return self._state_stream

    @property
    def event_stream(self) -> BroadcastStream[E]:
        return self._event_stream

    def emit(self, state: S) -> None:
        """Replace the current state and notify state listeners.

        Emitting a state equal to the current one is ignored once the cubit
        has emitted at least once.

        Raises:
            SourceClosedError: if the cubit is closed.
        """
        if self._closed:
            raise SourceClosedError(
                f"Cannot emit new states after calling close on {type(self).__name__}",
                context={"state": describe(state)},
            )
        if self._emitted and state == self._state:
            return
        change = Change(current_state=self._state, next_state=state)
        self._state = state
        self._emitted = True
        self._observer.on_change(self, change)
        self._state_stream.add(state)

    def fire_event(self, event: E) -> None:
        """Publish a one-shot event to event listeners.

        Raises:
            SourceClosedError: if the cubit is closed.
        """
        if self._closed:
            raise SourceClosedError(
                f"Cannot fire new events after calling close on {type(self).__name__}",
                context={"event": describe(event)},
            )
        self._observer.on_fire_event(self, event)
        self._event_stream.add(event)

    def subscribe_to_events(self, on_event: Callable[[E], Any]) -> StreamSubscription[E]:
        return self._event_stream.listen(on_event)

    def subscribe_to_state_changes(self, on_state: Callable[[S], Any]) -> StreamSubscription[S]:
        return self._state_stream.listen(on_state)

    def close(self) -> None:
        """Close both streams. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._state_stream.close()
        self._event_stream.close()
        self._observer.on_close(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} state={describe(self._state)} closed={self._closed}>"
