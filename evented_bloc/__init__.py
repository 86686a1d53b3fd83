"""Bindings for evented state containers.

Connects sources that hold state *and* fire one-shot events to rendered
output, with explicit subscription lifecycles.

Usage:
    clock = ManualClock()
    cubit = CounterCubit(0, clock=clock)
    listener = BlocEventListener(on_event, bloc=cubit, child=view)
    listener.mount()
    cubit.increment()
    clock.pump()  # on_event(context, cubit, "incremented")

Everything exported here is importable without Kivy or PySide6.
"""

from evented_bloc.common.typed_config import BindingConfig, load_config
from evented_bloc.core.binding import (
    BindingPhase,
    BlocBuilder,
    BlocEventConsumer,
    BlocEventListener,
    MultiBlocEventListener,
    SubscriptionManager,
    render,
)
from evented_bloc.core.clock import Clock, ManualClock, create_clock
from evented_bloc.core.errors import (
    BindingConfigurationError,
    BindingStateError,
    ClockError,
    ConfigError,
    EventedBlocError,
    SourceClosedError,
    SourceNotFoundError,
)
from evented_bloc.core.registry import BindingContext, SourceRegistry
from evented_bloc.core.source import BlocObserver, EventedCubit, EventSource, LoggingBlocObserver, same_instance
from evented_bloc.core.state import BroadcastStream, Change, StreamSubscription

__version__ = "0.1.0"

__all__ = [
    "BindingConfig",
    "load_config",
    "BindingPhase",
    "BlocBuilder",
    "BlocEventConsumer",
    "BlocEventListener",
    "MultiBlocEventListener",
    "SubscriptionManager",
    "render",
    "Clock",
    "ManualClock",
    "create_clock",
    "EventedBlocError",
    "BindingConfigurationError",
    "BindingStateError",
    "ClockError",
    "ConfigError",
    "SourceClosedError",
    "SourceNotFoundError",
    "BindingContext",
    "SourceRegistry",
    "BlocObserver",
    "EventedCubit",
    "EventSource",
    "LoggingBlocObserver",
    "same_instance",
    "BroadcastStream",
    "Change",
    "StreamSubscription",
]
