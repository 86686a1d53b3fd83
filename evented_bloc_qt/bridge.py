"""
SourceSignalBridge - Qt wrapper around an evented_bloc source.

Translates a source's fired events and state changes into Qt signals so Qt
widgets can connect to them with ordinary slots. Internally it is a
BlocEventConsumer, so it follows registry swaps and ``set_source()`` calls
with the same rebind rules as any other binding.

Signals:
    event_fired(object): Emitted for each event that passes ``listen_when``
    state_changed(object): Emitted with the state on mount and on every
        rebuild that passes ``build_when``
    source_changed(object): Emitted with the new source after a rebind

Usage:
    bridge = SourceSignalBridge(bloc=cubit)
    bridge.event_fired.connect(self.on_counter_event)
    bridge.state_changed.connect(self.on_counter_state)
    bridge.mount()
"""

from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Signal

from evented_bloc.core.binding import BlocEventConsumer
from evented_bloc.core.binding.subscription import BindingPhase
from evented_bloc.core.registry import BindingContext, SourceRegistry


class SourceSignalBridge(QObject):
    """
    Re-emits events and states of one source as Qt signals.

    The bridge must be mounted before it emits anything and unmounted when
    its owner is destroyed.
    """

    event_fired = Signal(object)
    state_changed = Signal(object)
    source_changed = Signal(object)

    def __init__(
        self,
        *,
        source_type: Optional[type] = None,
        bloc: Any = None,
        registry: Optional[SourceRegistry] = None,
        listen_when: Optional[Callable[[Any, Any], bool]] = None,
        build_when: Optional[Callable[[Any, Any], bool]] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._registry = registry
        self._consumer = BlocEventConsumer(
            self._on_event,
            self._on_state,
            source_type=source_type,
            bloc=bloc,
            listen_when=listen_when,
            build_when=build_when,
        )
        self._last_source: Any = None

    @property
    def source(self) -> Any:
        return self._consumer.source

    @property
    def is_mounted(self) -> bool:
        return self._consumer.phase is BindingPhase.ATTACHED

    def mount(self):
        self._consumer.mount(BindingContext(registry=self._registry, target=self))
        self._last_source = self._consumer.source

    def unmount(self):
        self._consumer.unmount()
        self._last_source = None

    def set_source(self, bloc: Any):
        """Switch to ``bloc`` (None = registry lookup)."""
        self._consumer.update(bloc=bloc)

    def _on_event(self, context: BindingContext, bloc: Any, event: Any):
        self.event_fired.emit(event)

    def _on_state(self, context: BindingContext, state: Any):
        source = self._consumer.source
        if self._last_source is not None and source is not self._last_source:
            self._last_source = source
            self.source_changed.emit(source)
        self.state_changed.emit(state)
        return state
