"""Kivy widgets wrapping evented_bloc bindings.

The widgets mount their binding when they are added to a parent and unmount
it when they are removed, mirroring a widget's place in the tree. Setting the
``bloc`` property swaps the source the same way a new prop would: the old
subscription is cancelled before the new one is made.

Usage (in Python):
    box = BlocEventListenerBox(
        listener=lambda context, bloc, event: show_toast(str(event)),
        source_type=CounterCubit,
        registry=app.registry,
    )
    box.add_widget(counter_view)
    root.add_widget(box)

Sources used with these widgets should be created with ``clock=Clock``
(kivy.clock.Clock) so notifications run on the Kivy main loop.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from kivy.properties import ObjectProperty
from kivy.uix.boxlayout import BoxLayout

from evented_bloc.core.binding import BlocEventConsumer, BlocEventListener
from evented_bloc.core.binding.builder import BuilderCallback, BuildWhen
from evented_bloc.core.binding.listener import EventListenerCallback, ListenWhen
from evented_bloc.core.registry import BindingContext

_logger = logging.getLogger(__name__)


class BlocEventListenerBox(BoxLayout):
    """BoxLayout whose children are the listener's child output."""

    bloc = ObjectProperty(None, allownone=True)
    registry = ObjectProperty(None, allownone=True)

    def __init__(
        self,
        listener: EventListenerCallback,
        source_type: Optional[type] = None,
        listen_when: Optional[ListenWhen] = None,
        **kwargs: Any,
    ) -> None:
        self._binding: Optional[BlocEventListener[Any, Any]] = None
        self._listener = listener
        self._source_type = source_type
        self._listen_when = listen_when
        super().__init__(**kwargs)

    @property
    def binding(self) -> Optional[BlocEventListener[Any, Any]]:
        return self._binding

    def on_parent(self, instance: Any, parent: Any) -> None:
        """Mount on insertion into the tree, unmount on removal."""
        if parent is None:
            self._unmount()
        elif self._binding is None:
            self._mount()

    def on_bloc(self, instance: Any, bloc: Any) -> None:
        if self._binding is not None:
            self._binding.update(bloc=bloc)

    def _mount(self) -> None:
        binding: BlocEventListener[Any, Any] = BlocEventListener(
            self._listener,
            source_type=self._source_type,
            bloc=self.bloc,
            listen_when=self._listen_when,
            child=self,
        )
        binding.mount(BindingContext(registry=self.registry, target=self))
        self._binding = binding
        _logger.debug("%s mounted %s", type(self).__name__, binding.label)

    def _unmount(self) -> None:
        if self._binding is not None:
            self._binding.unmount()
            self._binding = None


class BlocEventConsumerBox(BoxLayout):
    """BoxLayout showing the widget returned by ``builder`` for the current state.

    ``builder(context, state)`` must return a Widget; on every rebuild the
    previous widget is replaced.
    """

    bloc = ObjectProperty(None, allownone=True)
    registry = ObjectProperty(None, allownone=True)

    def __init__(
        self,
        listener: EventListenerCallback,
        builder: BuilderCallback,
        source_type: Optional[type] = None,
        listen_when: Optional[ListenWhen] = None,
        build_when: Optional[BuildWhen] = None,
        **kwargs: Any,
    ) -> None:
        self._binding: Optional[BlocEventConsumer[Any, Any, Any]] = None
        self._listener = listener
        self._builder = builder
        self._source_type = source_type
        self._listen_when = listen_when
        self._build_when = build_when
        self._current: Any = None
        super().__init__(**kwargs)

    @property
    def binding(self) -> Optional[BlocEventConsumer[Any, Any, Any]]:
        return self._binding

    @property
    def current_widget(self) -> Any:
        return self._current

    def on_parent(self, instance: Any, parent: Any) -> None:
        if parent is None:
            self._unmount()
        elif self._binding is None:
            self._mount()

    def on_bloc(self, instance: Any, bloc: Any) -> None:
        if self._binding is not None:
            self._binding.update(bloc=bloc)

    def _build_widget(self, context: BindingContext, state: Any) -> Any:
        widget = self._builder(context, state)
        if widget is not self._current:
            if self._current is not None:
                self.remove_widget(self._current)
            if widget is not None:
                self.add_widget(widget)
            self._current = widget
        return widget

    def _mount(self) -> None:
        binding: BlocEventConsumer[Any, Any, Any] = BlocEventConsumer(
            self._listener,
            self._build_widget,
            source_type=self._source_type,
            bloc=self.bloc,
            listen_when=self._listen_when,
            build_when=self._build_when,
        )
        binding.mount(BindingContext(registry=self.registry, target=self))
        self._binding = binding

    def _unmount(self) -> None:
        if self._binding is not None:
            self._binding.unmount()
            self._binding = None
