# evented_bloc/core/binding/listener.py
"""BlocEventListener: runs a callback for every event fired by a source.

It should be used for reactions that must happen once per fired event, such
as navigation or showing a transient message, as opposed to rebuilding
output from state.

If ``bloc`` is omitted the source is looked up in the context's registry by
``source_type``, and the listener follows the registry when the registered
instance is replaced.

Usage:
    listener = BlocEventListener(
        lambda context, bloc, event: context.target.show_message(str(event)),
        source_type=CounterCubit,
        listen_when=lambda bloc, event: event is CounterEvent.DECREMENTED,
        child=view,
    )
    listener.mount(BindingContext(registry))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, Generic, Optional, TypeVar

from evented_bloc.core.binding.base import UNCHANGED, SourceBinding
from evented_bloc.core.binding.subscription import Cancelable
from evented_bloc.core.errors import BindingConfigurationError
from evented_bloc.core.registry import BindingContext
from evented_bloc.core.state.events import describe

B = TypeVar("B")
E = TypeVar("E")

EventListenerCallback = Callable[[BindingContext, Any, Any], None]
ListenWhen = Callable[[Any, Any], bool]

logger = logging.getLogger(__name__)


class BlocEventListener(SourceBinding[B], Generic[B, E]):
    """Invokes ``listener(context, bloc, event)`` for each event fired by the source.

    ``listen_when(bloc, event)`` is evaluated exactly once per event when it is
    delivered; a False result suppresses the listener for that event only.
    When omitted it defaults to True.

    Args:
        listener: Callback run for each qualifying event
        source_type: Type used for ambient lookup (defaults to ``type(bloc)``)
        bloc: Explicit source; when None the registry is used
        listen_when: Optional filter predicate
        child: Output wrapped by this listener; required unless the listener
            is composed by MultiBlocEventListener
        log_dispatch: Log every dispatched event at DEBUG
    """

    def __init__(
        self,
        listener: EventListenerCallback,
        *,
        source_type: Optional[type] = None,
        bloc: Optional[B] = None,
        listen_when: Optional[ListenWhen] = None,
        child: Any = None,
        log_dispatch: bool = False,
    ) -> None:
        if not callable(listener):
            raise BindingConfigurationError(
                "BlocEventListener requires a callable listener",
                context={"listener": repr(listener)},
            )
        super().__init__(source_type=source_type, bloc=bloc)
        self.listener = listener
        self.listen_when = listen_when
        self.child = child
        self.log_dispatch = log_dispatch
        self._mounted_child: Any = None

    def mount(self, context: Optional[BindingContext] = None) -> None:
        """Mount standalone: subscribe to the effective source.

        Raises:
            BindingConfigurationError: if no child was given.
            SourceNotFoundError: if no source can be resolved.
        """
        self._require_child(self.child)
        self._mount_with_child(context or BindingContext(), self.child)

    def _mount_with_child(self, context: BindingContext, child: Any) -> None:
        self._attach(context)
        self._mounted_child = child

    def _require_child(self, child: Any) -> None:
        if child is None:
            raise BindingConfigurationError(
                f"{self.label} used outside of MultiBlocEventListener must specify a child.",
                user_message="Event listener has nothing to render",
                context={"binding": self.label},
            )

    def update(
        self,
        *,
        bloc: Any = UNCHANGED,
        listener: Any = UNCHANGED,
        listen_when: Any = UNCHANGED,
        child: Any = UNCHANGED,
    ) -> None:
        """Apply new properties. A changed ``bloc`` identity rebinds the subscription.

        Passing ``bloc=None`` switches to ambient lookup.
        """
        if listener is not UNCHANGED:
            self.listener = listener
        if listen_when is not UNCHANGED:
            self.listen_when = listen_when
        if child is not UNCHANGED:
            self.child = child
            if self.is_mounted:
                self._mounted_child = child
        self._update_source(bloc)

    def build(self) -> Any:
        """Return the wrapped child.

        Raises:
            BindingConfigurationError: if there is nothing to render.
        """
        child = self._mounted_child if self.is_mounted else self.child
        self._require_child(child)
        return child

    def _rollback(self) -> None:
        super()._rollback()
        self._mounted_child = None

    def unmount(self) -> None:
        super().unmount()
        self._mounted_child = None

    def _connect(self, source: B) -> Sequence[Cancelable]:
        return [source.subscribe_to_events(self._on_event)]  # type: ignore[attr-defined]

    def _on_event(self, event: E) -> None:
        source = self.source
        if self.listen_when is not None and not self.listen_when(source, event):
            return
        if self.log_dispatch:
            logger.debug("%s dispatching %s", self.label, describe(event))
        self.listener(self._context, source, event)
