# evented_bloc/core/binding/consumer.py
"""BlocEventConsumer: a BlocBuilder and a BlocEventListener on one source.

Use it only when the same source must both rebuild output from its state
and trigger one-shot reactions from its fired events. It is equivalent to a
BlocEventListener whose child is a BlocBuilder, both bound to the source the
consumer resolves, but the two always move to a new source together.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Generic, Optional, TypeVar

from evented_bloc.core.binding.base import UNCHANGED, SourceBinding
from evented_bloc.core.binding.builder import BlocBuilder, BuilderCallback, BuildWhen
from evented_bloc.core.binding.listener import BlocEventListener, EventListenerCallback, ListenWhen
from evented_bloc.core.binding.subscription import Cancelable
from evented_bloc.core.errors import BindingStateError
from evented_bloc.core.registry import BindingContext

B = TypeVar("B")
E = TypeVar("E")
S = TypeVar("S")

logger = logging.getLogger(__name__)


class BlocEventConsumer(SourceBinding[B], Generic[B, E, S]):
    """Exposes a ``builder`` and a ``listener`` for the same source.

    The consumer resolves the effective source (explicit ``bloc`` or the
    registry) and hands it explicitly to an inner BlocEventListener and an
    inner BlocBuilder. When the effective source changes identity, both inner
    nodes rebind within the same call, so no notification of the old source
    is delivered afterwards and the builder rebuilds once from the new
    source's current state.

    ``build_when`` suppression never affects event dispatch.

    Usage:
        consumer = BlocEventConsumer(
            listener=lambda context, bloc, event: shown.append(event),
            builder=lambda context, state: f"State: {state}",
            source_type=CounterCubit,
            build_when=lambda previous, current: (previous + current) % 3 == 0,
        )
        consumer.mount(BindingContext(registry))
        consumer.build()  # "State: 0"
    """

    def __init__(
        self,
        listener: EventListenerCallback,
        builder: BuilderCallback,
        *,
        source_type: Optional[type] = None,
        bloc: Optional[B] = None,
        listen_when: Optional[ListenWhen] = None,
        build_when: Optional[BuildWhen] = None,
        log_dispatch: bool = False,
    ) -> None:
        super().__init__(source_type=source_type, bloc=bloc)
        self._builder_node: BlocBuilder[B, S] = BlocBuilder(
            builder,
            source_type=self.source_type,
            build_when=build_when,
            log_dispatch=log_dispatch,
        )
        self._listener_node: BlocEventListener[B, E] = BlocEventListener(
            listener,
            source_type=self.source_type,
            listen_when=listen_when,
            child=self._builder_node,
            log_dispatch=log_dispatch,
        )

    @property
    def listener(self) -> EventListenerCallback:
        return self._listener_node.listener

    @property
    def builder(self) -> BuilderCallback:
        return self._builder_node.builder

    @property
    def listener_node(self) -> BlocEventListener[B, E]:
        return self._listener_node

    @property
    def builder_node(self) -> BlocBuilder[B, S]:
        return self._builder_node

    def mount(self, context: Optional[BindingContext] = None) -> None:
        """Resolve the source, subscribe both inner nodes and build once."""
        context = context or BindingContext()
        source = self._attach(context)
        self._listener_node.update(bloc=source)
        self._builder_node.update(bloc=source)
        try:
            self._listener_node.mount(context)
            self._builder_node.mount(context)
        except Exception:
            self._listener_node._rollback()
            self._builder_node._rollback()
            self._rollback()
            raise

    def update(
        self,
        *,
        bloc: Any = UNCHANGED,
        listener: Any = UNCHANGED,
        builder: Any = UNCHANGED,
        listen_when: Any = UNCHANGED,
        build_when: Any = UNCHANGED,
    ) -> None:
        """Apply new properties. A changed source identity rebinds both inner nodes."""
        self._listener_node.update(listener=listener, listen_when=listen_when)
        self._builder_node.update(builder=builder, build_when=build_when)
        self._update_source(bloc)

    def build(self) -> Any:
        """Return the builder's latest output."""
        if not self.is_mounted:
            raise BindingStateError(
                f"{self.label} has no output while {self.phase.value}",
                context={"binding": self.label},
            )
        return self._builder_node.build()

    def unmount(self) -> None:
        self._listener_node.unmount()
        self._builder_node.unmount()
        super().unmount()

    def _connect(self, source: B) -> Sequence[Cancelable]:
        # The inner nodes own the subscriptions; this manager only tracks
        # the effective source and its ambient dependency.
        return []

    def _on_source_changed(self, old: B, new: B) -> None:
        if not self._listener_node.is_mounted:
            return
        logger.debug("%s moving inner bindings %r -> %r", self.label, old, new)
        self._listener_node.update(bloc=new)
        self._builder_node.update(bloc=new)
