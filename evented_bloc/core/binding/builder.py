# evented_bloc/core/binding/builder.py
"""BlocBuilder: rebuilds output from the state of a source."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, Generic, Optional, TypeVar

from evented_bloc.core.binding.base import UNCHANGED, SourceBinding
from evented_bloc.core.binding.subscription import Cancelable
from evented_bloc.core.errors import BindingConfigurationError, BindingStateError
from evented_bloc.core.registry import BindingContext
from evented_bloc.core.state.events import describe

B = TypeVar("B")
S = TypeVar("S")

BuilderCallback = Callable[[BindingContext, Any], Any]
BuildWhen = Callable[[Any, Any], bool]

logger = logging.getLogger(__name__)


class BlocBuilder(SourceBinding[B], Generic[B, S]):
    """Calls ``builder(context, state)`` on mount and on qualifying state changes.

    ``build_when(previous, current)`` gates each rebuild. ``previous`` starts
    at the source's state when the builder mounts (or rebinds) and advances
    on every delivered state, whether or not the rebuild happened.
    """

    def __init__(
        self,
        builder: BuilderCallback,
        *,
        source_type: Optional[type] = None,
        bloc: Optional[B] = None,
        build_when: Optional[BuildWhen] = None,
        log_dispatch: bool = False,
    ) -> None:
        if not callable(builder):
            raise BindingConfigurationError(
                "BlocBuilder requires a callable builder",
                context={"builder": repr(builder)},
            )
        super().__init__(source_type=source_type, bloc=bloc)
        self.builder = builder
        self.build_when = build_when
        self.log_dispatch = log_dispatch
        self._previous: Any = None
        self._output: Any = None
        self._build_count = 0

    @property
    def output(self) -> Any:
        """Output of the most recent builder call."""
        return self._output

    @property
    def build_count(self) -> int:
        return self._build_count

    def mount(self, context: Optional[BindingContext] = None) -> None:
        """Subscribe to the effective source and build once with its current state."""
        source = self._attach(context or BindingContext())
        self._previous = source.state  # type: ignore[attr-defined]
        self._rebuild(self._previous)

    def update(
        self,
        *,
        bloc: Any = UNCHANGED,
        builder: Any = UNCHANGED,
        build_when: Any = UNCHANGED,
    ) -> None:
        """Apply new properties. A changed ``bloc`` identity rebinds and rebuilds."""
        if builder is not UNCHANGED:
            self.builder = builder
        if build_when is not UNCHANGED:
            self.build_when = build_when
        self._update_source(bloc)

    def build(self) -> Any:
        if not self.is_mounted:
            raise BindingStateError(
                f"{self.label} has no output while {self.phase.value}",
                context={"binding": self.label},
            )
        return self._output

    def unmount(self) -> None:
        super().unmount()
        self._previous = None

    def _connect(self, source: B) -> Sequence[Cancelable]:
        return [source.subscribe_to_state_changes(self._on_state)]  # type: ignore[attr-defined]

    def _on_source_changed(self, old: B, new: B) -> None:
        # State queued for the old source was dropped with its subscription;
        # the baseline restarts from the new source.
        self._previous = new.state  # type: ignore[attr-defined]
        self._rebuild(self._previous)

    def _on_state(self, state: S) -> None:
        previous, self._previous = self._previous, state
        if self.build_when is not None and not self.build_when(previous, state):
            return
        self._rebuild(state)

    def _rebuild(self, state: Any) -> None:
        if self.log_dispatch:
            logger.debug("%s building with %s", self.label, describe(state))
        self._output = self.builder(self._context, state)
        self._build_count += 1
