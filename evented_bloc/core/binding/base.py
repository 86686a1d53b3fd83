# evented_bloc/core/binding/base.py
"""Shared plumbing for nodes that bind to a single source."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, Optional, TypeVar

from evented_bloc.core.binding.subscription import BindingPhase, Cancelable, SubscriptionManager
from evented_bloc.core.errors import BindingConfigurationError, BindingStateError
from evented_bloc.core.registry import BindingContext, type_name

B = TypeVar("B")


class _Unchanged:
    def __repr__(self) -> str:
        return "UNCHANGED"


# Default for update() keyword arguments; None is a meaningful value for bloc
UNCHANGED: Any = _Unchanged()


class BindingNode:
    """A node of the binding tree: mountable, and buildable into an output."""

    def mount(self, context: Optional[BindingContext] = None) -> None:
        raise NotImplementedError

    def unmount(self) -> None:
        raise NotImplementedError

    def build(self) -> Any:
        raise NotImplementedError


def render(node: Any) -> Any:
    """Follow ``build()`` through nested binding nodes down to the rendered leaf."""
    while isinstance(node, BindingNode):
        node = node.build()
    return node


class SourceBinding(BindingNode, Generic[B]):
    """A node observing one source through its own SubscriptionManager.

    Subclasses implement ``_connect(source)`` and may override
    ``_on_source_changed(old, new)``.
    """

    def __init__(self, *, source_type: Optional[type] = None, bloc: Optional[B] = None) -> None:
        if source_type is None:
            if bloc is None:
                raise BindingConfigurationError(
                    f"{type(self).__name__} needs a source_type for ambient lookup or an explicit bloc",
                    context={"binding": type(self).__name__},
                )
            source_type = type(bloc)
        self.source_type = source_type
        self.bloc = bloc
        self._manager: Optional[SubscriptionManager[B]] = None
        self._context: Optional[BindingContext] = None
        self._unmounted = False

    @property
    def label(self) -> str:
        return f"{type(self).__name__}[{type_name(self.source_type)}]"

    @property
    def source(self) -> Optional[B]:
        """The source currently observed (None before mount and after unmount)."""
        return self._manager.source if self._manager is not None else None

    @property
    def context(self) -> Optional[BindingContext]:
        return self._context

    @property
    def phase(self) -> BindingPhase:
        if self._manager is None:
            return BindingPhase.DETACHED if self._unmounted else BindingPhase.UNATTACHED
        return self._manager.phase

    @property
    def is_mounted(self) -> bool:
        return self.phase is BindingPhase.ATTACHED

    @property
    def manager(self) -> Optional[SubscriptionManager[B]]:
        return self._manager

    def mount(self, context: Optional[BindingContext] = None) -> None:
        self._attach(context or BindingContext())

    def _attach(self, context: BindingContext) -> B:
        if self._manager is not None or self._unmounted:
            raise BindingStateError(
                f"{self.label} is already {self.phase.value}; create a new binding instead",
                context={"binding": self.label, "phase": self.phase.value},
            )
        manager: SubscriptionManager[B] = SubscriptionManager(
            self.source_type,
            context,
            connect=self._connect,
            on_rebind=self._on_source_changed,
            owner=self.label,
        )
        # Failure to resolve leaves the node unmounted so the caller may retry
        source = manager.attach(self.bloc)
        self._manager = manager
        self._context = context
        return source

    def _update_source(self, bloc: Any) -> None:
        if bloc is UNCHANGED:
            return
        self.bloc = bloc
        if self._manager is not None and self._manager.phase is BindingPhase.ATTACHED:
            self._manager.rebind(bloc)

    def _rollback(self) -> None:
        """Undo a mount that failed part way; the node may be mounted again."""
        if self._manager is not None:
            self._manager.detach()
            self._manager = None
        self._context = None

    def unmount(self) -> None:
        """Cancel subscriptions and release the source. Idempotent."""
        if self._manager is not None:
            self._manager.detach()
            self._manager = None
        self._unmounted = True

    def _connect(self, source: B) -> Sequence[Cancelable]:
        raise NotImplementedError

    def _on_source_changed(self, old: B, new: B) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{self.label} {self.phase.value}>"
