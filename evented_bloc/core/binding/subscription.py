# evented_bloc/core/binding/subscription.py
"""Subscription manager: owns the subscriptions of one binding to one source.

Lifecycle:
    UNATTACHED --attach()--> ATTACHED --rebind()--> ATTACHED --detach()--> DETACHED

- attach() resolves the effective source and connects to it
- rebind() recomputes the effective source; same identity is a no-op,
  otherwise every owned subscription is cancelled before the new ones are made
- detach() is idempotent and terminal

Effective Source:
    explicit source if given, otherwise ``context.read(source_type)``.
    The same rule is used on attach, on explicit prop updates and on ambient
    identity changes.

Ambient Dependency:
    While the source comes from the registry, the manager watches the
    registry for identity changes of ``source_type`` and rebinds itself.
    Switching to an explicit source (or detaching) releases the watch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, Generic, Optional, Protocol, TypeVar

from evented_bloc.core.errors import BindingStateError
from evented_bloc.core.registry import BindingContext, RegistryWatch, type_name
from evented_bloc.core.source import same_instance

B = TypeVar("B")

logger = logging.getLogger(__name__)


class Cancelable(Protocol):
    def cancel(self) -> None: ...


ConnectFn = Callable[[Any], Sequence[Cancelable]]
RebindHook = Callable[[Any, Any], None]


class BindingPhase(Enum):
    """Lifecycle phase of a SubscriptionManager."""

    UNATTACHED = "unattached"
    ATTACHED = "attached"
    DETACHED = "detached"


class SubscriptionManager(Generic[B]):
    """Tracks the effective source of a binding and the subscriptions made on it.

    Args:
        source_type: Type used for ambient lookup
        context: BindingContext providing the registry
        connect: Called with the new source; returns the subscriptions to own
        on_rebind: Called with (old, new) once the new subscriptions are made
        owner: Label used in log lines and error messages
    """

    def __init__(
        self,
        source_type: type,
        context: BindingContext,
        *,
        connect: ConnectFn,
        on_rebind: Optional[RebindHook] = None,
        owner: str = "binding",
    ) -> None:
        self._source_type = source_type
        self._context = context
        self._connect = connect
        self._on_rebind = on_rebind
        self._owner = owner
        self._phase = BindingPhase.UNATTACHED
        self._source: Optional[B] = None
        self._explicit: Optional[B] = None
        self._subscriptions: list[Cancelable] = []
        self._watch: Optional[RegistryWatch] = None

    @property
    def phase(self) -> BindingPhase:
        return self._phase

    @property
    def source(self) -> Optional[B]:
        return self._source

    @property
    def is_ambient(self) -> bool:
        """True while the source was resolved from the registry."""
        return self._phase is BindingPhase.ATTACHED and self._explicit is None

    @property
    def is_watching(self) -> bool:
        return self._watch is not None and self._watch.is_active

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def effective_source(self, explicit: Optional[B]) -> B:
        """The source this binding should observe for the given explicit prop.

        Raises:
            SourceNotFoundError: if ``explicit`` is None and the registry has none.
        """
        if explicit is not None:
            return explicit
        return self._context.read(self._source_type)

    def attach(self, explicit: Optional[B] = None) -> B:
        """Resolve the effective source and subscribe to it.

        Raises:
            BindingStateError: if already attached or detached.
            SourceNotFoundError: if no source can be resolved.
        """
        if self._phase is not BindingPhase.UNATTACHED:
            raise BindingStateError(
                f"{self._owner} cannot attach while {self._phase.value}",
                context={"owner": self._owner, "phase": self._phase.value},
            )
        source = self.effective_source(explicit)
        self._explicit = explicit
        self._source = source
        self._subscriptions = list(self._connect(source))
        self._phase = BindingPhase.ATTACHED
        self._sync_watch()
        logger.debug(
            "%s attached to %r (%s)", self._owner, source, "explicit" if explicit is not None else "ambient"
        )
        return source

    def rebind(self, explicit: Optional[B] = None) -> bool:
        """Move to the effective source for ``explicit``.

        Returns:
            True if the subscriptions were replaced, False for a same-identity no-op.

        Raises:
            BindingStateError: if the manager was never attached or is detached.
            SourceNotFoundError: if no source can be resolved; the current
                subscriptions are left untouched in that case.
        """
        if self._phase is not BindingPhase.ATTACHED:
            raise BindingStateError(
                f"{self._owner} cannot rebind while {self._phase.value}",
                context={"owner": self._owner, "phase": self._phase.value},
            )
        new = self.effective_source(explicit)
        self._explicit = explicit
        if same_instance(new, self._source):
            self._sync_watch()
            return False

        old = self._source
        self._cancel_subscriptions()
        self._source = new
        self._subscriptions = list(self._connect(new))
        self._sync_watch()
        logger.debug("%s rebound %r -> %r", self._owner, old, new)
        # Subscriptions exist before the hook runs, even if it raises
        if self._on_rebind is not None:
            self._on_rebind(old, new)
        return True

    def refresh(self) -> bool:
        """Re-evaluate the effective source keeping the current explicit prop."""
        return self.rebind(self._explicit)

    def detach(self) -> None:
        """Cancel everything and release the source. Idempotent."""
        if self._phase is BindingPhase.DETACHED:
            return
        self._cancel_subscriptions()
        self._release_watch()
        if self._source is not None:
            logger.debug("%s detached from %r", self._owner, self._source)
        self._source = None
        self._explicit = None
        self._phase = BindingPhase.DETACHED

    def _cancel_subscriptions(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()

    def _sync_watch(self) -> None:
        if self._explicit is None and self._context.registry is not None:
            if not self.is_watching:
                self._watch = self._context.registry.watch(self._source_type, self._on_ambient_changed)
        else:
            self._release_watch()

    def _release_watch(self) -> None:
        if self._watch is not None:
            self._watch.cancel()
            self._watch = None

    def _on_ambient_changed(self, old: Any, new: Any) -> None:
        if self._phase is not BindingPhase.ATTACHED or self._explicit is not None:
            return
        logger.debug("%s: ambient %s changed", self._owner, type_name(self._source_type))
        self.refresh()
