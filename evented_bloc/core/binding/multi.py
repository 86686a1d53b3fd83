# evented_bloc/core/binding/multi.py
"""MultiBlocEventListener: several BlocEventListeners around one child.

Instead of nesting by hand:

    BlocEventListener(on_a, source_type=BlocA, child=BlocEventListener(
        on_b, source_type=BlocB, child=view))

write:

    MultiBlocEventListener([
        BlocEventListener(on_a, source_type=BlocA),
        BlocEventListener(on_b, source_type=BlocB),
    ], child=view)

The result is the same tree: listener 0 is outermost and the last listener
wraps ``child``. Each listener keeps its own source, filter and subscription.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Optional

from evented_bloc.core.binding.base import BindingNode, render
from evented_bloc.core.binding.listener import BlocEventListener
from evented_bloc.core.errors import BindingConfigurationError, BindingStateError
from evented_bloc.core.registry import BindingContext

logger = logging.getLogger(__name__)


class MultiBlocEventListener(BindingNode):
    """Merges multiple BlocEventListener nodes into one.

    Raises:
        BindingConfigurationError: if ``child`` is missing, an entry is not a
            BlocEventListener, the same listener appears twice, or a listener
            carries its own child.
    """

    def __init__(self, listeners: Sequence[BlocEventListener[Any, Any]], child: Any) -> None:
        if child is None:
            raise BindingConfigurationError(
                "MultiBlocEventListener must specify a child.",
                user_message="Event listeners have nothing to render",
            )
        seen: set[int] = set()
        for index, listener in enumerate(listeners):
            if not isinstance(listener, BlocEventListener):
                raise BindingConfigurationError(
                    f"MultiBlocEventListener entry {index} is not a BlocEventListener: {listener!r}",
                    context={"index": index},
                )
            if id(listener) in seen:
                raise BindingConfigurationError(
                    f"{listener.label} appears more than once in MultiBlocEventListener",
                    context={"index": index, "binding": listener.label},
                )
            if listener.child is not None:
                raise BindingConfigurationError(
                    f"{listener.label} must not specify a child inside MultiBlocEventListener",
                    context={"index": index, "binding": listener.label},
                )
            seen.add(id(listener))
        self.listeners: tuple[BlocEventListener[Any, Any], ...] = tuple(listeners)
        self.child = child
        self._mounted = False
        self._unmounted = False

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def mount(self, context: Optional[BindingContext] = None) -> None:
        """Mount every listener, outermost first.

        If one listener fails to resolve its source, the listeners mounted
        before it are rolled back and the error is re-raised; the composer
        and its listeners can then be mounted again.
        """
        if self._mounted or self._unmounted:
            raise BindingStateError("MultiBlocEventListener can only be mounted once")
        context = context or BindingContext()
        mounted: list[BlocEventListener[Any, Any]] = []
        try:
            for index, listener in enumerate(self.listeners):
                inner = self.listeners[index + 1] if index + 1 < len(self.listeners) else self.child
                listener._mount_with_child(context, inner)
                mounted.append(listener)
        except Exception:
            for listener in reversed(mounted):
                listener._rollback()
            raise
        self._mounted = True
        logger.debug("MultiBlocEventListener mounted %d listener(s)", len(mounted))

    def unmount(self) -> None:
        """Unmount innermost first. Idempotent."""
        for listener in reversed(self.listeners):
            listener.unmount()
        self._mounted = False
        self._unmounted = True

    def build(self) -> Any:
        """Return the rendered child (listeners are transparent)."""
        if not self._mounted:
            raise BindingStateError("MultiBlocEventListener must be mounted before it is built")
        if not self.listeners:
            return render(self.child)
        return render(self.listeners[0])

    def __repr__(self) -> str:
        labels = ", ".join(listener.label for listener in self.listeners)
        return f"<MultiBlocEventListener [{labels}]>"
