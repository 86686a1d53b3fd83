# evented_bloc/core/registry.py
"""Ambient source resolution (explicit registry, no global state).

SourceRegistry is a keyed-by-type service locator handed to bindings through
a BindingContext. Besides lookup it offers a second channel, ``watch()``,
which reports when the instance registered for a type is replaced by a
*different* object. Providing the same object again never notifies, and
neither does a state change inside the registered source.

Watch Semantics:
- watchers fire synchronously inside provide()/remove()
- callbacks receive (old, new); either side may be None
- watchers are snapshotted before firing, so a watcher may cancel itself
- a raising watcher does not stop the others; the first error is re-raised
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from evented_bloc.core.errors import SourceNotFoundError
from evented_bloc.core.source import same_instance

T = TypeVar("T")

WatchCallback = Callable[[Any, Any], None]

logger = logging.getLogger(__name__)


def type_name(source_type: Any) -> str:
    return getattr(source_type, "__name__", repr(source_type))


class RegistryWatch:
    """Handle for an identity-change subscription on a SourceRegistry."""

    def __init__(self, registry: "SourceRegistry", source_type: type, callback: WatchCallback) -> None:
        self._registry: Optional[SourceRegistry] = registry
        self.source_type = source_type
        self.callback = callback

    @property
    def is_active(self) -> bool:
        return self._registry is not None

    def cancel(self) -> None:
        """Stop receiving identity changes. Idempotent."""
        if self._registry is None:
            return
        self._registry._remove_watch(self)
        self._registry = None


class SourceRegistry:
    """Type-keyed registry of sources.

    Usage:
        registry = SourceRegistry()
        registry.provide(CounterCubit, cubit)
        registry.resolve(CounterCubit)  # -> cubit
    """

    def __init__(self) -> None:
        self._sources: dict[type, Any] = {}
        self._watches: dict[type, list[RegistryWatch]] = {}

    def __contains__(self, source_type: object) -> bool:
        return source_type in self._sources

    def provide(self, source_type: type[T], source: T) -> None:
        """Register ``source`` for ``source_type``, replacing any previous one.

        Raises:
            ValueError: if ``source`` is None.
            Exception: the first error raised by a watcher, after all watchers ran.
        """
        if source is None:
            raise ValueError("provide() requires a source; use remove() to unregister")
        old = self._sources.get(source_type)
        self._sources[source_type] = source
        if not same_instance(old, source):
            logger.debug("Provided %s: %r", type_name(source_type), source)
            self._notify(source_type, old, source)

    def remove(self, source_type: type) -> None:
        """Unregister ``source_type``. Missing entries are a no-op.

        Watchers are notified with ``(old, None)``. A binding that still
        resolves ``source_type`` from the registry fails to do so, and its
        SourceNotFoundError is raised from here once every watcher has run.
        The entry stays removed.
        """
        if source_type not in self._sources:
            return
        old = self._sources.pop(source_type)
        logger.debug("Removed %s", type_name(source_type))
        self._notify(source_type, old, None)

    def lookup(self, source_type: type[T]) -> Optional[T]:
        """Return the registered source or None."""
        return self._sources.get(source_type)

    def resolve(self, source_type: type[T]) -> T:
        """Return the registered source.

        Raises:
            SourceNotFoundError: if nothing is registered for ``source_type``.
        """
        source = self._sources.get(source_type)
        if source is None:
            name = type_name(source_type)
            raise SourceNotFoundError(
                f"No {name} found in the registry. Provide one with registry.provide({name}, ...) "
                f"or pass it to the binding explicitly with bloc=...",
                user_message=f"{name} is not available",
                context={"source_type": name},
            )
        return source

    def watch(self, source_type: type, callback: WatchCallback) -> RegistryWatch:
        """Call ``callback(old, new)`` whenever the instance for ``source_type`` changes identity."""
        handle = RegistryWatch(self, source_type, callback)
        self._watches.setdefault(source_type, []).append(handle)
        return handle

    def watcher_count(self, source_type: type) -> int:
        return len(self._watches.get(source_type, ()))

    def _remove_watch(self, handle: RegistryWatch) -> None:
        handles = self._watches.get(handle.source_type)
        if not handles:
            return
        try:
            handles.remove(handle)
        except ValueError:
            pass  # already removed
        if not handles:
            self._watches.pop(handle.source_type, None)

    def _notify(self, source_type: type, old: Any, new: Any) -> None:
        error: Optional[Exception] = None
        for handle in list(self._watches.get(source_type, ())):
            if not handle.is_active:
                continue
            try:
                handle.callback(old, new)
            except Exception as exc:
                if error is None:
                    error = exc
                else:
                    logger.exception("Watcher for %s failed", type_name(source_type))
        if error is not None:
            raise error


class BindingContext:
    """Render context handed to listeners and builders.

    Attributes:
        registry: Ambient source registry (optional)
        target: Opaque render-target collaborator owned by the host UI (optional)
    """

    def __init__(self, registry: Optional[SourceRegistry] = None, target: Any = None) -> None:
        self.registry = registry
        self.target = target

    def read(self, source_type: type[T]) -> T:
        """Resolve ``source_type`` from the ambient registry.

        Raises:
            SourceNotFoundError: if there is no registry or no matching source.
        """
        if self.registry is None:
            name = type_name(source_type)
            raise SourceNotFoundError(
                f"No {name} was passed explicitly and the context has no registry to look it up",
                user_message=f"{name} is not available",
                context={"source_type": name},
            )
        return self.registry.resolve(source_type)

    def __repr__(self) -> str:
        return f"<BindingContext registry={self.registry is not None} target={self.target!r}>"
