"""
evented_bloc exception hierarchy.

Provides a base exception class with user-facing messages and debug context,
plus specialized subclasses for the binding lifecycle.
"""

from typing import Any, Dict, Optional


class EventedBlocError(Exception):
    """Base exception for evented_bloc errors.

    Attributes:
        user_message: Safe, user-facing error message.
        context: Dictionary of debug information.
    """

    def __init__(
        self,
        message: str,
        *,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.user_message = user_message or message
        self.context = context or {}


class BindingConfigurationError(EventedBlocError):
    """Binding built with invalid arguments (missing child, duplicated bindings)."""

    pass


class SourceNotFoundError(EventedBlocError):
    """Neither an explicit nor an ambient source could be resolved."""

    pass


class BindingStateError(EventedBlocError):
    """Lifecycle violation (attach after detach, double mount, etc.)."""

    pass


class SourceClosedError(EventedBlocError):
    """Emit/fire on a source or stream that has been closed."""

    pass


class ConfigError(EventedBlocError):
    """Configuration load/validation errors."""

    pass


class ClockError(EventedBlocError):
    """Clock queue could not be drained."""

    pass
