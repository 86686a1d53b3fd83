# evented_bloc/common/typed_config.py
#
# Typed configuration for evented_bloc.
# Frozen dataclass plus conversion helpers that never raise on bad input.

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from evented_bloc.core.errors import ConfigError

CONFIG_SECTION = "evented_bloc"

CLOCK_BACKENDS = frozenset({"manual", "kivy", "qt"})

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def _get_logger() -> logging.Logger:
    return logging.getLogger(__name__)


# =============================================================================
# Helper Functions
# =============================================================================


def safe_int(value: Any, default: int) -> int:
    """Convert to int. None/bool/float/unparseable values return default.

    Note:
        bool is a subclass of int but intentionally returns default, which
        prevents True -> 1 from sneaking in. float returns default to avoid
        silent truncation.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def safe_bool(value: Any, default: bool = False) -> bool:
    """Convert to bool. Unrecognised strings return default (typo guard)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        if not value:
            return default
        lower = value.lower()
        if lower in _TRUE_STRINGS:
            return True
        if lower in _FALSE_STRINGS:
            return False
        return default
    return default


def safe_str(value: Any, default: str) -> str:
    """Non-empty str or default. None never becomes "None"."""
    if value is None:
        return default
    if not isinstance(value, str):
        return default
    if not value:
        return default
    return value


def safe_choice(value: Any, choices: frozenset[str], default: str) -> str:
    """Case-insensitive pick from ``choices``; anything else returns default."""
    text = safe_str(value, default).strip().lower()
    return text if text in choices else default


def safe_log_level(value: Any, default: str = "DEBUG") -> str:
    """Normalise a logging level name. Unknown names return default."""
    text = safe_str(value, default).strip().upper()
    return text if text in _LOG_LEVELS else default


# =============================================================================
# Dataclasses
# =============================================================================


@dataclass(frozen=True)
class BindingConfig:
    """Runtime options for sources and bindings.

    Thread-safety: Immutable (frozen=True)

    Attributes:
        clock: Clock backend used for delivery ("manual", "kivy" or "qt")
        observer_log_level: Level used by LoggingBlocObserver
        log_dispatch: Log every dispatched event/rebuild at DEBUG
        max_pump_iterations: Upper bound for ManualClock.pump()
    """

    clock: str = "manual"
    observer_log_level: str = "DEBUG"
    log_dispatch: bool = False
    max_pump_iterations: int = 10000

    @property
    def observer_level(self) -> int:
        """``observer_log_level`` as a numeric logging level."""
        return logging.getLevelName(self.observer_log_level)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "BindingConfig":
        """Build from a dict. Missing keys use defaults, bad types are converted safely."""
        default = cls()
        clock = safe_choice(d.get("clock"), CLOCK_BACKENDS, default.clock)
        if d.get("clock") is not None and clock != str(d.get("clock")).strip().lower():
            _get_logger().warning("Unknown clock backend %r, using %r", d.get("clock"), clock)
        max_pump_iterations = safe_int(d.get("max_pump_iterations"), default.max_pump_iterations)
        if max_pump_iterations <= 0:
            max_pump_iterations = default.max_pump_iterations
        return cls(
            clock=clock,
            observer_log_level=safe_log_level(d.get("observer_log_level"), default.observer_log_level),
            log_dispatch=safe_bool(d.get("log_dispatch"), default.log_dispatch),
            max_pump_iterations=max_pump_iterations,
        )


def load_config(config: Mapping[str, Any] | None) -> BindingConfig:
    """Read the ``evented_bloc`` section of an application config dict.

    The section is copied before parsing so later mutation of ``config`` does
    not leak into the returned (frozen) object.

    Raises:
        ConfigError: if the section exists but is not a mapping.
    """
    if not config:
        return BindingConfig()
    raw = config.get(CONFIG_SECTION)
    if raw is None:
        return BindingConfig()
    if not isinstance(raw, Mapping):
        raise ConfigError(
            f"Config section {CONFIG_SECTION!r} must be a mapping, got {type(raw).__name__}",
            user_message="Invalid evented_bloc configuration",
            context={"section": CONFIG_SECTION},
        )
    return BindingConfig.from_dict(dict(raw))
