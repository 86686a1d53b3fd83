# evented_bloc/common - configuration shared by the core and GUI adapters.

from evented_bloc.common.typed_config import (
    BindingConfig,
    load_config,
    safe_bool,
    safe_choice,
    safe_int,
    safe_log_level,
    safe_str,
)

__all__ = [
    "BindingConfig",
    "load_config",
    "safe_bool",
    "safe_choice",
    "safe_int",
    "safe_log_level",
    "safe_str",
]
