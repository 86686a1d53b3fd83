# evented_bloc/core/state/events.py
"""Change record emitted alongside every state transition.

Changes are frozen (immutable) so observers can keep them safely.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

S = TypeVar("S")


@dataclass(frozen=True)
class Change(Generic[S]):
    """A state transition (immutable).

    Attributes:
        current_state: State before the transition
        next_state: State after the transition

    Example:
        >>> change = Change(current_state=0, next_state=1)
        >>> change.next_state
        1
    """

    current_state: S
    next_state: S


def describe(value: Any) -> str:
    """Short printable form of a state or event for log lines."""
    text = repr(value)
    return text if len(text) <= 120 else text[:117] + "..."
