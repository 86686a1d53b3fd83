"""PySide6 adapters for evented_bloc.

- QtClock: delivers notifications through the Qt event loop
- SourceSignalBridge: re-emits a source's events and states as Qt signals
"""

from evented_bloc_qt.bridge import SourceSignalBridge
from evented_bloc_qt.clock import QtClock

__all__ = ["QtClock", "SourceSignalBridge"]
