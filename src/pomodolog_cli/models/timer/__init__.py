"""Timer core - state machine, recovery and snapshot types."""

from .machine import TimerStateMachine
from .recovery import RecoveryResolver
from .snapshot import (
    SessionCompleteEvent,
    Snapshot,
    TimerConfig,
    TimerMode,
    TimerState,
    TimerTransitionError,
)
from .ticker import Ticker

__all__ = [
    "RecoveryResolver",
    "SessionCompleteEvent",
    "Snapshot",
    "Ticker",
    "TimerConfig",
    "TimerMode",
    "TimerState",
    "TimerStateMachine",
    "TimerTransitionError",
]
