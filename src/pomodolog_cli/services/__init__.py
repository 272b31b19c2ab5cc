"""Services module for PomodoLog CLI - storage, synchronization and the engine."""

from .config_service import ConfigService
from .engine import TimerEngine
from .session_log_service import SessionLogError, SessionLogService
from .shared_channel import FileSharedChannel, MemorySharedChannel, MemorySharedStore
from .timer_sync import TimerSync

__all__ = [
    "ConfigService",
    "FileSharedChannel",
    "MemorySharedChannel",
    "MemorySharedStore",
    "SessionLogError",
    "SessionLogService",
    "TimerEngine",
    "TimerSync",
]
