"""Shared state channel: one externally visible timer snapshot per storage root.

Every instance overwrites the shared resource with its snapshot and polls it
for snapshots written by others. The storage-level modification time is only
a cheap pre-filter; ordering is decided by ``TimerSync`` on the snapshot's
logical timestamp.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from pomodolog_cli.models.timer.machine import epoch_ms
from pomodolog_cli.models.timer.snapshot import Snapshot
from pomodolog_cli.utils.atomic import atomic_write_text
from pomodolog_cli.utils.logger import get_logger

SHARED_TIMER_FILE = ".pomodolog-timer.json"
# Writes closer together than this may share one file modification time
MTIME_GRANULARITY_MS = 2000


@dataclass(frozen=True)
class SharedChannelRecord:
    """Raw content of the shared resource with its modification time (epoch-ms)."""

    content: str
    modified_at: int


class SharedStateChannel(ABC):
    """Backend-agnostic publish/poll interface."""

    def __init__(self) -> None:
        self._last_observed: int | None = None
        self._last_content: str | None = None

    @property
    def last_observed(self) -> int | None:
        """Modification time of the last record this instance looked at."""
        return self._last_observed

    @abstractmethod
    def _write(self, content: str) -> int:
        """Replace the shared content; return the new modification time."""

    @abstractmethod
    def _stat(self) -> int | None:
        """Modification time of the shared content, or None when absent."""

    @abstractmethod
    def _read(self) -> str:
        """Raw shared content. May raise OSError."""

    def _may_hide_writes(self, modified: int) -> bool:
        """True while another write could still land on the same modification time."""
        return False

    def publish(self, snapshot: Snapshot) -> None:
        """Overwrite the shared resource with *snapshot*."""
        content = snapshot.to_json()
        self._last_observed = self._write(content)
        self._last_content = content

    def read_record(self) -> SharedChannelRecord | None:
        """Current record regardless of what was observed before."""
        modified = self._stat()
        if modified is None:
            return None
        try:
            return SharedChannelRecord(self._read(), modified)
        except OSError as e:
            get_logger().warning("Shared timer state unreadable: %s", e)
            return None

    def poll(self) -> Snapshot | None:
        """Return the shared snapshot if it changed since last observed.

        An unchanged modification time skips the read, except while the
        backend's timestamp is too coarse to tell two writes apart; then the
        content itself is compared. Unreadable or malformed content yields
        None and is remembered, so the same bad content is not parsed again.
        """
        modified = self._stat()
        if modified is None:
            return None
        same_time = modified == self._last_observed
        if same_time and not self._may_hide_writes(modified):
            return None

        try:
            content = self._read()
        except OSError as e:
            self._last_observed = modified
            get_logger().warning("Ignoring unreadable shared timer state: %s", e)
            return None
        if same_time and content == self._last_content:
            return None

        self._last_observed = modified
        self._last_content = content
        try:
            return Snapshot.from_json(content)
        except ValidationError as e:
            get_logger().warning("Ignoring unreadable shared timer state: %s", e)
            return None


class FileSharedChannel(SharedStateChannel):
    """Shared resource backed by one JSON file in the storage root."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    @classmethod
    def in_dir(cls, directory: Path) -> FileSharedChannel:
        return cls(Path(directory) / SHARED_TIMER_FILE)

    def _may_hide_writes(self, modified: int) -> bool:
        # coarse filesystems stamp every write within the same tick alike
        return epoch_ms() - modified < MTIME_GRANULARITY_MS

    def _write(self, content: str) -> int:
        atomic_write_text(self.path, content)
        return self.path.stat().st_mtime_ns // 1_000_000

    def _stat(self) -> int | None:
        try:
            return self.path.stat().st_mtime_ns // 1_000_000
        except FileNotFoundError:
            return None

    def _read(self) -> str:
        return self.path.read_text(encoding="utf-8")


class MemorySharedStore:
    """In-process shared resource; every write gets a fresh modification stamp."""

    def __init__(self, clock: Callable[[], int] | None = None):
        self.content: str | None = None
        self.modified_at: int | None = None
        self._clock = clock or epoch_ms

    def write(self, content: str) -> int:
        self.content = content
        self.modified_at = max(self._clock(), (self.modified_at or 0) + 1)
        return self.modified_at


class MemorySharedChannel(SharedStateChannel):
    """Channel over a ``MemorySharedStore`` shared by engines in one process."""

    def __init__(self, store: MemorySharedStore):
        super().__init__()
        self.store = store

    def _write(self, content: str) -> int:
        return self.store.write(content)

    def _stat(self) -> int | None:
        return self.store.modified_at

    def _read(self) -> str:
        if self.store.content is None:
            raise OSError("shared store is empty")
        return self.store.content
