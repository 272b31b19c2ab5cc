"""Cancellable periodic handle driven by a cooperative pump."""

from __future__ import annotations

from collections.abc import Callable


class Ticker:
    """Fires *callback* every *interval_ms* while started.

    Nothing runs in the background: the owner calls ``run_due(now)`` from its
    loop and the ticker fires at most once per call, so a long stall produces
    a single catch-up tick instead of a burst.
    """

    def __init__(self, interval_ms: int, callback: Callable[[], None]):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.interval_ms = interval_ms
        self._callback = callback
        self._next_due: int | None = None

    @property
    def active(self) -> bool:
        return self._next_due is not None

    @property
    def next_due(self) -> int | None:
        return self._next_due

    def start(self, now: int) -> None:
        """(Re)arm the ticker; the first fire is one interval after *now*."""
        self._next_due = now + self.interval_ms

    def cancel(self) -> None:
        self._next_due = None

    def run_due(self, now: int) -> bool:
        """Fire the callback if due. Returns True when it fired."""
        if self._next_due is None or now < self._next_due:
            return False
        self._next_due = max(self._next_due + self.interval_ms, now + 1)
        self._callback()
        return True
