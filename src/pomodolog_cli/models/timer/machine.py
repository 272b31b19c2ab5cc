"""Timer state machine with wall-clock based remaining-time accounting."""

from __future__ import annotations

import time
from collections.abc import Callable

from pomodolog_cli.utils.logger import get_logger

from .snapshot import (
    SessionCompleteEvent,
    Snapshot,
    TimerConfig,
    TimerMode,
    TimerTransitionError,
    from_epoch_ms,
)
from .ticker import Ticker

TICK_INTERVAL_MS = 1000
FINISH_GRACE_SECONDS = 3


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class TimerStateMachine:
    """Owns the timer snapshot and every transition on it.

    Remaining time is always derived from ``start_timestamp`` and the clock,
    never by decrementing a counter, so missed or delayed ticks cannot drift.

    The instance that last transitioned the snapshot owns it. A snapshot
    received from another instance through ``adopt()`` is a read-only copy:
    it ticks for display but does not finish the session unless the owner's
    terminal snapshot fails to arrive within ``FINISH_GRACE_SECONDS`` of
    exhaustion.
    """

    def __init__(
        self,
        config: TimerConfig | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self._config = config or TimerConfig()
        self._clock = clock or epoch_ms
        self._snapshot = Snapshot.idle()
        self._owned = True
        self._last_stamp = 0
        self._exhausted_at: int | None = None
        self._ticker = Ticker(TICK_INTERVAL_MS, self.tick)
        self._complete_listeners: list[Callable[[SessionCompleteEvent], None]] = []
        self._change_listeners: list[Callable[[Snapshot], None]] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def state(self) -> str:
        return self._snapshot.state

    @property
    def mode(self) -> TimerMode:
        return self._snapshot.mode

    @property
    def remaining_seconds(self) -> int:
        return self._snapshot.remaining_seconds

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def owned(self) -> bool:
        """True when this instance produced the current snapshot."""
        return self._owned

    @property
    def ticker(self) -> Ticker:
        return self._ticker

    def now(self) -> int:
        return self._clock()

    def total_duration(self, mode: TimerMode | None = None) -> int:
        return self._config.total_duration(mode or self._snapshot.mode)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_complete(self, callback: Callable[[SessionCompleteEvent], None]) -> None:
        """Register a session-complete consumer."""
        self._complete_listeners.append(callback)

    def on_change(self, callback: Callable[[Snapshot], None]) -> None:
        """Register a callback fired whenever a new snapshot is installed."""
        self._change_listeners.append(callback)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def configure(self, config: TimerConfig) -> None:
        """Replace the durations. Only allowed between sessions."""
        if self._snapshot.is_active:
            raise TimerTransitionError("Durations can only change while the timer is idle")
        self._config = config

    def start(self, mode: TimerMode | None = None) -> bool:
        """Start a session. No-op when already running; rejected while paused."""
        if self._snapshot.state == "running":
            return False
        if self._snapshot.state == "paused":
            raise TimerTransitionError(
                "A paused session exists; resume or stop it before starting a new one"
            )

        mode = mode or self._snapshot.mode
        now = self._clock()
        self._produce(
            now,
            start_timestamp=now,
            state="running",
            remaining_seconds=self.total_duration(mode),
            mode=mode,
        )
        self._ticker.start(now)
        get_logger().info("Started %s session (%ss)", mode, self.total_duration(mode))
        return True

    def tick(self) -> None:
        """Recompute remaining time; finish the session once it is exhausted."""
        if self._snapshot.state != "running":
            return

        now = self._clock()
        remaining = max(0, self.total_duration() - self._elapsed_seconds(now))
        if remaining > 0:
            self._exhausted_at = None
            self._refresh(remaining)
            return

        if self._owned:
            self.finish()
            return

        self._refresh(0)
        if self._exhausted_at is None:
            self._exhausted_at = now
        elif now - self._exhausted_at >= FINISH_GRACE_SECONDS * 1000:
            get_logger().info(
                "Owner of the exhausted session went quiet; finishing it locally"
            )
            self.finish()

    def pause(self) -> bool:
        """Running -> Paused. Returns False when not running."""
        if self._snapshot.state != "running":
            return False

        now = self._clock()
        total = self.total_duration()
        elapsed = min(total, self._elapsed_seconds(now))
        if elapsed >= total:
            self.finish()
            return False

        self._ticker.cancel()
        self._produce(
            now,
            start_timestamp=now - elapsed * 1000,
            state="paused",
            remaining_seconds=total - elapsed,
            mode=self._snapshot.mode,
        )
        get_logger().info("Paused with %ss remaining", total - elapsed)
        return True

    def resume(self) -> bool:
        """Paused -> Running. Time spent paused is never counted as elapsed."""
        if self._snapshot.state != "paused":
            return False

        now = self._clock()
        remaining = self._snapshot.remaining_seconds
        self._produce(
            now,
            start_timestamp=now - (self.total_duration() - remaining) * 1000,
            state="running",
            remaining_seconds=remaining,
            mode=self._snapshot.mode,
        )
        self._ticker.start(now)
        get_logger().info("Resumed with %ss remaining", remaining)
        return True

    def stop(self) -> bool:
        """Running or Paused -> Idle, emitting session-complete if time elapsed."""
        previous = self._snapshot
        if not previous.is_active:
            return False

        now = self._clock()
        if previous.state == "running":
            elapsed = self._elapsed_seconds(now)
            end_ms = now
        else:
            elapsed = max(0, self.total_duration() - previous.remaining_seconds)
            # the window closes where counting stopped, at the pause
            end_ms = (previous.start_timestamp or now) + elapsed * 1000

        self._reset(now)
        get_logger().info("Stopped %s session after %ss", previous.mode, elapsed)
        if elapsed > 0:
            self._emit(previous, end_ms=end_ms, elapsed=elapsed)
        return True

    def finish(self, window_end: int | None = None) -> bool:
        """Running -> Idle on exhaustion.

        *window_end* overrides the reported end instant; elapsed is always
        measured up to now.
        """
        previous = self._snapshot
        if previous.state != "running":
            return False

        now = self._clock()
        elapsed = self._elapsed_seconds(now)
        self._reset(now)
        get_logger().info("Finished %s session, elapsed %ss", previous.mode, elapsed)
        self._emit(previous, end_ms=now if window_end is None else window_end, elapsed=elapsed)
        return True

    def set_mode(self, mode: TimerMode) -> bool:
        """Choose the mode of the next session. Idle only."""
        if self._snapshot.is_active:
            raise TimerTransitionError("Mode can only change while the timer is idle")
        if mode == self._snapshot.mode:
            return False
        self._produce(self._clock(), state="idle", mode=mode)
        return True

    def reset(self) -> None:
        """Drop any session silently."""
        self._reset(self._clock())

    # ------------------------------------------------------------------
    # Installing snapshots from outside
    # ------------------------------------------------------------------

    def adopt(self, remote: Snapshot) -> None:
        """Replace the whole snapshot with one received from another instance."""
        self._install(remote, owned=False)

    def restore(self, snapshot: Snapshot, restamp: bool = False) -> None:
        """Install a snapshot recovered from local persisted state.

        With *restamp* the recovery counts as a local transition: the snapshot
        gets a fresh logical timestamp so it outranks the stored copy it
        replaces.
        """
        if restamp:
            self._last_stamp = max(self._last_stamp, snapshot.logical_timestamp)
            snapshot = snapshot.model_copy(
                update={"logical_timestamp": self._stamp(self._clock())}
            )
        self._install(snapshot, owned=True)

    def refresh(self) -> int:
        """Recompute remaining time of a running session without finishing it."""
        if self._snapshot.state == "running":
            now = self._clock()
            self._refresh(max(0, self.total_duration() - self._elapsed_seconds(now)))
        return self._snapshot.remaining_seconds

    def run_due(self, now: int | None = None) -> bool:
        """Drive the tick handle from the owner's loop."""
        return self._ticker.run_due(self._clock() if now is None else now)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _elapsed_seconds(self, now: int) -> int:
        start = self._snapshot.start_timestamp
        if start is None:
            return 0
        return max(0, (now - start) // 1000)

    def _stamp(self, now: int) -> int:
        self._last_stamp = max(now, self._last_stamp + 1)
        return self._last_stamp

    def _produce(self, now: int, **fields) -> None:
        self._snapshot = Snapshot(logical_timestamp=self._stamp(now), **fields)
        self._owned = True
        self._exhausted_at = None
        self._notify_change()

    def _refresh(self, remaining: int) -> None:
        if remaining != self._snapshot.remaining_seconds:
            self._snapshot = self._snapshot.model_copy(update={"remaining_seconds": remaining})

    def _reset(self, now: int) -> None:
        self._ticker.cancel()
        self._snapshot = Snapshot.idle(self._snapshot.mode, self._stamp(now))
        self._owned = True
        self._exhausted_at = None
        self._notify_change()

    def _install(self, snapshot: Snapshot, owned: bool) -> None:
        total = self.total_duration(snapshot.mode)
        if snapshot.remaining_seconds > total:
            snapshot = snapshot.model_copy(update={"remaining_seconds": total})

        self._snapshot = snapshot
        self._owned = owned
        self._last_stamp = max(self._last_stamp, snapshot.logical_timestamp)
        self._exhausted_at = None
        if snapshot.state == "running":
            now = self._clock()
            self._ticker.start(now)
            self._refresh(max(0, total - self._elapsed_seconds(now)))
        else:
            self._ticker.cancel()
        self._notify_change()

    def _emit(self, previous: Snapshot, end_ms: int, elapsed: int) -> None:
        event = SessionCompleteEvent(
            start_time=from_epoch_ms(previous.start_timestamp or end_ms),
            end_time=from_epoch_ms(end_ms),
            elapsed_seconds=elapsed,
            mode=previous.mode,
        )
        for callback in self._complete_listeners:
            callback(event)

    def _notify_change(self) -> None:
        for callback in self._change_listeners:
            callback(self._snapshot)
