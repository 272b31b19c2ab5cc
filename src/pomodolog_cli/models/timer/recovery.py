"""Recovery of timer state after a restart or a suspended process."""

from __future__ import annotations

from pomodolog_cli.utils.logger import get_logger

from .machine import TimerStateMachine
from .snapshot import Snapshot, TimerConfig


class RecoveryResolver:
    """Normalizes stale timer state.

    Two triggers, two policies:

    * ``cold_start`` runs once when an engine is built from persisted local
      state. A session that was running is never silently resumed: it comes
      back paused with the time that passed while closed deducted, or idle if
      that time used it up. No session-complete event is emitted for time
      spent closed.
    * ``reenter`` runs when a live process regains scheduling after being
      suspended. The authoritative start instant is trusted, and an expired
      session is finalized exactly as ``finish()`` would.
    """

    def cold_start(self, snapshot: Snapshot | None, config: TimerConfig, now: int) -> Snapshot:
        """Return the snapshot an engine should start from."""
        if snapshot is None:
            return Snapshot.idle(at=0)

        total = config.total_duration(snapshot.mode)
        if snapshot.state == "paused":
            remaining = min(snapshot.remaining_seconds, total)
            return Snapshot(
                start_timestamp=snapshot.start_timestamp,
                state="paused",
                remaining_seconds=remaining,
                mode=snapshot.mode,
                logical_timestamp=snapshot.logical_timestamp,
            )
        if snapshot.state != "running":
            return snapshot

        # keyed off the start instant, which checkpoint granularity cannot skew
        elapsed = max(0, (now - (snapshot.start_timestamp or now)) // 1000)
        remaining = max(0, total - elapsed)

        logger = get_logger()
        if remaining == 0:
            logger.info("Running session expired while closed; resetting to idle")
            return Snapshot.idle(snapshot.mode, snapshot.logical_timestamp)

        logger.info("Recovered running session as paused with %ss remaining", remaining)
        return Snapshot(
            start_timestamp=now - (total - remaining) * 1000,
            state="paused",
            remaining_seconds=remaining,
            mode=snapshot.mode,
            logical_timestamp=snapshot.logical_timestamp,
        )

    def reenter(self, machine: TimerStateMachine, now: int | None = None) -> bool:
        """Reconcile a running session after a suspension.

        Returns True when the session was finalized.
        """
        snapshot = machine.snapshot
        if snapshot.state != "running" or snapshot.start_timestamp is None:
            return False

        now = machine.now() if now is None else now
        total = machine.total_duration()
        elapsed = max(0, (now - snapshot.start_timestamp) // 1000)
        if elapsed >= total and machine.owned:
            get_logger().info("Session expired while suspended (elapsed %ss)", elapsed)
            return machine.finish(window_end=snapshot.start_timestamp + total * 1000)

        machine.refresh()
        return False
