"""Cross-instance synchronization of the timer snapshot.

Each cycle polls the shared resource, adopts a remote snapshot if it is
strictly newer than anything this instance has seen, then persists and
publishes the current snapshot. Polling before publishing means a peer's
write is always read before it can be overwritten by our own heartbeat.
"""

from __future__ import annotations

from collections.abc import Callable

from pomodolog_cli.models.timer.machine import TimerStateMachine
from pomodolog_cli.models.timer.snapshot import Snapshot
from pomodolog_cli.models.timer.ticker import Ticker
from pomodolog_cli.utils.logger import get_logger

from .shared_channel import SharedStateChannel

SYNC_INTERVAL_MS = 1000


class TimerSync:
    """Poll/publish loop with last-writer-wins acceptance.

    ``last_adopted`` is the acceptance watermark: the highest logical
    timestamp this instance has adopted or produced. A remote snapshot is
    adopted only when its logical timestamp is strictly greater, so a delayed
    or out-of-order write can never regress local state.
    """

    def __init__(
        self,
        machine: TimerStateMachine,
        channel: SharedStateChannel,
        persist: Callable[[Snapshot], None] | None = None,
        interval_ms: int = SYNC_INTERVAL_MS,
    ):
        self.machine = machine
        self.channel = channel
        self._persist = persist
        self._last_adopted = 0
        self._last_persisted: Snapshot | None = None
        self._ticker = Ticker(interval_ms, self.sync_once)

    @property
    def last_adopted(self) -> int:
        return max(self._last_adopted, self.machine.snapshot.logical_timestamp)

    @property
    def ticker(self) -> Ticker:
        return self._ticker

    def start(self, now: int) -> None:
        """Arm the always-on loop. Runs regardless of timer state."""
        self._ticker.start(now)

    def stop(self) -> None:
        self._ticker.cancel()

    def run_due(self, now: int) -> bool:
        return self._ticker.run_due(now)

    def accept(self, remote: Snapshot) -> bool:
        """Adopt *remote* iff it is strictly newer than the watermark."""
        watermark = self.last_adopted
        logger = get_logger()
        if remote.logical_timestamp <= watermark:
            logger.debug(
                "Rejected remote snapshot stamped %s (watermark %s)",
                remote.logical_timestamp,
                watermark,
            )
            return False

        self._last_adopted = remote.logical_timestamp
        self.machine.adopt(remote)
        logger.debug(
            "Adopted remote %s snapshot stamped %s",
            remote.state,
            remote.logical_timestamp,
        )
        return True

    def sync_once(self) -> Snapshot | None:
        """Run one poll/publish cycle. Returns the adopted snapshot, if any."""
        adopted = None
        remote = self.channel.poll()
        if remote is not None and self.accept(remote):
            adopted = self.machine.snapshot

        self.flush()
        return adopted

    def flush(self) -> None:
        """Persist (when changed) and publish the current snapshot."""
        snapshot = self.machine.snapshot
        if self._persist is not None and snapshot != self._last_persisted:
            try:
                self._persist(snapshot)
                self._last_persisted = snapshot
            except RuntimeError as e:
                # retried next cycle
                get_logger().warning("Could not persist timer state: %s", e)

        try:
            self.channel.publish(snapshot)
        except OSError as e:
            get_logger().warning("Could not publish timer state: %s", e)
