"""Timer engine: the per-process context object behind every command.

One ``TimerEngine`` is created by the CLI for each process and handed to
whatever needs it. It wires the state machine to the local blob, the shared
channel and the recovery policies, and drives their tickers from a single
cooperative ``pump()``.
"""

from __future__ import annotations

from collections.abc import Callable

from pydantic import ValidationError

from pomodolog_cli.models.timer import (
    RecoveryResolver,
    SessionCompleteEvent,
    Snapshot,
    TimerMode,
    TimerStateMachine,
    TimerTransitionError,
)
from pomodolog_cli.models.timer.machine import epoch_ms
from pomodolog_cli.utils.logger import get_logger

from .config_service import ConfigService
from .session_log_service import SessionLogService
from .shared_channel import FileSharedChannel, SharedStateChannel
from .timer_sync import TimerSync

# A shared resource touched this recently belongs to a live instance
LIVE_WINDOW_SECONDS = 3
# A pump gap longer than this means the process was suspended
SUSPEND_THRESHOLD_SECONDS = 3

DURATION_KEYS = ("workMinutes", "breakMinutes")


class TimerEngine:
    """Explicit context object owning one instance's timer stack."""

    def __init__(
        self,
        config_service: ConfigService,
        channel: SharedStateChannel | None = None,
        clock: Callable[[], int] | None = None,
        resolver: RecoveryResolver | None = None,
    ):
        self.config_service = config_service
        self._clock = clock or epoch_ms
        self.channel = channel or FileSharedChannel.in_dir(config_service.data_dir)
        self.resolver = resolver or RecoveryResolver()
        self.machine = TimerStateMachine(
            config_service.config.timer_config, clock=self._clock
        )
        self.sync = TimerSync(
            self.machine, self.channel, persist=config_service.save_timer_state
        )
        self._completed: list[SessionCompleteEvent] = []
        self.machine.on_complete(self._completed.append)
        self._last_pump: int | None = None
        self._reentry_requested = False
        self._booted = False

    @property
    def snapshot(self) -> Snapshot:
        return self.machine.snapshot

    @property
    def booted(self) -> bool:
        return self._booted

    @property
    def has_completed(self) -> bool:
        return bool(self._completed)

    def log_service(self) -> SessionLogService:
        return SessionLogService(self.config_service.log_path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def boot(self, recover: bool = True) -> Snapshot:
        """Load local state, join a live peer or recover, then start syncing.

        With ``recover=False`` the persisted snapshot is installed as stored,
        for commands that only look at the timer and must not change it.
        """
        now = self._clock()
        config = self.config_service.reload()
        self.machine.configure(config.timer_config)
        stored = self.config_service.load_timer_state()

        remote = self._live_peer_snapshot(now)
        logger = get_logger()
        if remote is not None:
            logger.info("Joining live %s session from shared state", remote.state)
            self.sync.accept(remote)
            self.resolver.reenter(self.machine, now)
        elif not recover:
            self.machine.restore(stored or Snapshot.idle())
        else:
            recovered = self.resolver.cold_start(stored, config.timer_config, now)
            # a recovery that changed the session is a transition of its own
            self.machine.restore(
                recovered, restamp=stored is not None and recovered != stored
            )

        self.sync.start(now)
        self._last_pump = now
        self._booted = True
        return self.machine.snapshot

    def pump(self, now: int | None = None) -> None:
        """Run whatever is due. Call this from the owner's loop."""
        now = self._clock() if now is None else now
        suspended = (
            self._last_pump is not None
            and now - self._last_pump > SUSPEND_THRESHOLD_SECONDS * 1000
        )
        self._last_pump = now

        if suspended or self._reentry_requested:
            self._reentry_requested = False
            get_logger().info("Process regained the foreground; reconciling timer")
            # a peer may already have finished or changed the session meanwhile
            self.sync.sync_once()
            self.resolver.reenter(self.machine, now)

        self.machine.run_due(now)
        self.sync.run_due(now)

    def request_reentry(self) -> None:
        """Ask the next ``pump()`` to run foreground reconciliation."""
        self._reentry_requested = True

    def shutdown(self, flush: bool = True) -> None:
        """Final persist and publish unless *flush* is False; cancel both tickers."""
        if not self._booted:
            return
        if flush:
            self.sync.sync_once()
        self.sync.stop()
        self.machine.ticker.cancel()
        self._booted = False

    def sync_now(self) -> Snapshot | None:
        """Run one poll/publish cycle right away."""
        return self.sync.sync_once()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, mode: TimerMode | None = None) -> bool:
        """Start a session, picking up durations changed by other instances."""
        if not self.machine.snapshot.is_active:
            self.machine.configure(self.config_service.reload().timer_config)
        started = self.machine.start(mode)
        self.sync_now()
        return started

    def pause(self) -> bool:
        paused = self.machine.pause()
        self.sync_now()
        return paused

    def resume(self) -> bool:
        resumed = self.machine.resume()
        self.sync_now()
        return resumed

    def stop(self) -> bool:
        stopped = self.machine.stop()
        self.sync_now()
        return stopped

    def toggle_mode(self) -> TimerMode:
        """Switch the mode the next session starts in. Idle only."""
        mode: TimerMode = "break" if self.machine.mode == "work" else "work"
        self.machine.set_mode(mode)
        self.sync_now()
        return mode

    def status(self) -> Snapshot:
        """Current snapshot with remaining time recomputed from the clock."""
        self.machine.refresh()
        return self.machine.snapshot

    def drain_completed(self) -> list[SessionCompleteEvent]:
        """Return and forget the session-complete events emitted so far."""
        events, self._completed = self._completed, []
        return events

    def update_setting(self, key: str, raw_value: str) -> bool:
        """Validated configuration change.

        Durations are immutable for the lifetime of a session, so changing
        them while one is active raises ``TimerTransitionError``. Invalid
        values return False and keep the prior value.
        """
        if key in DURATION_KEYS and self.machine.snapshot.is_active:
            raise TimerTransitionError("Durations can only change while the timer is idle")

        if not self.config_service.set_setting(key, raw_value):
            return False
        if key in DURATION_KEYS:
            self.machine.configure(self.config_service.config.timer_config)
        return True

    def reset_settings(self) -> None:
        """Restore default settings. Idle only, since durations reset too."""
        if self.machine.snapshot.is_active:
            raise TimerTransitionError("Settings can only be reset while the timer is idle")
        self.config_service.reset_config()
        self.machine.configure(self.config_service.config.timer_config)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _live_peer_snapshot(self, now: int) -> Snapshot | None:
        record = self.channel.read_record()
        if record is None or now - record.modified_at > LIVE_WINDOW_SECONDS * 1000:
            return None
        try:
            return Snapshot.from_json(record.content)
        except ValidationError as e:
            get_logger().warning("Ignoring malformed shared timer state: %s", e)
            return None
