"""Tests for cross-instance synchronization.

Several engines share one in-memory store and one fake clock, so every
interleaving is deterministic.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pomodolog_cli.models.timer import Snapshot, TimerConfig, TimerStateMachine
from pomodolog_cli.services.config_service import ConfigService
from pomodolog_cli.services.engine import TimerEngine
from pomodolog_cli.services.shared_channel import MemorySharedChannel, MemorySharedStore
from pomodolog_cli.services.timer_sync import TimerSync


def _running(start: int, stamp: int) -> Snapshot:
    return Snapshot(
        start_timestamp=start,
        state="running",
        remaining_seconds=1500,
        mode="work",
        logical_timestamp=stamp,
    )


@pytest.fixture()
def store(clock) -> MemorySharedStore:
    return MemorySharedStore(clock)


@pytest.fixture()
def make_engine(tmp_path, store, clock):
    def _make(name: str, work_minutes: int = 25) -> TimerEngine:
        config_service = ConfigService(tmp_path / name)
        config_service.set_setting("workMinutes", str(work_minutes))
        engine = TimerEngine(config_service, channel=MemorySharedChannel(store), clock=clock)
        engine.boot()
        return engine

    return _make


# ---------------------------------------------------------------------------
# Acceptance rule
# ---------------------------------------------------------------------------


class TestAcceptance:
    @pytest.fixture()
    def machine(self, clock):
        return TimerStateMachine(TimerConfig(1500, 300), clock=clock)

    @pytest.fixture()
    def sync(self, machine, store):
        return TimerSync(machine, MemorySharedChannel(store))

    def test_newer_remote_is_adopted(self, sync, machine, store, clock):
        remote = _running(clock.now, clock.now + 10)
        MemorySharedChannel(store).publish(remote)

        assert sync.sync_once() == remote
        assert machine.snapshot == remote
        assert sync.last_adopted == clock.now + 10

    def test_older_remote_is_rejected_despite_newer_write(self, sync, machine, store, clock):
        machine.start()
        local = machine.snapshot
        MemorySharedChannel(store).publish(_running(clock.now, local.logical_timestamp - 1))

        assert sync.sync_once() is None
        assert machine.snapshot == local
        assert machine.owned

    def test_equal_stamp_is_rejected(self, sync, machine, store, clock):
        machine.start()
        stamp = machine.snapshot.logical_timestamp
        MemorySharedChannel(store).publish(_running(clock.now - 5000, stamp))

        assert sync.sync_once() is None
        assert machine.snapshot.start_timestamp == clock.now

    def test_watermark_never_regresses(self, sync, machine, store, clock):
        peer = MemorySharedChannel(store)
        peer.publish(_running(clock.now, clock.now + 100))
        sync.sync_once()

        peer.publish(_running(clock.now, clock.now + 50))
        assert sync.sync_once() is None
        assert machine.snapshot.logical_timestamp == clock.now + 100

    def test_cycle_publishes_local_snapshot(self, sync, machine, store):
        machine.start()
        sync.sync_once()
        assert Snapshot.from_json(store.content) == machine.snapshot

    def test_persist_only_on_change(self, machine, store, clock):
        persist = MagicMock()
        sync = TimerSync(machine, MemorySharedChannel(store), persist=persist)

        sync.sync_once()
        sync.sync_once()
        assert persist.call_count == 1

        machine.start()
        sync.sync_once()
        assert persist.call_count == 2
        persist.assert_called_with(machine.snapshot)

    def test_persist_failure_still_publishes(self, machine, store):
        persist = MagicMock(side_effect=RuntimeError("disk full"))
        sync = TimerSync(machine, MemorySharedChannel(store), persist=persist)

        machine.start()
        sync.sync_once()

        assert Snapshot.from_json(store.content) == machine.snapshot

    def test_loop_runs_while_idle(self, sync, store, clock):
        sync.start(clock.now)
        assert store.modified_at is None

        clock.advance(1)
        assert sync.run_due(clock.now) is True
        assert store.modified_at is not None


# ---------------------------------------------------------------------------
# Several engines
# ---------------------------------------------------------------------------


class TestConvergence:
    def test_peer_sees_started_session_after_one_interval(self, make_engine, clock):
        a = make_engine("a")
        b = make_engine("b")

        a.start()
        clock.advance(1)
        b.pump()

        assert b.snapshot == a.status()
        assert b.snapshot.state == "running"
        assert b.machine.owned is False

    def test_transitions_flow_both_ways(self, make_engine, clock):
        a = make_engine("a")
        b = make_engine("b")
        a.start()
        clock.advance(1)
        b.pump()

        clock.advance(10)
        b.pause()
        clock.advance(1)
        a.pump()

        assert a.snapshot.state == "paused"
        assert a.snapshot == b.snapshot

        a.stop()
        clock.advance(1)
        b.pump()
        assert b.snapshot.state == "idle"

    def test_three_engines_converge(self, make_engine, clock):
        engines = [make_engine(name) for name in ("a", "b", "c")]
        engines[2].start("break")

        for _ in range(3):
            clock.advance(1)
            for engine in engines:
                engine.pump()

        states = {(e.snapshot.state, e.snapshot.mode, e.snapshot.start_timestamp) for e in engines}
        assert len(states) == 1
        assert states.pop()[:2] == ("running", "break")

    def test_late_joiner_adopts_live_session(self, tmp_path, store, clock, make_engine):
        a = make_engine("a")
        a.start()
        clock.advance(1)

        late = TimerEngine(
            ConfigService(tmp_path / "late"), channel=MemorySharedChannel(store), clock=clock
        )
        late.boot()

        assert late.snapshot.state == "running"
        assert late.snapshot.start_timestamp == a.snapshot.start_timestamp

    def test_only_owner_completes_session(self, make_engine, clock):
        a = make_engine("a", work_minutes=1)
        b = make_engine("b", work_minutes=1)
        a.start()

        for _ in range(61):
            clock.advance(1)
            a.pump()
            b.pump()

        assert len(a.drain_completed()) == 1
        assert b.drain_completed() == []
        assert a.snapshot.state == "idle"
        assert b.snapshot.state == "idle"

    def test_non_owner_takes_over_silent_owner(self, make_engine, clock):
        a = make_engine("a", work_minutes=1)
        b = make_engine("b", work_minutes=1)
        a.start()
        clock.advance(1)
        b.pump()

        # a stops pumping, as if it had died
        for _ in range(70):
            clock.advance(1)
            b.pump()

        events = b.drain_completed()
        assert len(events) == 1
        assert b.snapshot.state == "idle"

        # a comes back much later and learns the session is over first
        clock.advance(1)
        a.pump()
        assert a.snapshot.state == "idle"
        assert a.drain_completed() == []
