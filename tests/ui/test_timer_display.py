"""Tests for the live timer view and its key handling."""

from __future__ import annotations

from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from rich.console import Console
from rich.layout import Layout

from pomodolog_cli.models.timer import Snapshot
from pomodolog_cli.ui.timer_display import TimerDisplay, format_clock, status_line

T = 1_704_067_200_000


def _snapshot(state: str, remaining: int = 900, mode: str = "work") -> Snapshot:
    if state == "idle":
        return Snapshot.idle(mode, at=T)
    return Snapshot(
        start_timestamp=T,
        state=state,
        remaining_seconds=remaining,
        mode=mode,
        logical_timestamp=T,
    )


def _engine(state: str) -> MagicMock:
    engine = MagicMock()
    engine.snapshot = _snapshot(state)
    return engine


@pytest.mark.parametrize(
    "seconds,expected", [(0, "00:00"), (59, "00:59"), (1500, "25:00"), (-4, "00:00")]
)
def test_format_clock(seconds, expected):
    assert format_clock(seconds) == expected


class TestStatusLine:
    def test_running(self):
        assert status_line(_snapshot("running"), 1500) == "🍅 15:00 Work"

    def test_paused_break(self):
        line = status_line(_snapshot("paused", 90, "break"), 300)
        assert line == "☕ 01:30 Break (Paused)"

    def test_idle_shows_full_duration(self):
        assert status_line(_snapshot("idle"), 1500) == "🍅 25:00 Work (Idle)"

    def test_korean(self):
        assert status_line(_snapshot("idle"), 1500, "ko") == "🍅 25:00 작업 (대기)"


class TestLayout:
    @pytest.mark.parametrize("state", ["idle", "running", "paused"])
    def test_layout_renders(self, state):
        display = TimerDisplay(Console(record=True, width=80))
        layout = display.create_layout(_snapshot(state), 1500)

        assert isinstance(layout, Layout)
        display.console.print(layout, height=15)
        text = display.console.export_text()
        assert "PomodoLog" in text

    def test_running_shows_countdown_and_progress(self):
        display = TimerDisplay(Console(record=True, width=80))
        display.console.print(display.create_layout(_snapshot("running", 900), 1500), height=15)
        text = display.console.export_text()
        assert "15:00" in text
        assert "40%" in text


class TestKeys:
    def test_quit(self):
        assert TimerDisplay().handle_key(_engine("running"), "q") is False

    def test_no_key(self):
        engine = _engine("running")
        assert TimerDisplay().handle_key(engine, None) is True
        engine.start.assert_not_called()
        engine.pause.assert_not_called()

    def test_start_from_idle(self):
        engine = _engine("idle")
        TimerDisplay().handle_key(engine, "s")
        engine.start.assert_called_once()

    def test_start_ignored_while_paused(self):
        engine = _engine("paused")
        TimerDisplay().handle_key(engine, "s")
        engine.start.assert_not_called()

    def test_p_toggles(self):
        running = _engine("running")
        TimerDisplay().handle_key(running, "p")
        running.pause.assert_called_once()

        paused = _engine("paused")
        TimerDisplay().handle_key(paused, "p")
        paused.resume.assert_called_once()

    def test_stop(self):
        engine = _engine("paused")
        TimerDisplay().handle_key(engine, "x")
        engine.stop.assert_called_once()

    def test_mode_only_when_idle(self):
        running = _engine("running")
        TimerDisplay().handle_key(running, "m")
        running.toggle_mode.assert_not_called()

        idle = _engine("idle")
        TimerDisplay().handle_key(idle, "m")
        idle.toggle_mode.assert_called_once()


class TestRun:
    @patch("pomodolog_cli.ui.timer_display.time.sleep")
    @patch("pomodolog_cli.ui.timer_display.KeyboardHandler")
    def test_returns_when_session_completes(self, mock_keyboard, mock_sleep):
        mock_keyboard.return_value.get_key.return_value = None
        engine = _engine("running")
        engine.status.return_value = engine.snapshot
        engine.machine.total_duration.return_value = 1500
        type(engine).has_completed = PropertyMock(side_effect=[False, True])

        display = TimerDisplay(Console(record=True, width=80))
        with patch("pomodolog_cli.ui.timer_display.Live"):
            assert display.run(engine) == "completed"

        assert engine.pump.call_count == 2
        mock_keyboard.return_value.stop.assert_called_once()

    @patch("pomodolog_cli.ui.timer_display.KeyboardHandler")
    def test_quit_key(self, mock_keyboard):
        mock_keyboard.return_value.get_key.return_value = "q"
        engine = _engine("idle")
        engine.machine.total_duration.return_value = 1500
        engine.status.return_value = engine.snapshot

        display = TimerDisplay(Console(record=True, width=80))
        with patch("pomodolog_cli.ui.timer_display.Live"):
            assert display.run(engine) == "quit"
        engine.pump.assert_not_called()
