"""Full-screen live timer view."""

import time

from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.text import Text

from pomodolog_cli.models.timer import Snapshot
from pomodolog_cli.services.engine import TimerEngine

from .keyboard import KeyboardHandler
from .messages import t

PUMP_INTERVAL_SECONDS = 0.25


def format_clock(seconds: int) -> str:
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins:02d}:{secs:02d}"


def status_line(snapshot: Snapshot, total_seconds: int, language: str = "en") -> str:
    """One-line summary used by the status command."""
    emoji = "🍅" if snapshot.mode == "work" else "☕"
    seconds = snapshot.remaining_seconds if snapshot.is_active else total_seconds
    text = f"{emoji} {format_clock(seconds)} {t(snapshot.mode, language)}"
    if snapshot.state != "running":
        text += f" ({t(snapshot.state, language)})"
    return text


class TimerDisplay:
    """Renders an engine's snapshot and forwards keys to it."""

    def __init__(self, console: Console | None = None, language: str = "en"):
        self.console = console or Console()
        self.language = language

    def create_layout(self, snapshot: Snapshot, total_seconds: int) -> Layout:
        """Create the timer layout with all components."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        if snapshot.state == "paused":
            color = "yellow"
        elif snapshot.state == "running":
            color = "cyan" if snapshot.mode == "work" else "green"
        else:
            color = "dim"

        header_text = Text(
            f"PomodoLog  ·  {t(snapshot.mode, self.language)}",
            style=f"bold {color}",
            justify="center",
        )
        layout["header"].update(Align.center(header_text, vertical="middle"))
        layout["body"].update(
            Align.center(self._create_body(snapshot, total_seconds), vertical="middle")
        )
        layout["footer"].update(
            Align.center(self._create_footer(snapshot.state), vertical="middle")
        )
        return layout

    def _create_body(self, snapshot: Snapshot, total_seconds: int) -> Group:
        remaining = snapshot.remaining_seconds
        if snapshot.state == "idle":
            remaining = total_seconds

        if snapshot.state == "paused":
            timer_color = "yellow"
        elif snapshot.state == "running" and remaining < 60:
            timer_color = "red"
        else:
            timer_color = "cyan"

        components = [
            Text(format_clock(remaining), style=f"bold {timer_color}", justify="center"),
            Text(""),
        ]

        elapsed = total_seconds - remaining
        progress_pct = min(100, int(elapsed * 100 / total_seconds)) if total_seconds else 0
        bar_width = 40
        filled = bar_width * progress_pct // 100
        components.append(
            Text(
                "▓" * filled + "░" * (bar_width - filled) + f"  {progress_pct}%",
                style="dim",
                justify="center",
            )
        )
        components.append(Text(""))
        components.append(
            Text(t(snapshot.state, self.language), style=timer_color, justify="center")
        )
        return Group(*components)

    def _create_footer(self, state: str) -> Text:
        if state == "running":
            hints = "'p' pause  •  'x' stop  •  'q' quit"
        elif state == "paused":
            hints = "'p' resume  •  'x' stop  •  'q' quit"
        else:
            hints = "'s' start  •  'm' switch mode  •  'q' quit"
        return Text(hints, style="dim", justify="center")

    def handle_key(self, engine: TimerEngine, key: str | None) -> bool:
        """Apply one key press. Returns False when the user asked to quit."""
        if key == "q":
            return False

        state = engine.snapshot.state
        if key == "s" and state == "idle":
            engine.start()
        elif key == "p" and state == "running":
            engine.pause()
        elif key == "p" and state == "paused":
            engine.resume()
        elif key == "x":
            engine.stop()
        elif key == "m" and state == "idle":
            engine.toggle_mode()
        return True

    def run(self, engine: TimerEngine) -> str:
        """Pump *engine* and redraw until a session completes or the user quits.

        Returns 'completed', 'quit' or 'interrupted'.
        """
        keyboard = KeyboardHandler()

        def frame() -> Layout:
            snapshot = engine.status()
            return self.create_layout(snapshot, engine.machine.total_duration())

        try:
            with Live(
                frame(),
                console=self.console,
                refresh_per_second=4,
                screen=True,
            ) as live:
                while True:
                    if not self.handle_key(engine, keyboard.get_key()):
                        return "quit"

                    engine.pump()
                    if engine.has_completed:
                        return "completed"

                    live.update(frame())
                    time.sleep(PUMP_INTERVAL_SECONDS)

        except KeyboardInterrupt:
            return "interrupted"
        finally:
            keyboard.stop()
