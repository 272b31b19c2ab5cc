"""Timer commands for PomodoLog CLI."""

import signal
import sys

import typer

from pomodolog_cli.models.timer import TimerTransitionError
from pomodolog_cli.services.engine import TimerEngine
from pomodolog_cli.services.session_log_service import SessionLogService
from pomodolog_cli.ui.formatters import (
    format_error,
    format_info,
    format_json,
    format_session_rows,
    format_warning,
)
from pomodolog_cli.ui.timer_display import TimerDisplay, status_line
from pomodolog_cli.utils.exit_codes import ERROR_CONFLICT, ERROR_INVALID_ARGS, ERROR_LOG_WRITE
from pomodolog_cli.utils.ui.console import get_console

from .helpers import engine_session, get_config_service, log_completed_sessions

console = get_console()

MODES = ("work", "break")


def _watch(engine: TimerEngine) -> None:
    """Run the live view until the user quits, logging sessions as they complete."""
    config = engine.config_service.config
    display = TimerDisplay(console, language=config.language)

    # SIGCONT arrives when a suspended process is brought back
    previous_handler = None
    if hasattr(signal, "SIGCONT"):
        previous_handler = signal.signal(
            signal.SIGCONT, lambda signum, frame: engine.request_reentry()
        )

    try:
        while True:
            result = display.run(engine)
            log_completed_sessions(engine)
            if result != "completed":
                break
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGCONT, previous_handler)


def _print_status(engine: TimerEngine) -> None:
    snapshot = engine.status()
    language = engine.config_service.config.language
    console.print(status_line(snapshot, engine.machine.total_duration(), language))


def _can_watch(watch: bool) -> bool:
    return watch and sys.stdin.isatty()


def start(
    ctx: typer.Context,
    mode: str = typer.Option("work", "--mode", "-m", help="Session mode: work or break"),
    watch: bool = typer.Option(True, "--watch/--no-watch", help="Open the live view"),
) -> None:
    """Start a work or break session."""
    if mode not in MODES:
        format_error("Invalid mode. Must be: work or break")
        raise typer.Exit(ERROR_INVALID_ARGS)

    with engine_session(ctx) as engine:
        try:
            started = engine.start(mode)
        except TimerTransitionError as e:
            format_error(str(e))
            raise typer.Exit(ERROR_CONFLICT) from e

        if not started:
            format_info("A session is already running")
        _print_status(engine)
        if _can_watch(watch):
            _watch(engine)


def pause(ctx: typer.Context) -> None:
    """Pause the running session."""
    with engine_session(ctx) as engine:
        if not engine.pause():
            if engine.has_completed:
                # the session ran out before it could be paused
                log_completed_sessions(engine)
                return
            format_warning("No running session to pause")
            raise typer.Exit(ERROR_CONFLICT)
        _print_status(engine)


def resume(
    ctx: typer.Context,
    watch: bool = typer.Option(True, "--watch/--no-watch", help="Open the live view"),
) -> None:
    """Resume the paused session."""
    with engine_session(ctx) as engine:
        if not engine.resume():
            format_warning("No paused session to resume")
            raise typer.Exit(ERROR_CONFLICT)
        _print_status(engine)
        if _can_watch(watch):
            _watch(engine)


def stop(
    ctx: typer.Context,
    note: str | None = typer.Option(None, "--note", "-n", help="What you did"),
    rating: int | None = typer.Option(
        None, "--rating", "-r", min=1, max=5, help="Session rating (1-5)"
    ),
) -> None:
    """Stop the current session and log it."""
    with engine_session(ctx) as engine:
        if not engine.stop():
            format_warning("No session to stop")
            raise typer.Exit(ERROR_CONFLICT)
        if not log_completed_sessions(engine, note=note, rating=rating):
            raise typer.Exit(ERROR_LOG_WRITE)


def status(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print the snapshot as JSON"),
) -> None:
    """Show the timer state without changing it."""
    with engine_session(ctx, read_only=True) as engine:
        if json_output:
            snapshot = engine.status()
            data = snapshot.to_wire()
            data["totalDuration"] = engine.machine.total_duration()
            format_json(data)
        else:
            _print_status(engine)


def log(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Number of recent sessions"),
    json_output: bool = typer.Option(False, "--json", help="Print the sessions as JSON"),
) -> None:
    """Show the most recent logged sessions."""
    log_service = SessionLogService(get_config_service(ctx).log_path)
    rows = log_service.read_rows()[-limit:]

    if json_output:
        format_json(
            [
                {
                    "start": row.start.isoformat(),
                    "end": row.end.isoformat(),
                    "minutes": row.duration_minutes,
                    "note": row.note,
                    "rating": row.rating,
                }
                for row in rows
            ]
        )
        return
    if not rows:
        format_info(f"No sessions logged yet in {log_service.path}")
        return
    format_session_rows(rows)


def watch(ctx: typer.Context) -> None:
    """Open the live timer view (s start, p pause/resume, x stop, m mode, q quit)."""
    if not sys.stdin.isatty():
        format_error("The live view needs an interactive terminal")
        raise typer.Exit(ERROR_INVALID_ARGS)

    with engine_session(ctx) as engine:
        _watch(engine)
