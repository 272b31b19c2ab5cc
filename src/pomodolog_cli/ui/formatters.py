"""Output formatters for the CLI."""

import json
from typing import Any

from rich.table import Table

from pomodolog_cli.services.session_log_service import DATETIME_FORMAT, LogRow
from pomodolog_cli.utils.ui.console import get_console

console = get_console()


def format_json(data: Any) -> None:
    """Print *data* as indented JSON on stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def format_settings(settings: dict[str, Any]) -> None:
    """Display settings as a two-column table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, str(value))
    console.print(table)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def format_session_rows(rows: list[LogRow]) -> None:
    """Display logged sessions, newest last, with their length in minutes."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Min", justify="right")
    table.add_column("Note")
    table.add_column("Rate", justify="center")

    for row in rows:
        table.add_row(
            row.start.strftime(DATETIME_FORMAT),
            row.end.strftime("%H:%M"),
            str(row.duration_minutes),
            row.note or "-",
            "★" * row.rating,
        )
    console.print(table)
