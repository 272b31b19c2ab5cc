"""Session log: a markdown table with one row per completed session."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pomodolog_cli.models.timer.snapshot import SessionCompleteEvent
from pomodolog_cli.utils.logger import get_logger

LOG_HEADER = "| start | end | desc | rate |\n| --- | --- | --- | --- |\n"
DATETIME_FORMAT = "%Y-%m-%d %H:%M"
MIN_RATING = 1
MAX_RATING = 5


class SessionLogError(RuntimeError):
    """Raised when a row cannot be appended to the session log."""


@dataclass
class LogRow:
    """One parsed session row."""

    start: datetime
    end: datetime
    note: str
    rating: int

    @property
    def duration_minutes(self) -> int:
        return round((self.end - self.start).total_seconds() / 60)


def sanitize_note(note: str) -> str:
    """Keep a note on one table cell: no pipes, no line breaks."""
    return " ".join(note.replace("|", "/").split())


def format_row(event: SessionCompleteEvent, note: str, rating: int) -> str:
    start = event.start_time.strftime(DATETIME_FORMAT)
    end = event.end_time.strftime(DATETIME_FORMAT)
    return f"| {start} | {end} | {sanitize_note(note)} | {rating} |\n"


def format_session_summary(event: SessionCompleteEvent) -> str:
    """Short ``HH:MM ~ HH:MM (N min)`` description of a session."""
    minutes = round((event.end_time - event.start_time).total_seconds() / 60)
    return (
        f"{event.start_time.strftime('%H:%M')} ~ "
        f"{event.end_time.strftime('%H:%M')} ({minutes} min)"
    )


class SessionLogService:
    """Appends completed sessions to the log file and reads them back."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, event: SessionCompleteEvent, note: str, rating: int) -> None:
        """Append one row, creating the file with its header when absent.

        Raises ValueError for a rating outside 1-5 and SessionLogError when the
        file cannot be written. Failed rows are not retried.
        """
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        row = format_row(event, note, rating)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self.path.write_text(LOG_HEADER + row, encoding="utf-8")
            else:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(row)
        except OSError as e:
            get_logger().error("Failed to append session log %s: %s", self.path, e)
            raise SessionLogError(f"Could not write session log {self.path}: {e}") from e

        get_logger().info("Logged %s session (%ss, rating %s)", event.mode, event.elapsed_seconds, rating)

    def read_rows(self) -> list[LogRow]:
        """Parse every data row; the header, separator and foreign lines are skipped."""
        if not self.path.exists():
            return []

        rows = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            cells = [cell.strip() for cell in line.strip().strip("|").split("|")]
            if len(cells) != 4:
                continue
            try:
                rows.append(
                    LogRow(
                        start=datetime.strptime(cells[0], DATETIME_FORMAT),
                        end=datetime.strptime(cells[1], DATETIME_FORMAT),
                        note=cells[2],
                        rating=int(cells[3]),
                    )
                )
            except ValueError:
                continue
        return rows
