"""Session-complete prompt: ask for a note and a rating, then log the session."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt

from pomodolog_cli.models.timer import SessionCompleteEvent
from pomodolog_cli.services.session_log_service import (
    MAX_RATING,
    MIN_RATING,
    SessionLogError,
    SessionLogService,
    format_session_summary,
)

from .formatters import format_error, format_success
from .messages import t

RATING_CHOICES = [str(n) for n in range(MIN_RATING, MAX_RATING + 1)]


def session_popup_text(
    event: SessionCompleteEvent,
    popup_message: str = "popupMessageDefault",
    language: str = "en",
) -> str:
    return "\n".join(
        [
            t(popup_message, language),
            t("sessionFinished", language),
            format_session_summary(event),
            t("pleaseEvaluate", language),
        ]
    )


def ask_note_and_rating(
    console: Console, note: str | None = None, rating: int | None = None, language: str = "en"
) -> tuple[str, int]:
    """Prompt only for what was not supplied up front."""
    if note is None:
        note = Prompt.ask(t("notePrompt", language), console=console, default="")
    if rating is None:
        rating = IntPrompt.ask(
            t("ratingPrompt", language),
            console=console,
            choices=RATING_CHOICES,
            default=3,
        )
    return note, rating


def record_session(
    event: SessionCompleteEvent,
    log_service: SessionLogService,
    console: Console,
    note: str | None = None,
    rating: int | None = None,
    popup_message: str = "popupMessageDefault",
    language: str = "en",
) -> bool:
    """Show the completion panel, collect note and rating, append the log row.

    A failed append is reported once and the session is dropped.
    """
    border = "green" if event.mode == "work" else "cyan"
    console.print(
        Panel(session_popup_text(event, popup_message, language), border_style=border, padding=(1, 2))
    )
    note, rating = ask_note_and_rating(console, note, rating, language)

    try:
        log_service.append(event, note, rating)
    except SessionLogError as e:
        format_error(str(e))
        return False

    format_success(t("logSaved", language))
    return True
