"""Shared plumbing for commands: one engine per process, completed sessions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from pomodolog_cli.services.config_service import ConfigService
from pomodolog_cli.services.engine import TimerEngine
from pomodolog_cli.ui.prompts import record_session
from pomodolog_cli.utils.ui.console import get_console


def home_from(ctx: typer.Context) -> Path | None:
    """Storage root given to the top-level ``--home`` option, if any."""
    obj = ctx.find_root().obj or {}
    return obj.get("home")


def get_config_service(ctx: typer.Context) -> ConfigService:
    return ConfigService(home_from(ctx))


@contextmanager
def engine_session(ctx: typer.Context, read_only: bool = False) -> Iterator[TimerEngine]:
    """Boot an engine for this process and always shut it down.

    A *read_only* session neither recovers nor writes back the timer state.
    """
    engine = TimerEngine(get_config_service(ctx))
    engine.boot(recover=not read_only)
    try:
        yield engine
    finally:
        engine.shutdown(flush=not read_only)


def log_completed_sessions(
    engine: TimerEngine, note: str | None = None, rating: int | None = None
) -> bool:
    """Prompt for and log every session the engine completed.

    Returns False when any log row could not be written.
    """
    config = engine.config_service.config
    log_service = engine.log_service()
    ok = True
    for event in engine.drain_completed():
        ok = (
            record_session(
                event,
                log_service,
                get_console(),
                note=note,
                rating=rating,
                popup_message=config.popup_message,
                language=config.language,
            )
            and ok
        )
    return ok
