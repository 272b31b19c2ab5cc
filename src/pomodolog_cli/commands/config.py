"""Configuration management commands."""

import typer

from pomodolog_cli.models.config_models import SETTING_KEYS
from pomodolog_cli.models.timer import TimerTransitionError
from pomodolog_cli.ui.formatters import (
    format_error,
    format_json,
    format_settings,
    format_success,
    format_warning,
)
from pomodolog_cli.utils.exit_codes import ERROR_CONFLICT, ERROR_GENERAL, ERROR_INVALID_ARGS

from .helpers import engine_session, get_config_service

app = typer.Typer(help="Configuration management commands")


@app.command("show")
def show_config(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print settings as JSON"),
) -> None:
    """Show current settings."""
    config_service = get_config_service(ctx)
    settings = config_service.config.settings()
    if json_output:
        format_json(settings)
        return
    format_settings(settings)
    format_success(f"Session log: {config_service.log_path}")


@app.command("set")
def set_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help=f"Setting key ({', '.join(SETTING_KEYS)})"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change a setting. Durations can only change between sessions."""
    if key not in SETTING_KEYS:
        format_error(f"Unknown setting '{key}'")
        raise typer.Exit(ERROR_INVALID_ARGS)

    with engine_session(ctx, read_only=True) as engine:
        try:
            accepted = engine.update_setting(key, value)
        except TimerTransitionError as e:
            format_error(str(e))
            raise typer.Exit(ERROR_CONFLICT) from e
        except RuntimeError as e:
            format_error(str(e))
            raise typer.Exit(ERROR_GENERAL) from e

    if not accepted:
        format_warning(f"Invalid value for '{key}': {value!r} (kept previous value)")
        raise typer.Exit(ERROR_INVALID_ARGS)
    format_success(f"Setting '{key}' set to '{engine.config_service.get_setting(key)}'")


@app.command("reset")
def reset_config(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset settings to defaults. Only between sessions."""
    if not yes and not typer.confirm("Are you sure you want to reset all settings?"):
        format_error("Cancelled")
        raise typer.Exit(0)

    with engine_session(ctx, read_only=True) as engine:
        try:
            engine.reset_settings()
        except TimerTransitionError as e:
            format_error(str(e))
            raise typer.Exit(ERROR_CONFLICT) from e
        except RuntimeError as e:
            format_error(str(e))
            raise typer.Exit(ERROR_GENERAL) from e
    format_success("Settings reset to defaults")
