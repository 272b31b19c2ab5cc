"""Main entry point for PomodoLog CLI."""

from pathlib import Path

import typer

from pomodolog_cli import __version__
from pomodolog_cli.commands import config, timer
from pomodolog_cli.services.config_service import HOME_ENV
from pomodolog_cli.utils.ui.console import get_console

app = typer.Typer(
    name="pomodolog",
    help="Work/break timer that stays in sync across terminals and logs every session",
    no_args_is_help=True,
)

console = get_console()


@app.callback()
def root(
    ctx: typer.Context,
    home: Path | None = typer.Option(
        None,
        "--home",
        envvar=HOME_ENV,
        help="Storage root shared by every instance (config, shared state, log)",
    ),
) -> None:
    """PomodoLog CLI."""
    ctx.obj = {"home": home}


app.command("start")(timer.start)
app.command("pause")(timer.pause)
app.command("resume")(timer.resume)
app.command("stop")(timer.stop)
app.command("status")(timer.status)
app.command("watch")(timer.watch)
app.command("log")(timer.log)
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]PomodoLog CLI[/bold] version [cyan]{__version__}[/cyan]")


# Main entry point
def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
