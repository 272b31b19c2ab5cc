"""Console utilities for PomodoLog CLI."""

from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=2)
def get_console(highlight: bool = False) -> Console:
    """Get the shared Rich Console; timer output reads better unhighlighted."""
    return Console(highlight=highlight)
