"""PomodoLog CLI - focus/break timer shared across terminal instances."""

__version__ = "0.3.0"
