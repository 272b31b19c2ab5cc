"""Data models for PomodoLog CLI."""
