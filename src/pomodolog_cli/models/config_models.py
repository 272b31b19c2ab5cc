"""Configuration models for PomodoLog CLI.

The local persisted blob holds the user settings plus the last timer
snapshot under ``_timerState``. Keys are camelCase on disk.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pomodolog_cli.models.timer.snapshot import Snapshot, TimerConfig

Language = Literal["en", "ko"]

# Settings a user may change from the CLI, mapped to their model field
SETTING_KEYS = {
    "workMinutes": "work_minutes",
    "breakMinutes": "break_minutes",
    "logFilePath": "log_file_path",
    "popupMessage": "popup_message",
    "language": "language",
}


class AppConfig(BaseModel):
    """Main PomodoLog configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    work_minutes: int = Field(default=25, gt=0, description="Work session length")
    break_minutes: int = Field(default=5, gt=0, description="Break session length")
    log_file_path: str = Field(default="Pomodoro Log.md", description="Session log file")
    popup_message: str = Field(
        default="popupMessageDefault", description="Message key shown on completion"
    )
    language: Language = Field(default="en", description="Language code")
    timer_state: Snapshot | None = Field(default=None, alias="_timerState")

    @field_validator("log_file_path")
    @classmethod
    def validate_log_file_path(cls, v: str) -> str:
        """Reject empty paths."""
        if not v or not v.strip():
            raise ValueError("logFilePath cannot be empty")
        return v.strip()

    @property
    def timer_config(self) -> TimerConfig:
        return TimerConfig.from_minutes(self.work_minutes, self.break_minutes)

    def settings(self) -> dict[str, Any]:
        """User-facing settings without the embedded timer state."""
        return self.model_dump(by_alias=True, exclude={"timer_state"})
