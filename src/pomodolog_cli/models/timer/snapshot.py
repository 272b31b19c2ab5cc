"""Snapshot and value types shared by the timer core.

A ``Snapshot`` is the unit of persisted and shared truth. Its wire form is the
JSON object written to the shared timer file and embedded in the local config
blob under ``_timerState``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

TimerState = Literal["idle", "running", "paused"]
TimerMode = Literal["work", "break"]

ACTIVE_STATES: frozenset[str] = frozenset({"running", "paused"})


class TimerTransitionError(ValueError):
    """Raised when the core rejects a transition outright."""


class Snapshot(BaseModel):
    """Serializable record of the timer at one instant."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_timestamp: int | None = Field(default=None, alias="timerStartTime")
    state: TimerState = Field(default="idle", alias="timerState")
    remaining_seconds: int = Field(default=0, ge=0, alias="remainingTime")
    mode: TimerMode = Field(default="work", alias="currentMode")
    logical_timestamp: int = Field(default=0, ge=0, alias="lastCheck")

    @model_validator(mode="after")
    def check_state_invariants(self) -> Snapshot:
        """Idle carries no start and no remaining time; active states carry a start."""
        if self.state == "idle":
            if self.start_timestamp is not None or self.remaining_seconds != 0:
                raise ValueError("idle snapshot must have no start and zero remaining")
        elif self.start_timestamp is None:
            raise ValueError(f"{self.state} snapshot requires a start timestamp")
        return self

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    @classmethod
    def idle(cls, mode: TimerMode = "work", at: int = 0) -> Snapshot:
        """Create the idle snapshot for *mode* stamped at *at*."""
        return cls(state="idle", mode=mode, remaining_seconds=0, logical_timestamp=at)

    def to_wire(self) -> dict[str, Any]:
        """Convert to the shared JSON object."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Snapshot:
        """Create from the shared JSON object. Raises ``ValidationError`` when malformed."""
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, content: str) -> Snapshot:
        return cls.model_validate_json(content)


@dataclass(frozen=True)
class TimerConfig:
    """Session durations in seconds. Immutable for the lifetime of a session."""

    work_duration_seconds: int = 25 * 60
    break_duration_seconds: int = 5 * 60

    def __post_init__(self) -> None:
        if self.work_duration_seconds <= 0 or self.break_duration_seconds <= 0:
            raise ValueError("Durations must be positive")

    @classmethod
    def from_minutes(cls, work_minutes: int, break_minutes: int) -> TimerConfig:
        return cls(work_minutes * 60, break_minutes * 60)

    def total_duration(self, mode: TimerMode) -> int:
        """Total seconds of a session in *mode*."""
        if mode == "work":
            return self.work_duration_seconds
        return self.break_duration_seconds


@dataclass(frozen=True)
class SessionCompleteEvent:
    """Emitted on every terminal transition that carries elapsed time."""

    start_time: datetime
    end_time: datetime
    elapsed_seconds: int
    mode: TimerMode = "work"

    def to_dict(self) -> dict[str, Any]:
        return {
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "elapsedSeconds": self.elapsed_seconds,
            "mode": self.mode,
        }


def from_epoch_ms(value: int) -> datetime:
    """Local aware datetime for an epoch-ms value."""
    return datetime.fromtimestamp(value / 1000).astimezone()
