"""Configuration service for PomodoLog CLI.

This module provides the ConfigService class, the single owner of the local
persisted blob (``config.json``). It handles:

- Loading and saving the settings and the embedded ``_timerState`` snapshot
- Falling back to defaults when the blob is missing or corrupt
- Validated setting changes that keep the prior value on bad input
- Resolving the storage root shared by every instance
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import ValidationError

from pomodolog_cli.models.config_models import SETTING_KEYS, AppConfig
from pomodolog_cli.models.timer.snapshot import Snapshot
from pomodolog_cli.utils.atomic import atomic_write_text
from pomodolog_cli.utils.logger import get_logger

HOME_ENV = "POMODOLOG_HOME"
_APP_NAME = "pomodolog_cli"


class ConfigService:
    """Service for managing the local persisted blob.

    With an explicit *home* (or ``POMODOLOG_HOME``) both the blob and the
    shared data live under that one directory; otherwise they follow the
    platform config and data directories.
    """

    def __init__(self, home: Path | str | None = None):
        """Initialize the config service."""
        home = home or os.environ.get(HOME_ENV)
        if home:
            self.config_dir = Path(home)
            self.data_dir = Path(home)
        else:
            self.config_dir = Path(user_config_dir(_APP_NAME))
            self.data_dir = Path(user_data_dir(_APP_NAME))
        self.config_path = self.config_dir / "config.json"

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def log_path(self) -> Path:
        """Session log location; relative paths resolve against the data dir."""
        path = Path(self.config.log_file_path).expanduser()
        if not path.is_absolute():
            path = self.data_dir / path
        return path

    def load_config(self) -> AppConfig:
        """Load configuration from storage, never failing on bad content."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # Expected on first run
            self._config = AppConfig()
        except (OSError, ValidationError) as e:
            get_logger().warning(
                "Config at %s is unreadable, falling back to defaults: %s",
                self.config_path,
                e,
            )
            self._config = AppConfig()

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        try:
            atomic_write_text(
                self.config_path,
                self.config.model_dump_json(by_alias=True, indent=4),
                mode=0o600,
            )
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reload(self) -> AppConfig:
        """Drop the cached blob and read it again."""
        self._config = None
        return self.load_config()

    def load_timer_state(self) -> Snapshot | None:
        """Last snapshot persisted by any instance on this storage root."""
        return self.config.timer_state

    def save_timer_state(self, snapshot: Snapshot) -> None:
        """Embed *snapshot* in the blob and write it out.

        The blob is re-read first so settings changed by another instance
        are kept rather than overwritten.
        """
        self.reload().timer_state = snapshot
        self.save_config()

    def get_setting(self, key: str) -> Any:
        """Get a setting by its on-disk (camelCase) key."""
        field = SETTING_KEYS.get(key)
        if field is None:
            raise KeyError(key)
        return getattr(self.config, field)

    def set_setting(self, key: str, raw_value: str) -> bool:
        """Validate and store a setting.

        Returns False, keeping the prior value, when *raw_value* is rejected.
        Raises KeyError for unknown keys.
        """
        field = SETTING_KEYS.get(key)
        if field is None:
            raise KeyError(key)

        config = self.reload()
        value: Any = raw_value
        if field in ("work_minutes", "break_minutes"):
            try:
                value = int(raw_value)
            except ValueError:
                get_logger().info("Rejected %s=%r: not a number", key, raw_value)
                return False

        try:
            setattr(config, field, value)
        except ValidationError as e:
            get_logger().info("Rejected %s=%r: %s", key, raw_value, e.errors()[0]["msg"])
            return False

        self.save_config()
        return True

    def reset_config(self) -> None:
        """Reset settings to defaults, keeping the timer snapshot."""
        timer_state = self.reload().timer_state
        self._config = AppConfig(timer_state=timer_state)
        self.save_config()
