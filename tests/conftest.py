"""Shared test fixtures and configuration.

Provides a controllable millisecond clock and isolates every test from the
real platform directories (config, data and log).
"""

from __future__ import annotations

import logging
import time
from unittest.mock import patch

import pytest

from pomodolog_cli.services.config_service import HOME_ENV, ConfigService

# 2024-01-01T00:00:00Z
T0 = 1_704_067_200_000


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float = 0, ms: int = 0) -> int:
        self.now += int(seconds * 1000) + ms
        return self.now


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep logs inside *tmp_path* and ignore a storage root set by the user."""
    import pomodolog_cli.utils.logger as logger_mod

    monkeypatch.delenv(HOME_ENV, raising=False)
    logger_mod._logger = None
    logging.getLogger("pomodolog_cli").handlers.clear()
    with patch("pomodolog_cli.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield
    for handler in logging.getLogger("pomodolog_cli").handlers:
        handler.close()
    logging.getLogger("pomodolog_cli").handlers.clear()
    logger_mod._logger = None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    """Fake clock starting at a fixed instant; for purely in-memory tests."""
    return FakeClock()


@pytest.fixture()
def wall_clock() -> FakeClock:
    """Fake clock starting at the real current time.

    File-backed tests need it: shared-file liveness compares the clock with
    real file modification times.
    """
    return FakeClock(int(time.time()) * 1000)


@pytest.fixture()
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture()
def config_service(home) -> ConfigService:
    """ConfigService rooted at a temporary storage root."""
    return ConfigService(home)
