"""Unit tests for pomodolog_cli.utils.exit_codes."""

from __future__ import annotations

from pomodolog_cli.utils.exit_codes import (
    ERROR_CONFLICT,
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_LOG_WRITE,
    SUCCESS,
)

ALL_CODES = [SUCCESS, ERROR_GENERAL, ERROR_INVALID_ARGS, ERROR_CONFLICT, ERROR_LOG_WRITE]


class TestExitCodeConstants:
    def test_values(self):
        assert ALL_CODES == [0, 1, 2, 3, 4]

    def test_all_constants_are_unique(self):
        assert len(ALL_CODES) == len(set(ALL_CODES))
