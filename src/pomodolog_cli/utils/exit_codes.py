"""
Exit codes for PomodoLog CLI.

Scripts driving the timer (status bars, editor hooks) branch on these codes,
so each one maps to a distinct outcome.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or rejected configuration value
ERROR_INVALID_ARGS = 2

# The timer is in a state that does not allow the requested transition
ERROR_CONFLICT = 3

# The session log could not be written
ERROR_LOG_WRITE = 4
