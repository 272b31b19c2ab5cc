"""Non-blocking single-key input for the watch view."""

import select
import sys
import termios
import tty
from typing import Optional


class KeyboardHandler:
    """Puts the terminal in cbreak mode and reads keys without blocking."""

    def __init__(self):
        self.old_settings = None
        try:
            self.fd = sys.stdin.fileno()
            self.old_settings = termios.tcgetattr(self.fd)
            tty.setcbreak(self.fd)
        except (OSError, ValueError, termios.error):
            # Not a terminal; keys are simply never reported
            self.fd = None

    def get_key(self) -> Optional[str]:
        """Return the pressed key, lowercased, or None."""
        if self.fd is None:
            return None
        if select.select([sys.stdin], [], [], 0)[0]:
            return sys.stdin.read(1).lower()
        return None

    def stop(self):
        """Restore terminal settings."""
        if self.old_settings is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self.old_settings)
            self.old_settings = None
