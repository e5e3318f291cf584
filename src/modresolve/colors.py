"""Terminal colors for the modresolve CLI.

Honors NO_COLOR (https://no-color.org/) and FORCE_COLOR, and stays plain
when stdout is not a TTY.
"""

import os
import sys


class Colors:
    """ANSI color helper with terminal detection.

    Example:
        >>> c = Colors(enabled=False)
        >>> c.success("./src/utils/helper")
        './src/utils/helper'
    """

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"

    def __init__(self, enabled: bool = None):
        if enabled is not None:
            self.enabled = enabled
        else:
            self.enabled = self._should_enable_colors()

    def _should_enable_colors(self) -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("FORCE_COLOR"):
            return True
        if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
            return False
        return os.environ.get("TERM", "") != "dumb"

    def _colorize(self, text: str, *codes: str) -> str:
        if not self.enabled:
            return text
        return f"{''.join(codes)}{text}{self.RESET}"

    def cyan(self, text: str) -> str:
        """File paths."""
        return self._colorize(text, self.CYAN)

    def dim(self, text: str) -> str:
        return self._colorize(text, self.DIM)

    def success(self, text: str) -> str:
        """Rewritten specifiers (bold green)."""
        return self._colorize(text, self.BOLD, self.GREEN)

    def warning(self, text: str) -> str:
        return self._colorize(text, self.YELLOW)

    def error(self, text: str) -> str:
        return self._colorize(text, self.BOLD, self.RED)


def get_colors(no_color: bool = False) -> Colors:
    """Return a Colors instance; ``no_color`` forces plain output."""
    if no_color:
        return Colors(enabled=False)
    return Colors()
