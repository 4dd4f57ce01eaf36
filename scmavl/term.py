"""ANSI terminal colouring that can be switched off."""

import enum
import sys

__all__ = ["TermColor", "Terminal"]


class TermColor(enum.IntEnum):
    """The eight basic ANSI foreground colours."""

    BLACK = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    BLUE = 4
    MAGENTA = 5
    CYAN = 6
    GRAY = 7


class Terminal:
    """Writes ANSI attribute sequences to a stream unless colour is disabled."""

    def __init__(self, nocolor=False, stream=None):
        self.nocolor = bool(nocolor)
        self._stream = stream

    @property
    def stream(self):
        return self._stream if self._stream is not None else sys.stdout

    def _emit(self, *codes):
        if self.nocolor:
            return
        out = self.stream
        for code in codes:
            out.write(code)
        out.flush()

    def color(self, color):
        """Switch the foreground colour."""
        try:
            color = TermColor(color)
        except ValueError:
            raise ValueError(f"invalid terminal color: {color!r}") from None
        self._emit(f"\033[{30 + color.value}m")

    def bold(self):
        """Switch on bold text."""
        self._emit("\033[1m")

    def reset(self):
        """Show the cursor and clear all attributes."""
        self._emit("\033[?25h", "\033[0m")