"""An interactive line-editing shell with history for ANSI terminals."""

import sys

try:
    import termios
except ImportError:  # not available on every platform
    termios = None

from .term import TermColor, Terminal

__all__ = ["strtrim", "LineEditor", "Shell"]

PROMPT = "CS238P -> "

_HISTORY_SLOTS = 96
_LINE_BYTES = 160

_ESC = "\x1b"
_CTRL_D = "\x04"
_CTRL_K = "\x0b"
_CTRL_L = "\x0c"
_BACKSPACES = ("\x08", "\x7f")
_WHITESPACE = " \t\n\v\f\r"


def strtrim(s):
    """Strip leading and trailing ASCII whitespace."""
    return s.strip(_WHITESPACE)


def _isprint(key):
    return len(key) == 1 and " " <= key <= "~"


class LineEditor:
    """Editing state of one input line, with access to earlier lines."""

    def __init__(self, history=()):
        self._history = history
        self._buf = []
        self._i = 0
        self._j = len(history)

    def _recall(self, index):
        self._j = index
        text = self._history[index] if index < len(self._history) else ""
        self._buf = list(text[:_LINE_BYTES])
        self._i = len(self._buf)

    def feed(self, key):
        """Apply one key; return True when the line is complete."""
        buf = self._buf
        if key == "\n":
            return True
        if key == _CTRL_K:
            del buf[self._i:]
        elif key == _CTRL_D:
            if self._i < len(buf):
                del buf[self._i]
        elif key in _BACKSPACES:
            if self._i > 0:
                del buf[self._i - 1]
                self._i -= 1
        elif key in (" ", "\t"):
            if len(buf) < _LINE_BYTES:
                buf.insert(self._i, " ")
                self._i += 1
        elif _isprint(key):
            if len(buf) + 1 < _LINE_BYTES:
                buf.insert(self._i, key)
                self._i += 1
        return False

    def escape(self, code):
        """Apply the final character of an arrow-key escape sequence."""
        if code == "A":
            if self._j > 0:
                self._recall(self._j - 1)
        elif code == "B":
            if self._j < len(self._history):
                self._recall(self._j + 1)
        elif code == "C":
            self._i = min(self._i + 1, len(self._buf))
        elif code == "D":
            self._i = max(self._i - 1, 0)

    def text(self):
        """Return the current line."""
        return "".join(self._buf)

    def cursor(self):
        """Return the cursor position within the line."""
        return self._i


class Shell:
    """Reads edited lines and hands each to ``handler`` until it returns true."""

    def __init__(self, handler, terminal=None, stdin=None, stdout=None):
        if handler is None:
            raise ValueError("a line handler is required")
        self._handler = handler
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._terminal = (
            terminal if terminal is not None else Terminal(stream=self._stdout)
        )
        self.history = []

    def _write(self, text):
        self._stdout.write(text)

    def _clear(self):
        self._write("\033[0J")

    def _pos(self, row, col):
        self._write(f"\033[{row};{col}H")

    def _getchar(self):
        key = self._stdin.read(1)
        if not key:
            raise EOFError("end of input")
        return key

    def _read_int(self, terminator):
        digits = ""
        while True:
            key = self._getchar()
            if key.isdigit():
                digits += key
            elif key == terminator and digits:
                return int(digits)
            else:
                return None

    def _location(self):
        self._write("\033[6n")
        self._stdout.flush()
        while True:
            while self._getchar() != _ESC:
                pass
            if self._getchar() != "[":
                continue
            row = self._read_int(";")
            if row is None:
                continue
            col = self._read_int("R")
            if col is not None:
                return row, col

    def _draw(self, row, editor):
        self._pos(row, 1)
        self._clear()
        self._terminal.color(TermColor.BLUE)
        self._terminal.bold()
        self._write(PROMPT)
        self._terminal.reset()
        self._write(editor.text())
        self._pos(row, editor.cursor() + 1 + len(PROMPT))
        self._stdout.flush()

    def read_line(self):
        """Read one line; return it trimmed, or None if it is blank."""
        editor = LineEditor(self.history)
        row, _ = self._location()
        while True:
            self._draw(row, editor)
            key = self._getchar()
            if key == _ESC:
                self._getchar()
                editor.escape(self._getchar())
            elif key == _CTRL_L:
                self._clear()
                row = 1
                self._pos(1, 1)
            elif editor.feed(key):
                break
        self._write("\n")
        line = strtrim(editor.text())
        if not line:
            return None
        self.history.append(line)
        del self.history[:-_HISTORY_SLOTS]
        return line

    def _configure(self):
        if termios is None or not self._stdin.isatty():
            return None
        fd = self._stdin.fileno()
        saved = termios.tcgetattr(fd)
        changed = termios.tcgetattr(fd)
        changed[3] &= ~(termios.ECHO | termios.ICANON)
        changed[6][termios.VMIN] = 1
        termios.tcsetattr(fd, termios.TCSANOW, changed)
        return saved

    def _restore(self, saved):
        if saved is not None:
            termios.tcsetattr(self._stdin.fileno(), termios.TCSANOW, saved)

    def run(self):
        """Read and dispatch lines until the handler asks to stop or input ends."""
        saved = self._configure()
        try:
            while True:
                try:
                    line = self.read_line()
                except EOFError:
                    break
                if line:
                    if self._handler(line):
                        break
                    self._clear()
        finally:
            self._restore(saved)