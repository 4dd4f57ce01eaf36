"""Command-line front end: an interactive word store backed by an SCM file."""

import sys

from .avl import Avl, AvlError
from .shell import Shell, strtrim
from .term import TermColor, Terminal

__all__ = ["Commands", "usage", "greetings", "main"]

# Lines are read in chunks of at most this many characters, newline included.
_WORD_CHUNK = 255

_BANNER = (
    "\n"
    "              ___  _____ ____      \n"
    "    _________|__ \\|__  /( __ )____ \n"
    "   / ___/ ___/_/ / /_ </ __  / __ \\\n"
    "  / /__(__  ) __/___/ / /_/ / /_/ /\n"
    "  \\___/____/____/____/\\____/ .___/ \n"
    "                          /_/      \n"
)

_HELP = (
    "\n-- commands -- \n"
    "  quit          : exit the program\n"
    "  help          : prints this menu\n"
    "  info          : report info\n"
    "  list          : list words in sorted order\n"
    "  load pathname : load words from file @ 'pathname'\n"
    "  insert word   : insert 'word'\n"
    "  exists word   : check if 'word' exists\n"
    "  remove word   : remove the word from AVL tree"
    "\n"
)


def _chunks(lines):
    """Split lines the way a fixed-size line buffer would read them."""
    for line in lines:
        for start in range(0, len(line), _WORD_CHUNK):
            yield line[start:start + _WORD_CHUNK]


class Commands:
    """Interprets shell lines as commands on a tree."""

    def __init__(self, avl, out=None):
        self._avl = avl
        self._stream = out
        # (name, takes an argument, handler) in matching order.
        self._table = (
            ("quit", False, self._quit),
            ("help", False, self._help),
            ("info", False, self._info),
            ("list", False, self._list),
            ("load", True, self._load),
            ("insert", True, self._insert),
            ("remove", True, self._remove),
            ("exists", True, self._exists),
        )

    @property
    def _out(self):
        return self._stream if self._stream is not None else sys.stdout

    def _print(self, text, end="\n"):
        self._out.write(text + end)

    def dispatch(self, line):
        """Run one command line; return True when the shell should stop."""
        rest = line
        for name, takes_argument, handler in self._table:
            if line.startswith(name):
                rest = strtrim(line[len(name):])
                if takes_argument != bool(rest):
                    break
                return handler(rest)
        self._print(
            f"error: bad command/argument ({rest if rest else 'missing argument'})"
        )
        return False

    def _quit(self, _):
        return True

    def _help(self, _):
        self._print(_HELP, end="")
        return False

    def _info(self, _):
        avl = self._avl
        self._print(
            "\n-- info -- \n"
            f"  words    : {avl.items()} (total)\n"
            f"  words    : {avl.unique()} (unique)\n"
            f"  utilized : {avl.scm_utilized()} bytes\n"
            f"  capacity : {avl.scm_capacity()} bytes\n"
        )
        return False

    def _list(self, _):
        for word, count in self._avl.traverse():
            self._print(f"'{word}' x {count}")
        return False

    def _load(self, pathname):
        try:
            handle = open(pathname, "r", encoding="utf-8", errors="replace")
        except OSError:
            self._print(f"error: unable to open '{pathname}' for reading")
            return False
        with handle:
            for chunk in _chunks(handle):
                word = strtrim(chunk)
                if not word:
                    continue
                try:
                    self._avl.insert(word)
                except (AvlError, ValueError):
                    self._print(f"error: unable to load '{word}'")
                    break
        return False

    def _insert(self, word):
        try:
            self._avl.insert(word)
        except (AvlError, ValueError):
            self._print(f"error: failed to insert '{word}'")
        return False

    def _remove(self, word):
        if not self._avl.exists(word):
            self._print(f"'{word}' does not exist")
            return False
        try:
            self._avl.remove(word)
        except (AvlError, ValueError):
            self._print(f"error: failed to remove '{word}'")
        return False

    def _exists(self, word):
        count = self._avl.exists(word)
        if count:
            self._print(f"'{word}' x {count} exists")
        else:
            self._print(f"'{word}' does not exist")
        return False


def usage(name):
    """Return the usage message for a program called ``name``."""
    return (
        f"usage: {name} [options] pathname\n\n"
        "  options:\n"
        "    --truncate : clear SCM content\n"
        "    --nocolor  : do not use terminal colors\n"
        "\n"
    )


def greetings(terminal):
    """Write the start-up banner through ``terminal``."""
    out = terminal.stream
    terminal.bold()
    terminal.color(TermColor.MAGENTA)
    out.write(_BANNER)
    terminal.reset()
    terminal.color(TermColor.GREEN)
    out.write("   Storage Class Memory Manager\n\n")
    terminal.reset()
    out.flush()


def main(argv=None):
    """Parse arguments, open the tree and run the interactive shell."""
    if argv is None:
        argv = sys.argv
    name = argv[0] if argv else "scmavl"
    pathname = None
    truncate = False
    nocolor = False
    for arg in argv[1:]:
        if arg == "--truncate" and not truncate:
            truncate = True
        elif arg == "--nocolor" and not nocolor:
            nocolor = True
        elif arg == "--help":
            sys.stdout.write(usage(name))
            return 0
        elif not arg.startswith("-") and pathname is None:
            pathname = arg
        else:
            print(f"invalid command line argument {arg}")
            return 1
    if not pathname:
        sys.stdout.write(usage(name))
        return 1
    try:
        avl = Avl(pathname, truncate)
    except AvlError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    with avl:
        terminal = Terminal(nocolor)
        greetings(terminal)
        Shell(Commands(avl).dispatch, terminal).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())