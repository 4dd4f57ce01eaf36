import io
import sys

import pytest

from scmavl.avl import Avl
from scmavl.cli import Commands, greetings, main, usage
from scmavl.system import page_size
from scmavl.term import Terminal


@pytest.fixture
def backing(tmp_path):
    path = tmp_path / "store.scm"
    path.write_bytes(bytes(page_size() * 4))
    return path


@pytest.fixture
def session(backing):
    out = io.StringIO()
    avl = Avl(str(backing), True)
    yield Commands(avl, out), avl, out
    avl.close()


def test_insert_then_exists(session):
    commands, _, out = session
    assert commands.dispatch("insert apple") is False
    commands.dispatch("exists apple")
    assert out.getvalue() == "'apple' x 1 exists\n"


def test_exists_missing(session):
    commands, _, out = session
    commands.dispatch("exists pear")
    assert out.getvalue() == "'pear' does not exist\n"


def test_quit_stops(session):
    commands, _, out = session
    assert commands.dispatch("quit") is True
    assert out.getvalue() == ""


def test_argument_to_plain_command_is_error(session):
    commands, _, out = session
    assert commands.dispatch("quit now") is False
    assert out.getvalue() == "error: bad command/argument (now)\n"


def test_missing_argument(session):
    commands, _, out = session
    commands.dispatch("insert")
    assert out.getvalue() == "error: bad command/argument (missing argument)\n"


def test_unknown_command(session):
    commands, _, out = session
    commands.dispatch("bogus")
    assert out.getvalue() == "error: bad command/argument (bogus)\n"


def test_list_sorted_with_counts(session):
    commands, _, out = session
    for word in ("b", "a", "b"):
        commands.dispatch(f"insert {word}")
    commands.dispatch("list")
    assert out.getvalue() == "'a' x 1\n'b' x 2\n"


def test_remove(session):
    commands, avl, out = session
    commands.dispatch("insert kiwi")
    commands.dispatch("insert kiwi")
    commands.dispatch("remove kiwi")
    assert avl.exists("kiwi") == 1
    commands.dispatch("remove kiwi")
    assert avl.exists("kiwi") == 0
    commands.dispatch("remove kiwi")
    assert out.getvalue() == "'kiwi' does not exist\n"


def test_load_words(session, tmp_path):
    commands, avl, out = session
    words = tmp_path / "words.txt"
    words.write_text("  alpha \n\nbeta\nalpha\n\t\n")
    commands.dispatch(f"load {words}")
    assert avl.exists("alpha") == 2
    assert avl.exists("beta") == 1
    assert avl.items() == 3
    assert out.getvalue() == ""


def test_load_splits_long_lines(session, tmp_path):
    commands, avl, _ = session
    words = tmp_path / "long.txt"
    words.write_text("x" * 300 + "\n")
    commands.dispatch(f"load {words}")
    assert avl.unique() == 2
    assert sum(len(word) for word, _ in avl.traverse()) == 300


def test_load_missing_file(session, tmp_path):
    commands, _, out = session
    missing = tmp_path / "absent.txt"
    commands.dispatch(f"load {missing}")
    assert out.getvalue() == f"error: unable to open '{missing}' for reading\n"


def test_info_reports_counts(session):
    commands, avl, out = session
    for word in ("one", "two", "one"):
        commands.dispatch(f"insert {word}")
    commands.dispatch("info")
    text = out.getvalue()
    assert "words    : 3 (total)" in text
    assert "words    : 2 (unique)" in text
    assert f"capacity : {avl.scm_capacity()} bytes" in text
    assert f"utilized : {avl.scm_utilized()} bytes" in text


def test_help_lists_commands(session):
    commands, _, out = session
    assert commands.dispatch("help") is False
    text = out.getvalue()
    assert "load pathname : load words from file @ 'pathname'" in text
    assert "remove word   : remove the word from AVL tree\n" in text


def test_usage_names_program():
    text = usage("prog")
    assert text.startswith("usage: prog [options] pathname\n")
    assert "--truncate : clear SCM content" in text


def test_greetings_without_color():
    out = io.StringIO()
    greetings(Terminal(True, out))
    text = out.getvalue()
    assert "Storage Class Memory Manager" in text
    assert "\033[" not in text


def test_greetings_with_color():
    out = io.StringIO()
    greetings(Terminal(False, out))
    assert "\033[35m" in out.getvalue()
    assert "\033[32m" in out.getvalue()


def test_main_help(capsys):
    assert main(["prog", "--help"]) == 0
    assert capsys.readouterr().out == usage("prog")


def test_main_without_pathname(capsys):
    assert main(["prog"]) == 1
    assert capsys.readouterr().out == usage("prog")


def test_main_invalid_argument(capsys):
    assert main(["prog", "--bogus"]) == 1
    assert "invalid command line argument --bogus" in capsys.readouterr().out


def test_main_repeated_flag_invalid(capsys, backing):
    assert main(["prog", "--truncate", "--truncate", str(backing)]) == 1
    assert "invalid command line argument --truncate" in capsys.readouterr().out


def test_main_unopenable_file(tmp_path):
    assert main(["prog", str(tmp_path / "missing.scm")]) == 1


def test_main_session_persists(monkeypatch, capsys, backing):
    script = "\x1b[1;1Rinsert apple\n\x1b[1;1Rinsert apple\n\x1b[1;1Rquit\n"
    monkeypatch.setattr(sys, "stdin", io.StringIO(script))
    assert main(["prog", "--truncate", "--nocolor", str(backing)]) == 0
    assert "Storage Class Memory Manager" in capsys.readouterr().out
    with Avl(str(backing)) as avl:
        assert avl.exists("apple") == 2
        assert avl.items() == 2
        assert avl.unique() == 1