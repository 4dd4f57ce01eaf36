# scmavl

`scmavl` keeps a counted set of words in a balanced (AVL) tree that lives
inside a file. The file is memory-mapped and used as a small persistent heap,
so the tree is still there the next time you open it.

## Installation

```
pip install .
```

## Preparing a backing file

The backing file must already exist. It has to be a regular file at least one
memory page in size. Only whole pages are mapped; any trailing partial page is
ignored:

```
dd if=/dev/zero of=words.scm bs=4096 count=256
```

The first 24 bytes of the mapped region hold the number of bytes in use, a
signature and a checksum. If the signature or checksum does not match when the
file is opened without truncation, an error is printed to standard error and
the region is treated as empty.

## The interactive shell

```
scmavl [--truncate] [--nocolor] pathname
```

* `--truncate` zeroes the whole file before the shell starts.
* `--nocolor` turns off terminal colours.
* `--help` prints the usage text.

Invalid arguments, a missing pathname or a file that cannot be opened make the
command exit with status 1.

The shell accepts these commands:

| command          | effect                                  |
|------------------|-----------------------------------------|
| `quit`           | save and exit                           |
| `help`           | show the command list                   |
| `info`           | total and unique word counts, bytes used and available |
| `list`           | every word with its count, in sorted order |
| `load pathname`  | insert each non-blank line of a file (lines are read in pieces of at most 255 characters, each trimmed) |
| `insert word`    | insert a word, or add one to its count  |
| `remove word`    | take one away from a word's count; a word that reaches zero is removed |
| `exists word`    | show a word's count                     |

Commands that take no argument reject one, and commands that need one reject
a missing argument, printing `error: bad command/argument (...)`.

The shell expects an ANSI terminal: it asks the terminal for the cursor
position before each line. The arrow keys move through the line and through
the command history (the last 96 non-blank lines). Ctrl-K cuts the line at the
cursor, Ctrl-D deletes under the cursor, Backspace deletes before it, and
Ctrl-L clears the screen. The shell also stops at end of input.

## Library use

```python
from scmavl.avl import Avl

with Avl("words.scm", truncate=True) as tree:
    tree.insert("apple")
    tree.insert("apple")
    tree.insert("banana")
    tree.remove("banana")
    print(tree.exists("apple"))      # 2
    print(list(tree.traverse()))     # [('apple', 2)]
    print(tree.items(), tree.unique())  # 2 1
```

Open the same file again without `truncate` to get the stored tree back.
Items must be non-empty strings without NUL characters; anything else raises
`ValueError`. `Avl.remove` ignores absent items but raises `AvlError` when the
tree is empty. `Avl.scm_utilized()` and `Avl.scm_capacity()` report how much
of the region is in use. When the region is full, `insert` raises `AvlError`.

The storage layer is also available on its own as `scmavl.scm.Scm`, a
bump allocator over the mapped file with `malloc`, `strdup`, `read`, `write`
and `read_string`; offsets are relative to the data area after the metadata.
It raises `ScmError` if the file cannot be used or a request does not fit.

`scmavl.term.Terminal` writes ANSI colour, bold and reset sequences unless
colour is disabled, and `scmavl.shell` provides the `LineEditor` and `Shell`
classes the command uses.

## Limitations

The region is only ever allocated from: removing words does not reclaim space,
and removing a word whose node has two children stores another copy of a
string. A file that fills up has to be truncated to be reused.