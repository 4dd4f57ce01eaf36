"""A counting AVL tree of strings whose nodes live in an SCM region.

The tree state (total items, unique items and the root reference) sits at
the base of the region; every node and every string is allocated from the
region, so the tree survives closing and reopening the backing file.
"""

import struct

from .scm import Scm, ScmError

__all__ = ["AvlError", "Avl"]

# Offset 0 always holds the tree state, so no node can ever live there.
_NIL = 0

_STATE_SIZE = 24
_NODE_SIZE = 40


class AvlError(Exception):
    """Raised when the tree cannot be opened or updated."""


class _Field:
    """A fixed-width integer stored at a constant position of a record."""

    def __init__(self, position, fmt):
        self._position = position
        self._codec = struct.Struct(fmt)

    def __get__(self, record, owner=None):
        if record is None:
            return self
        raw = record.scm.read(record.offset + self._position, self._codec.size)
        return self._codec.unpack(raw)[0]

    def __set__(self, record, value):
        record.scm.write(record.offset + self._position, self._codec.pack(value))


class _Record:
    __slots__ = ("scm", "offset")

    def __init__(self, scm, offset):
        self.scm = scm
        self.offset = offset

    def _load(self, ref):
        return None if ref == _NIL else _Node(self.scm, ref)

    @staticmethod
    def _ref(node):
        return _NIL if node is None else node.offset


class _State(_Record):
    __slots__ = ()

    items = _Field(0, "<Q")
    unique = _Field(8, "<Q")
    root_ref = _Field(16, "<Q")

    @property
    def root(self):
        return self._load(self.root_ref)

    @root.setter
    def root(self, node):
        self.root_ref = self._ref(node)


class _Node(_Record):
    __slots__ = ()

    depth = _Field(0, "<q")
    count = _Field(8, "<Q")
    item_ref = _Field(16, "<Q")
    left_ref = _Field(24, "<Q")
    right_ref = _Field(32, "<Q")

    def __eq__(self, other):
        return isinstance(other, _Node) and other.offset == self.offset

    def __hash__(self):
        return hash(self.offset)

    @property
    def item(self):
        return self.scm.read_string(self.item_ref)

    @property
    def left(self):
        return self._load(self.left_ref)

    @left.setter
    def left(self, node):
        self.left_ref = self._ref(node)

    @property
    def right(self):
        return self._load(self.right_ref)

    @right.setter
    def right(self, node):
        self.right_ref = self._ref(node)


def _delta(node):
    return -1 if node is None else node.depth


def _balance(node):
    return _delta(node.left) - _delta(node.right)


def _depth(a, b):
    return max(_delta(a), _delta(b)) + 1


def _rotate_right(node):
    root = node.left
    node.left = root.right
    root.right = node
    node.depth = _depth(node.left, node.right)
    root.depth = _depth(root.left, node)
    return root


def _rotate_left(node):
    root = node.right
    node.right = root.left
    root.left = node
    node.depth = _depth(node.left, node.right)
    root.depth = _depth(root.right, node)
    return root


def _rotate_left_right(node):
    node.left = _rotate_left(node.left)
    return _rotate_right(node)


def _rotate_right_left(node):
    node.right = _rotate_right(node.right)
    return _rotate_left(node)


def _rebalance(node):
    """Restore the AVL property at ``node`` after a removal."""
    balance = _balance(node)
    if balance > 1:
        if _balance(node.left) < 0:
            return _rotate_left_right(node)
        return _rotate_right(node)
    if balance < -1:
        if _balance(node.right) > 0:
            return _rotate_right_left(node)
        return _rotate_left(node)
    return node


def _leftmost(node):
    while node.left is not None:
        node = node.left
    return node


def _remove_min(node):
    left = node.left
    if left is None:
        return node.right
    node.left = _remove_min(left)
    node = _rebalance(node)
    node.depth = _depth(node.left, node.right)
    return node


def _check_item(item):
    if not isinstance(item, str) or not item:
        raise ValueError("item must be a non-empty string")
    if "\0" in item:
        raise ValueError("item must not contain NUL characters")


class Avl:
    """A persistent multiset of strings kept in sorted order."""

    def __init__(self, pathname, truncate=False):
        try:
            self._scm = Scm(pathname, truncate)
        except ScmError as exc:
            raise AvlError(str(exc)) from exc
        try:
            if self._scm.utilized():
                base = self._scm.mbase()
            else:
                base = self._scm.malloc(_STATE_SIZE)
                self._scm.write(base, bytes(_STATE_SIZE))
                if base != self._scm.mbase():
                    raise AvlError("tree state is not at the region base")
        except ScmError as exc:
            self._scm.close()
            raise AvlError(str(exc)) from exc
        except AvlError:
            self._scm.close()
            raise
        self._state = _State(self._scm, base)

    def close(self):
        """Persist and close the underlying region."""
        self._scm.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _new_node(self, item):
        offset = self._scm.malloc(_NODE_SIZE)
        item_ref = self._scm.strdup(item)
        node = _Node(self._scm, offset)
        self._scm.write(offset, bytes(_NODE_SIZE))
        node.item_ref = item_ref
        node.count = 1
        return node

    def _update(self, root, item):
        state = self._state
        if root is None:
            node = self._new_node(item)
            state.items += 1
            state.unique += 1
            return node
        current = root.item
        if item == current:
            root.count += 1
            state.items += 1
        elif item < current:
            root.left = self._update(root.left, item)
            if abs(_balance(root)) > 1:
                if item < root.left.item:
                    root = _rotate_right(root)
                else:
                    root = _rotate_left_right(root)
        else:
            root.right = self._update(root.right, item)
            if abs(_balance(root)) > 1:
                if item > root.right.item:
                    root = _rotate_left(root)
                else:
                    root = _rotate_right_left(root)
        root.depth = _depth(root.left, root.right)
        return root

    def _remove_node(self, node, item):
        if node is None:
            return None
        state = self._state
        current = node.item
        if item == current:
            if node.count > 1:
                node.count -= 1
                state.items -= 1
                return node
            left, right = node.left, node.right
            if left is None or right is None:
                state.items -= 1
                state.unique -= 1
                return left if left is not None else right
            minimum = _leftmost(right)
            node.item_ref = self._scm.strdup(minimum.item)
            node.count = minimum.count
            node.right = _remove_min(right)
            state.items -= 1
            state.unique -= 1
        elif item < current:
            node.left = self._remove_node(node.left, item)
        else:
            node.right = self._remove_node(node.right, item)
        node = _rebalance(node)
        node.depth = _depth(node.left, node.right)
        return node

    def insert(self, item):
        """Add one occurrence of ``item``."""
        _check_item(item)
        try:
            root = self._update(self._state.root, item)
        except ScmError as exc:
            raise AvlError(f"failed to insert {item!r}: {exc}") from exc
        self._state.root = root

    def remove(self, item):
        """Remove one occurrence of ``item``; absent items are ignored."""
        _check_item(item)
        root = self._state.root
        if root is None:
            raise AvlError("AVL tree is empty")
        try:
            self._state.root = self._remove_node(root, item)
        except ScmError as exc:
            raise AvlError(f"failed to remove {item!r}: {exc}") from exc

    def exists(self, item):
        """Return how many times ``item`` occurs (0 when absent)."""
        _check_item(item)
        node = self._state.root
        while node is not None:
            current = node.item
            if item == current:
                return node.count
            node = node.left if item < current else node.right
        return 0

    def traverse(self):
        """Yield ``(item, count)`` pairs in ascending order."""
        stack = []
        node = self._state.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.item, node.count
            node = node.right

    def items(self):
        """Return the total number of stored occurrences."""
        return self._state.items

    def unique(self):
        """Return the number of distinct items."""
        return self._state.unique

    def scm_utilized(self):
        """Return the bytes of the region in use."""
        return self._scm.utilized()

    def scm_capacity(self):
        """Return the total bytes of the region."""
        return self._scm.capacity()