"""A bump allocator over a memory-mapped backing file.

The first ``META_SIZE`` bytes of the file hold the utilised size, a
signature and a checksum. Offsets handed out by :class:`Scm` are relative
to the data region that follows the metadata, so offset 0 is the base.
"""

import mmap
import os
import stat
import struct
import sys

from .system import page_size

__all__ = ["META_SIZE", "SCM_SIGNATURE", "ScmError", "Scm"]

META_SIZE = 24
SCM_SIGNATURE = 0xDEEDBEED

_META = struct.Struct("<QQQ")
_ZERO_CHUNK = 4096


class ScmError(Exception):
    """Raised when the storage region cannot be opened or used."""


def _checksum(size, signature):
    return size ^ signature


class Scm:
    """A storage-class-memory region backed by a file."""

    def __init__(self, pathname, truncate=False):
        self._file = None
        self._map = None
        self._size = 0
        self._length = 0
        try:
            self._file = open(pathname, "r+b")
        except OSError as exc:
            raise ScmError(f"failed to open {pathname!r}: {exc}") from exc
        try:
            self._open(truncate)
        except BaseException:
            self._release()
            raise

    def _open(self, truncate):
        fd = self._file.fileno()
        st = os.fstat(fd)
        if not stat.S_ISREG(st.st_mode):
            raise ScmError("backing file is not a regular file")
        page = page_size()
        self._length = st.st_size // page * page
        if not self._length:
            raise ScmError("backing file is smaller than one page")
        if truncate:
            self._zero(st.st_size)
        try:
            self._map = mmap.mmap(fd, self._length)
        except (OSError, ValueError) as exc:
            raise ScmError(f"mmap failed: {exc}") from exc
        if truncate:
            self._initialize_metadata()
        else:
            self._load_metadata()

    def _zero(self, size):
        chunk = bytes(_ZERO_CHUNK)
        self._file.seek(0)
        written = 0
        try:
            while written < size:
                written += self._file.write(chunk)
            self._file.flush()
        except OSError as exc:
            raise ScmError(f"failed to clear backing file: {exc}") from exc

    def _initialize_metadata(self):
        self._size = 0
        _META.pack_into(self._map, 0, 0, SCM_SIGNATURE, _checksum(0, SCM_SIGNATURE))

    def _load_metadata(self):
        size, signature, checksum = _META.unpack_from(self._map, 0)
        if signature != SCM_SIGNATURE:
            print("error: invalid SCM signature", file=sys.stderr)
            return
        if checksum != _checksum(size, signature):
            print("error: metadata checksum validation failed", file=sys.stderr)
            return
        self._size = size

    def _store_metadata(self):
        _, signature, _ = _META.unpack_from(self._map, 0)
        _META.pack_into(
            self._map, 0, self._size, signature, _checksum(self._size, signature)
        )

    def _release(self):
        if self._map is not None:
            self._map.close()
            self._map = None
        if self._file is not None:
            self._file.close()
            self._file = None

    def _require_open(self):
        if self._map is None:
            raise ScmError("region is closed")

    def _check_range(self, offset, n):
        if offset < 0 or n < 0 or offset + n > self._length - META_SIZE:
            raise ScmError(f"range [{offset}, {offset + n}) is outside the region")

    def close(self):
        """Persist the metadata, flush and unmap the region."""
        if self._map is not None:
            self._store_metadata()
            self._map.flush()
        self._release()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def malloc(self, n):
        """Reserve ``n`` bytes and return their offset."""
        self._require_open()
        if n < 0:
            raise ValueError("allocation size must not be negative")
        if self._size + n > self._length - META_SIZE:
            raise ScmError(f"out of space allocating {n} bytes")
        offset = self._size
        self._size += n
        return offset

    def strdup(self, s):
        """Store ``s`` NUL-terminated and return its offset."""
        data = s.encode("utf-8") + b"\0"
        offset = self.malloc(len(data))
        self.write(offset, data)
        return offset

    def read(self, offset, n):
        """Return ``n`` bytes starting at ``offset``."""
        self._require_open()
        self._check_range(offset, n)
        start = META_SIZE + offset
        return bytes(self._map[start:start + n])

    def write(self, offset, data):
        """Write ``data`` starting at ``offset``."""
        self._require_open()
        data = bytes(data)
        self._check_range(offset, len(data))
        start = META_SIZE + offset
        self._map[start:start + len(data)] = data

    def read_string(self, offset):
        """Return the NUL-terminated string stored at ``offset``."""
        self._require_open()
        self._check_range(offset, 0)
        start = META_SIZE + offset
        end = self._map.find(b"\0", start, self._length)
        if end < 0:
            raise ScmError(f"unterminated string at offset {offset}")
        return self._map[start:end].decode("utf-8")

    def mbase(self):
        """Return the base offset of the data region."""
        self._require_open()
        return 0

    def utilized(self):
        """Return the number of bytes allocated so far."""
        return self._size

    def capacity(self):
        """Return the size of the mapped region in bytes."""
        return self._length