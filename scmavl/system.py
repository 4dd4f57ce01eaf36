"""Small system helpers: sleeping, file removal, page size and alignment."""

import mmap
import os
import time

__all__ = ["us_sleep", "file_delete", "page_size", "memory_align"]


def us_sleep(us):
    """Sleep for ``us`` microseconds."""
    if us < 0:
        raise ValueError("sleep duration must not be negative")
    time.sleep(us / 1_000_000)


def file_delete(pathname):
    """Remove ``pathname`` if it names a file, ignoring any failure."""
    if not pathname:
        return
    try:
        os.unlink(pathname)
    except OSError:
        pass


def page_size():
    """Return the size of a virtual memory page in bytes."""
    try:
        size = os.sysconf("SC_PAGESIZE")
    except (AttributeError, ValueError, OSError):
        size = mmap.PAGESIZE
    if size <= 0:
        raise OSError("unable to determine the page size")
    return size


def memory_align(offset, n):
    """Round ``offset`` up to the next multiple of ``n``."""
    if n <= 0:
        raise ValueError("alignment must be positive")
    remainder = offset % n
    if remainder:
        offset += n - remainder
    return offset