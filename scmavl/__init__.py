"""Persistent word-count AVL tree in a file-backed memory region, with an interactive shell."""

__version__ = "0.1.0"
__all__ = ["__version__"]