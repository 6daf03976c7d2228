"""Utility helpers: settings merging and file I/O."""
from __future__ import annotations

from .file_io import PathLike, ensure_parent_dir, read_document, write_text_atomic
from .merge import deep_merge, merge_lists

__all__ = [
    "PathLike",
    "deep_merge",
    "ensure_parent_dir",
    "merge_lists",
    "read_document",
    "write_text_atomic",
]
