"""File I/O helpers.

- reading JSON and YAML documents with consistent errors
- atomic text writes (temp file in the target directory, fsync, replace)
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]

YAML_SUFFIXES = (".yml", ".yaml")


def ensure_parent_dir(path: Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def read_document(path: PathLike) -> Any:
    """Read a JSON or YAML document, chosen by the file suffix.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file cannot be parsed.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"Invalid document {path}: {exc}") from exc


def write_text_atomic(path: PathLike, content: str, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` atomically, creating parent directories."""
    path = Path(path)
    ensure_parent_dir(path)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding=encoding, dir=str(path.parent), delete=False, newline=""
        ) as f:
            tmp_path = Path(f.name)
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp_path), str(path))
        tmp_path = None
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()


__all__ = ["PathLike", "ensure_parent_dir", "read_document", "write_text_atomic"]
