"""Bundled rendering data.

- ``config/defaults.yaml``: the settings merged under user settings
- ``schemas/composer.schema.yaml``: the JSON schema of the settings

Files are read through :mod:`importlib.resources`, so they are found in
installed packages too. Parsed YAML is cached; :func:`read_yaml` hands out
copies, so callers may merge into the result freely.
"""

from __future__ import annotations

import copy
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List

import yaml

PACKAGE = "philoflow.data"

CONFIG_DIR = "config"
SCHEMAS_DIR = "schemas"


def get_data_path(folder: str, filename: str = "") -> Path:
    """Return the path of a bundled folder, or of a file in it.

    Example:
        >>> get_data_path("schemas", "composer.schema.yaml").name
        'composer.schema.yaml'
    """
    base = Path(str(resources.files(PACKAGE) / folder))
    return base / filename if filename else base


def list_data_files(folder: str, suffix: str = ".yaml") -> List[str]:
    """Return the names of the bundled files in ``folder`` with ``suffix``."""
    path = get_data_path(folder)
    if not path.is_dir():
        return []
    return sorted(p.name for p in path.iterdir() if p.name.endswith(suffix))


@lru_cache(maxsize=8)
def _load_yaml(folder: str, filename: str) -> Dict[str, Any]:
    path = get_data_path(folder, filename)
    if not path.is_file():
        raise FileNotFoundError(
            f"No bundled file {folder}/{filename} "
            f"(available: {', '.join(list_data_files(folder)) or 'none'})"
        )
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def read_yaml(folder: str, filename: str) -> Dict[str, Any]:
    """Read a bundled YAML file, returning a copy of its content.

    Raises:
        FileNotFoundError: if no such file is bundled.
    """
    return copy.deepcopy(_load_yaml(folder, filename))


__all__ = [
    "PACKAGE",
    "CONFIG_DIR",
    "SCHEMAS_DIR",
    "get_data_path",
    "list_data_files",
    "read_yaml",
]
