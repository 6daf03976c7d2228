"""Item sources and flow sinks around a composition run."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Protocol, runtime_checkable

from philoflow.core.model import Item, item_from_dict
from philoflow.core.utils import PathLike, read_document, write_text_atomic

from .composer import sanitize_file_name

logger = logging.getLogger(__name__)


def iter_items(data: Any) -> Iterator[Item]:
    """Yield items from their dictionary form.

    ``data`` is either a list of items or a mapping with an ``items`` list.

    Raises:
        ValueError: for any other shape.
    """
    if isinstance(data, Mapping):
        data = data.get("items")
    if not isinstance(data, list):
        raise ValueError("Expected a list of items")
    for entry in data:
        if not isinstance(entry, Mapping):
            raise ValueError(f"Invalid item entry: {entry!r}")
        yield item_from_dict(entry)


def load_items(path: PathLike) -> List[Item]:
    """Load items from a JSON or YAML file, in file order."""
    items = list(iter_items(read_document(path)))
    logger.debug("Loaded %d items from %s", len(items), path)
    return items


@runtime_checkable
class FlowSink(Protocol):
    """Consumer of the flows produced by a composition run."""

    def write_flows(self, flows: Mapping[str, str]) -> None:
        ...


class MemoryFlowSink:
    """Keep flows in memory, accumulating over several runs."""

    def __init__(self) -> None:
        self.flows: Dict[str, str] = {}

    def write_flows(self, flows: Mapping[str, str]) -> None:
        for name, content in flows.items():
            self.flows[name] = self.flows.get(name, "") + content


class DirectoryFlowSink:
    """Write each flow to ``<directory>/<name><extension>`` (UTF-8).

    Flow names are sanitized to be valid file names.
    """

    def __init__(self, directory: PathLike, extension: str = ".xml") -> None:
        self.directory = Path(directory)
        self.extension = extension

    def get_path(self, name: str) -> Path:
        return self.directory / f"{sanitize_file_name(name, '_')}{self.extension}"

    def write_flows(self, flows: Mapping[str, str]) -> None:
        for name, content in flows.items():
            path = self.get_path(name)
            write_text_atomic(path, content)
            logger.info("Wrote flow %s to %s", name, path)


__all__ = ["iter_items", "load_items", "FlowSink", "MemoryFlowSink", "DirectoryFlowSink"]
