"""Context suppliers: add data to the rendering context before an item is rendered."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Tuple

from .context import RenderingContext

logger = logging.getLogger(__name__)


class RendererContextSupplier(ABC):
    """Abstract base class for context suppliers.

    Suppliers run once per item, after the item metadata have been set and
    before any part is rendered.
    """

    @abstractmethod
    def supply(self, context: RenderingContext) -> None:
        ...

    def get_name(self) -> str:
        return self.__class__.__name__


def parse_flag_key(key: str) -> int:
    """Parse a flag value, decimal or hexadecimal with an ``H`` prefix.

    Raises:
        ValueError: if the key is not a valid number.
    """
    key = key.strip()
    if key[:1] in ("h", "H"):
        return int(key[1:], 16)
    return int(key)


def parse_flag_entry(entry: str) -> Tuple[str, Optional[str]]:
    """Parse ``name=value`` into a pair; a bare ``name`` has no value."""
    name, sep, value = entry.partition("=")
    return name.strip(), (value if sep else None)


class FlagRendererContextSupplier(RendererContextSupplier):
    """Set or remove data entries according to the flags of the item.

    ``on`` maps flags to entries applied when the flag is set, ``off`` to
    entries applied when it is not. Each entry is ``name=value``, setting
    ``name``, or just ``name``, removing it:

        FlagRendererContextSupplier(on={"1": "alpha=one", "H10": "beta"})
    """

    def __init__(
        self,
        on: Optional[Mapping[str, str]] = None,
        off: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.on = self._parse_mappings(on or {})
        self.off = self._parse_mappings(off or {})

    @staticmethod
    def _parse_mappings(mappings: Mapping[str, str]) -> List[Tuple[int, str]]:
        return [(parse_flag_key(k), v) for k, v in mappings.items()]

    @staticmethod
    def _apply(entry: str, context: RenderingContext) -> None:
        name, value = parse_flag_entry(entry)
        if not name:
            logger.warning("Ignoring flag entry without a name: %r", entry)
            return
        if value is None:
            context.remove_data(name)
        else:
            context.set_data(name, value)

    def supply(self, context: RenderingContext) -> None:
        if context.source is None:
            return
        flags = context.source.flags
        for flag, entry in self.on:
            if flags & flag == flag:
                self._apply(entry, context)
        for flag, entry in self.off:
            if flags & flag != flag:
                self._apply(entry, context)


__all__ = [
    "RendererContextSupplier",
    "FlagRendererContextSupplier",
    "parse_flag_key",
    "parse_flag_entry",
]
