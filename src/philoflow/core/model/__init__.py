"""Data model: items, parts, base text and annotation layers."""
from __future__ import annotations

from .items import BASE_TEXT_ROLE_ID, FR_PREFIX, GenericPart, Item, Part, new_id
from .layers import (
    ApparatusEntry,
    ApparatusEntryType,
    ApparatusFragment,
    CommentFragment,
    Fragment,
    LayerPart,
)
from .serialization import FRAGMENT_TYPES, PART_TYPES, item_from_dict, part_from_dict
from .text import TextLine, TextPart

__all__ = [
    "BASE_TEXT_ROLE_ID",
    "FR_PREFIX",
    "Item",
    "Part",
    "GenericPart",
    "new_id",
    "TextLine",
    "TextPart",
    "Fragment",
    "CommentFragment",
    "ApparatusEntry",
    "ApparatusEntryType",
    "ApparatusFragment",
    "LayerPart",
    "PART_TYPES",
    "FRAGMENT_TYPES",
    "part_from_dict",
    "item_from_dict",
]
