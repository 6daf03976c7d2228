"""Composition: the item composers and their sources and sinks."""
from __future__ import annotations

from .composer import (
    HEAD_FLOW,
    M_ITEM_FACET,
    M_ITEM_FLAGS,
    M_ITEM_GROUP,
    M_ITEM_ID,
    M_ITEM_NR,
    M_ITEM_TITLE,
    TAIL_FLOW,
    ItemComposer,
    sanitize_file_name,
)
from .composers import PlainTextItemComposer, TeiItemComposer, TeiOffItemComposer
from .io import DirectoryFlowSink, FlowSink, MemoryFlowSink, iter_items, load_items

__all__ = [
    "HEAD_FLOW",
    "TAIL_FLOW",
    "M_ITEM_ID",
    "M_ITEM_TITLE",
    "M_ITEM_FACET",
    "M_ITEM_GROUP",
    "M_ITEM_FLAGS",
    "M_ITEM_NR",
    "ItemComposer",
    "TeiOffItemComposer",
    "TeiItemComposer",
    "PlainTextItemComposer",
    "sanitize_file_name",
    "FlowSink",
    "MemoryFlowSink",
    "DirectoryFlowSink",
    "iter_items",
    "load_items",
]
