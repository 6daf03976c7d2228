"""Coordinates, flattening and text trees.

- location: token-based coordinates and span relations
- ranges: annotated ranges and their merging into consecutive segments
- flattener: base text + layers to annotated ranges
- tree: linear trees of exported segments
- filters: tree reshaping before rendering
"""
from __future__ import annotations

from .filters import BlockLinearTextTreeFilter, MergeLinearTextTreeFilter, TextTreeFilter
from .flattener import TextPartFlattener, TokenTextPartFlattener
from .location import SpanRelation, TextSpan, TokenTextLocation, TokenTextPoint, relate_bounds
from .ranges import (
    AnnotatedTextRange,
    build_fragment_id,
    get_consecutive_ranges,
    get_fragment_index,
    get_fragment_layer,
    get_fragment_prefix,
    validate_nesting,
)
from .tree import (
    F_EOL_TAIL,
    ExportedSegment,
    TextTreeBuilder,
    TextTreeNode,
    build_tree_from_ranges,
    is_layer_selected,
)

__all__ = [
    "SpanRelation",
    "TextSpan",
    "TokenTextPoint",
    "TokenTextLocation",
    "relate_bounds",
    "AnnotatedTextRange",
    "build_fragment_id",
    "get_consecutive_ranges",
    "get_fragment_index",
    "get_fragment_layer",
    "get_fragment_prefix",
    "validate_nesting",
    "TextPartFlattener",
    "TokenTextPartFlattener",
    "F_EOL_TAIL",
    "ExportedSegment",
    "TextTreeNode",
    "TextTreeBuilder",
    "build_tree_from_ranges",
    "is_layer_selected",
    "TextTreeFilter",
    "MergeLinearTextTreeFilter",
    "BlockLinearTextTreeFilter",
]
