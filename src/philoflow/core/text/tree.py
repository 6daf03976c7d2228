"""Text tree of exported segments.

The tree built from an item is *linear*: a blank root node, whose only child
is the first segment, whose only child is the second one, and so on. Filters
may reshape it, and renderers walk it in document order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence, Set, Tuple

from philoflow.core.model import Item, LayerPart, Part

from .flattener import TextPartFlattener
from .ranges import AnnotatedTextRange, get_consecutive_ranges, get_fragment_prefix

logger = logging.getLogger(__name__)

# Feature set on segments which end a line of the source text
F_EOL_TAIL = "eol-tail"


@dataclass
class ExportedSegment:
    """A segment of text with its features, tags and payloads.

    Payloads of segments built from items are :class:`AnnotatedTextRange`
    instances listing the fragments covering the segment.
    """

    text: str = ""
    features: List[Tuple[str, str]] = field(default_factory=list)
    tags: Set[str] = field(default_factory=set)
    payloads: List[object] = field(default_factory=list)
    source_id: int = 0
    type: Optional[str] = None

    def add_feature(self, name: str, value: str, unique: bool = False) -> None:
        """Add a feature, never duplicating an equal name/value pair.

        When ``unique`` is true, other features with the same name are removed.
        """
        if (name, value) in self.features:
            return
        if unique:
            self.features = [f for f in self.features if f[0] != name]
        self.features.append((name, value))

    def remove_features(self, name: Optional[str] = None, value: Optional[str] = None) -> None:
        if name is None:
            self.features = []
            return
        self.features = [f for f in self.features
                         if f[0] != name or (value is not None and f[1] != value)]

    def has_feature(self, name: str, value: Optional[str] = None) -> bool:
        return any(f[0] == name and (value is None or f[1] == value) for f in self.features)

    def get_feature(self, name: str) -> Optional[str]:
        for f_name, f_value in self.features:
            if f_name == name:
                return f_value
        return None

    @property
    def first_range(self) -> Optional[AnnotatedTextRange]:
        for payload in self.payloads:
            if isinstance(payload, AnnotatedTextRange):
                return payload
        return None

    @property
    def fragment_ids(self) -> List[str]:
        """All the fragment ids in the payload ranges, without duplicates."""
        ids: List[str] = []
        for payload in self.payloads:
            if isinstance(payload, AnnotatedTextRange):
                ids.extend(f for f in payload.fragment_ids if f not in ids)
        return ids

    def get_fragment_id_with_prefix(self, prefix: str) -> Optional[str]:
        return next((f for f in self.fragment_ids if f.startswith(prefix)), None)

    def clone(self) -> "ExportedSegment":
        return ExportedSegment(
            text=self.text,
            features=list(self.features),
            tags=set(self.tags),
            payloads=list(self.payloads),
            source_id=self.source_id,
            type=self.type,
        )

    @staticmethod
    def merge_segments(source: Optional["ExportedSegment"],
                       target: Optional["ExportedSegment"]) -> Optional["ExportedSegment"]:
        """Merge ``source`` into ``target`` (text, features, tags, payloads)."""
        if source is None:
            return target
        if target is None:
            return source
        target.text += source.text
        for name, value in source.features:
            target.add_feature(name, value)
        target.tags |= source.tags
        target.payloads.extend(source.payloads)
        return target

    def __str__(self) -> str:
        text = f"#{self.source_id}: {self.text}" if self.source_id else self.text
        if self.features:
            text += " (" + ", ".join(f"{n}={v!r}" for n, v in self.features) + ")"
        if self.tags:
            text += " [" + ",".join(sorted(self.tags)) + "]"
        return text


class TextTreeNode:
    """A node in a text tree."""

    def __init__(self, id: str = "", data: Optional[ExportedSegment] = None, label: str = "") -> None:
        self.id = id
        self.label = label
        self.data = data
        self.parent: Optional[TextTreeNode] = None
        self.children: List[TextTreeNode] = []

    @property
    def first_child(self) -> Optional["TextTreeNode"]:
        return self.children[0] if self.children else None

    def add_child(self, child: "TextTreeNode") -> "TextTreeNode":
        child.parent = self
        self.children.append(child)
        return child

    def traverse(self, visitor: Callable[["TextTreeNode"], bool]) -> None:
        """Visit this node and its descendants depth-first, in order.

        Traversal stops as soon as the visitor returns false. The walk is
        iterative so that long linear trees do not hit the recursion limit.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            if not visitor(node):
                return
            stack.extend(reversed(node.children))

    def iter_nodes(self) -> Iterator["TextTreeNode"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_segments(self) -> Iterator[ExportedSegment]:
        """Yield the segments of all the nodes with data, in document order."""
        for node in self.iter_nodes():
            if node.data is not None:
                yield node.data

    def clone(self, deep: bool = True) -> "TextTreeNode":
        """Copy this node; with ``deep`` also copy its descendants."""
        copy = TextTreeNode(self.id, self.data.clone() if self.data else None, self.label)
        if deep:
            # iterative copy keeps long linear trees safe
            pairs = [(self, copy)]
            while pairs:
                source, target = pairs.pop()
                for child in source.children:
                    child_copy = TextTreeNode(child.id, child.data.clone() if child.data else None,
                                              child.label)
                    target.add_child(child_copy)
                    pairs.append((child, child_copy))
        return copy

    def get_text(self) -> str:
        """Return the text of all the segments including their line ends."""
        chunks = []
        for segment in self.iter_segments():
            chunks.append(segment.text)
            chunks.append(segment.get_feature(F_EOL_TAIL) or "")
        return "".join(chunks)

    def __repr__(self) -> str:
        return f"TextTreeNode({self.id!r}, {self.label!r})"


def _map_non_printables(text: str) -> str:
    return text.replace("\n", "␊").replace("\r", "␍").replace("\t", "␉")


def build_tree_from_ranges(ranges: Sequence[AnnotatedTextRange], text: str) -> TextTreeNode:
    """Build a linear tree from consecutive ranges covering ``text``.

    Line feeds are not kept in segment text: the segment ending a line gets
    the :data:`F_EOL_TAIL` feature instead. An empty line yields a segment
    with empty text and the feature.
    """
    root = TextTreeNode()
    node = root
    n = 0
    for r in ranges:
        if r.text is None:
            r.assign_text(text)
        if r.text == "\n":
            if node is not root and node.data is not None and not node.data.has_feature(F_EOL_TAIL):
                node.data.add_feature(F_EOL_TAIL, "\n")
                continue
            r = AnnotatedTextRange(r.start, r.start - 1, list(r.fragment_ids), "")
            eol = True
        else:
            eol = False
        n += 1
        child = TextTreeNode(str(n), ExportedSegment(r.text or "", payloads=[r]),
                             label=_map_non_printables(r.text or ""))
        if eol:
            child.data.add_feature(F_EOL_TAIL, "\n")
        node = node.add_child(child)
    return root


def is_layer_selected(part: Part, layer_type_ids: Optional[Set[str]]) -> bool:
    """Tell whether a layer part matches a selection of type ids (empty selects all)."""
    if not layer_type_ids:
        return True
    return bool({part.type_id, part.role_id, part.renderer_key} & layer_type_ids)


class TextTreeBuilder:
    """Builds the linear text tree of an item through a flattener."""

    def __init__(self, flattener: TextPartFlattener) -> None:
        self.flattener = flattener

    @staticmethod
    def get_fragment_prefix_for(layer_part: Part) -> str:
        return get_fragment_prefix(layer_part.type_id, layer_part.role_id)

    def select_layers(self, item: Item, layer_type_ids: Optional[Set[str]] = None) -> List[Part]:
        """Return the item's layers to flatten.

        When ``layer_type_ids`` is set, only layers whose type id, role id
        or ``type:role`` key is listed are selected.
        """
        layers = [p for p in item.get_layer_parts() if isinstance(p, LayerPart)]
        if layer_type_ids:
            layers = [p for p in layers if is_layer_selected(p, layer_type_ids)]
        return layers

    def build(self, item: Item, layer_type_ids: Optional[Set[str]] = None) -> Optional[TextTreeNode]:
        """Build the text tree of an item, or return None when it has no text."""
        text_part = item.get_text_part()
        if text_part is None:
            logger.debug("Item %s has no base text", item.id)
            return None

        layers = self.select_layers(item, layer_type_ids)
        text, ranges = self.flattener.flatten(text_part, layers)

        breaks = set()
        for i, c in enumerate(text):
            if c == "\n":
                breaks.update((i, i + 1))
        merged = get_consecutive_ranges(0, len(text) - 1, ranges, breaks)
        for r in merged:
            r.assign_text(text)

        logger.debug("Item %s: %d fragments, %d segments", item.id, len(ranges), len(merged))
        return build_tree_from_ranges(merged, text)


__all__ = [
    "F_EOL_TAIL",
    "ExportedSegment",
    "TextTreeNode",
    "TextTreeBuilder",
    "build_tree_from_ranges",
    "is_layer_selected",
]
