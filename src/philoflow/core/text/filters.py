"""Filters reshaping a text tree before it is rendered."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import FrozenSet, Iterable, Optional

from philoflow.core.model import Item

from .tree import F_EOL_TAIL, ExportedSegment, TextTreeNode


class TextTreeFilter(ABC):
    """Abstract base class for text tree filters.

    Filters never change the received tree: they return either it or a new
    tree.
    """

    @abstractmethod
    def apply(self, tree: TextTreeNode, item: Optional[Item] = None) -> TextTreeNode:
        """Apply this filter to the tree rooted at ``tree``."""
        ...

    def get_name(self) -> str:
        """Get filter name for logging/debugging."""
        return self.__class__.__name__


class MergeLinearTextTreeFilter(TextTreeFilter):
    """Merge consecutive nodes of a linear tree covered by the same fragments.

    Nodes are merged when they have the same set of fragment ids and the
    same values for the selected features (all features when none are
    selected, except the line end). A node ending a line is never merged
    with the following one.
    """

    def __init__(self, features: Optional[Iterable[str]] = None) -> None:
        self.features = set(features) if features is not None else None

    def _merge_key(self, segment: Optional[ExportedSegment]) -> FrozenSet[str]:
        if segment is None:
            return frozenset()
        keys = {f"@{frid}" for frid in segment.fragment_ids}
        for name, value in segment.features:
            if name == F_EOL_TAIL:
                continue
            if self.features is None or name in self.features:
                keys.add(f"{name}={value}")
        return frozenset(keys)

    def apply(self, tree: TextTreeNode, item: Optional[Item] = None) -> TextTreeNode:
        if tree.first_child is None:
            return tree

        root = tree.clone(deep=False)
        target = root.add_child(tree.first_child.clone(deep=False))
        current = tree.first_child.first_child

        while current is not None:
            can_merge = (
                target.data is not None
                and not target.data.has_feature(F_EOL_TAIL)
                and self._merge_key(target.data) == self._merge_key(current.data)
            )
            if can_merge:
                target.label += current.label
                ExportedSegment.merge_segments(current.data.clone() if current.data else None,
                                               target.data)
            else:
                target = target.add_child(current.clone(deep=False))
            current = current.first_child

        # renumber the merged nodes
        for n, node in enumerate(root.iter_nodes()):
            if node is not root:
                node.id = str(n)
        return root


class BlockLinearTextTreeFilter(TextTreeFilter):
    """Split the nodes of a linear tree at embedded line feeds.

    Each piece but the last ends a line and gets the line end feature, so
    that renderers can open a new block after it; the piece texts keep no
    line feed. Trees built from items are already split this way, while
    trees built otherwise (or reshaped by other filters) may not be.
    """

    def apply(self, tree: TextTreeNode, item: Optional[Item] = None) -> TextTreeNode:
        root = tree.clone(deep=False)
        target = root
        for node in tree.iter_nodes():
            if node is tree:
                continue
            segment = node.data
            if segment is None or "\n" not in segment.text:
                target = target.add_child(node.clone(deep=False))
                continue
            lines = segment.text.split("\n")
            for i, line in enumerate(lines):
                piece = segment.clone()
                piece.text = line
                if i < len(lines) - 1:
                    piece.remove_features(F_EOL_TAIL)
                    piece.add_feature(F_EOL_TAIL, "\n")
                target = target.add_child(TextTreeNode("", piece, line))

        for n, node in enumerate(root.iter_nodes()):
            if node is not root:
                node.id = str(n)
        return root


__all__ = ["TextTreeFilter", "MergeLinearTextTreeFilter", "BlockLinearTextTreeFilter"]
