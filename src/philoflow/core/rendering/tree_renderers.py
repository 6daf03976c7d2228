"""Text tree renderers.

A text tree renderer turns the text tree of one item into linear text.
Group-aware renderers also wrap their output in group head/tail templates
whenever the item group changes, so that each group of items becomes a
distinct document in its flow.

Group state machine (kept in the rendering context for the whole run)::

    NoGroup --change--> InGroup(id, ordinal) --change--> InGroup(id2, ordinal + 1)

On a change the output of the next rendered item is prefixed with the tail
of the outgoing group (filled with the data of its last item), if a group
was open, and then with the head of the incoming group (filled with the
current item data). Closing the run emits the tail of the open group.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from philoflow.core.text import TextTreeNode

from .context import RenderingContext
from .filters import TextFilter, TextFilterPipeline
from .templates import TemplateFiller

logger = logging.getLogger(__name__)


class TextTreeRenderer(ABC):
    """Abstract base class for text tree renderers."""

    def __init__(self, filters: Optional[Sequence[TextFilter]] = None) -> None:
        self.filters = TextFilterPipeline(filters)

    def reset(self, context: RenderingContext) -> None:
        """Reset any state before a run starts. The default does nothing."""

    def render_head(self, context: RenderingContext) -> str:
        """Content written once when the run is opened."""
        return ""

    def get_group_id(self, context: RenderingContext) -> Optional[str]:
        """Return the group of the item being composed."""
        return context.source.group_id if context.source else None

    def on_group_changed(self, context: RenderingContext, prev_group_id: Optional[str]) -> None:
        """Called when the item group changed. The default does nothing."""

    def render_tail(self, context: RenderingContext) -> str:
        """Content written once when the run is closed."""
        return ""

    @abstractmethod
    def do_render(self, tree: TextTreeNode, context: RenderingContext) -> str:
        ...

    def render(self, tree: TextTreeNode, context: RenderingContext) -> str:
        """Render the tree and apply the filters to the result."""
        if tree is None:
            raise ValueError("Text tree is required")
        return self.filters.execute(self.do_render(tree, context) or "", context)

    def render_empty(self, context: RenderingContext) -> str:
        """Render an item without text. The default renders nothing."""
        return ""

    def get_name(self) -> str:
        return self.__class__.__name__


class GroupTextTreeRenderer(TextTreeRenderer):
    """A text tree renderer wrapping each group of items in head/tail templates.

    Derived classes render the tree in :meth:`do_render_tree`; wrapping is
    applied by :meth:`do_render`.
    """

    def __init__(
        self,
        group_head_template: Optional[str] = None,
        group_tail_template: Optional[str] = None,
        filters: Optional[Sequence[TextFilter]] = None,
    ) -> None:
        super().__init__(filters)
        self.group_head_template = group_head_template
        self.group_tail_template = group_tail_template
        self.filler = TemplateFiller()

    def reset(self, context: RenderingContext) -> None:
        state = context.group
        state.ordinal = 0
        state.open_group_id = None
        state.pending = False
        state.pending_group_id = None
        state.last_data = {}

    def on_group_changed(self, context: RenderingContext, prev_group_id: Optional[str]) -> None:
        state = context.group
        state.ordinal += 1
        state.pending = True
        state.pending_group_id = self.get_group_id(context)
        logger.debug("Group changed from %s to %s (#%d)",
                     prev_group_id, state.pending_group_id, state.ordinal)

    def wrap(self, text: str, context: RenderingContext) -> str:
        """Prefix ``text`` with the pending group transition, if any."""
        state = context.group
        prefix = ""
        if state.pending:
            if state.is_open and self.group_tail_template:
                prefix += self.filler.fill(self.group_tail_template, state.last_data)
            if state.pending_group_id is not None and self.group_head_template:
                prefix += self.filler.fill(self.group_head_template, context.data)
            state.open_group_id = state.pending_group_id
            state.pending = False
            state.pending_group_id = None
        if state.is_open:
            state.last_data = dict(context.data)
        return prefix + text

    def render_empty(self, context: RenderingContext) -> str:
        """Render only the pending group transition, so that groups of items
        without text still get their head and tail."""
        return self.wrap("", context)

    def render_tail(self, context: RenderingContext) -> str:
        """Close the open group, if any."""
        state = context.group
        if not state.is_open:
            return ""
        tail = ""
        if self.group_tail_template:
            tail = self.filler.fill(self.group_tail_template, state.last_data or context.data)
        state.open_group_id = None
        return tail

    @abstractmethod
    def do_render_tree(self, tree: TextTreeNode, context: RenderingContext) -> str:
        ...

    def do_render(self, tree: TextTreeNode, context: RenderingContext) -> str:
        return self.wrap(self.do_render_tree(tree, context), context)


class PlainTextTreeRenderer(GroupTextTreeRenderer):
    """Render the tree as plain text, restoring line ends."""

    def do_render_tree(self, tree: TextTreeNode, context: RenderingContext) -> str:
        return tree.get_text()


__all__ = ["TextTreeRenderer", "GroupTextTreeRenderer", "PlainTextTreeRenderer"]
