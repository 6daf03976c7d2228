"""Concrete item composers."""
from __future__ import annotations

import logging
from typing import Any, Optional

from philoflow.core.model import FR_PREFIX, Item, LayerPart

from .composer import TAIL_FLOW, ItemComposer, sanitize_file_name

logger = logging.getLogger(__name__)


class TeiOffItemComposer(ItemComposer):
    """Compose items into TEI standoff flows.

    The text tree goes to the text flow (``text`` by default) and each layer
    part goes to a flow named after its role id, so that all the fragments
    of one kind end up in the same document. Parts which are neither text
    nor layers are rendered only to provide data to templates.

    The optional head templates are written when a flow is created, the tail
    templates when the run is closed.
    """

    def __init__(
        self,
        text_flow: str = "text",
        text_head: Optional[str] = None,
        text_tail: Optional[str] = None,
        layer_head: Optional[str] = None,
        layer_tail: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.text_flow = text_flow
        self.text_head = text_head
        self.text_tail = text_tail
        self.layer_head = layer_head
        self.layer_tail = layer_tail

    def _write_flow(self, flow: str, content: str, head: Optional[str]) -> None:
        if flow not in self.context.flows and head:
            self.write_output(flow, self.fill_template(head))
        self.write_output(flow, content)

    def get_tail_flow(self) -> str:
        return self.text_flow

    def do_compose(self, item: Item) -> None:
        bindings = self.resolve_renderers(self.get_rendered_parts(item))
        tree = self.build_text_tree(item)
        results = self.render_parts(bindings, tree)

        text = self.render_text_tree(tree)
        if tree is not None or text:
            self._write_flow(self.text_flow, text, self.text_head)

        for part, _ in bindings:
            if not isinstance(part, LayerPart):
                continue
            result = results[part.id]
            if not result:
                logger.warning("Layer %s of item %s rendered no output", part.role_id, item.id)
            self._write_flow(part.role_id, result, self.layer_head)

    def on_close(self) -> None:
        for flow in self.context.flows.names:
            if flow == self.text_flow:
                tail = self.text_tail
            elif flow.startswith(FR_PREFIX):
                tail = self.layer_tail
            else:
                continue
            if tail:
                self.write_output(flow, self.fill_template(tail, self.last_data))


class TeiItemComposer(ItemComposer):
    """Compose items into a single TEI text flow.

    Meant for tree renderers embedding the layers in the text, like
    :class:`~philoflow.core.rendering.TeiAppLinearTextTreeRenderer`: the
    rendered tree of each item goes to the text flow, and parts are not
    rendered on their own. ``text_head`` is written when the flow is
    created, ``text_tail`` when the run is closed.
    """

    def __init__(
        self,
        text_flow: str = "text",
        text_head: Optional[str] = None,
        text_tail: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.text_flow = text_flow
        self.text_head = text_head
        self.text_tail = text_tail

    def get_tail_flow(self) -> str:
        return self.text_flow

    def do_compose(self, item: Item) -> None:
        result = self.render_text_tree(self.build_text_tree(item))
        if not result:
            return
        if self.text_flow not in self.context.flows and self.text_head:
            self.write_output(self.text_flow, self.fill_template(self.text_head))
        self.write_output(self.text_flow, result)

    def on_close(self) -> None:
        if self.text_flow in self.context.flows and self.text_tail:
            self.write_output(self.text_flow, self.fill_template(self.text_tail, self.last_data))


class PlainTextItemComposer(ItemComposer):
    """Compose the base text of items into plain text flows.

    All the items go to a flow named after the title of the first item, or,
    when ``item_grouping`` is on, to one flow for each item group. Each run
    of consecutive items in the same flow starts with ``text_head`` and ends
    with ``text_tail``, so a group met again is appended as a new document;
    each item is wrapped in ``item_head`` and ``item_tail``.
    """

    def __init__(
        self,
        item_head: Optional[str] = None,
        item_tail: Optional[str] = None,
        text_head: Optional[str] = None,
        text_tail: Optional[str] = None,
        item_grouping: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.item_head = item_head
        self.item_tail = item_tail
        self.text_head = text_head
        self.text_tail = text_tail
        self.item_grouping = item_grouping
        self._flow: Optional[str] = None

    def on_open(self) -> None:
        self._flow = None

    def get_flow_name(self, item: Item) -> str:
        if self.item_grouping and item.group_id:
            return sanitize_file_name(item.group_id, "_")
        if self._flow is not None and not self.item_grouping:
            return self._flow
        return sanitize_file_name(item.title, "_") or item.id

    def get_tail_flow(self) -> str:
        return self._flow or TAIL_FLOW

    def do_compose(self, item: Item) -> None:
        flow = self.get_flow_name(item)
        if self._flow is not None and flow != self._flow and self.text_tail:
            self.write_output(self._flow, self.fill_template(self.text_tail, self.last_data))
        if flow != self._flow and self.text_head:
            self.write_output(flow, self.fill_template(self.text_head))

        bindings = self.resolve_renderers(self.get_rendered_parts(item))
        tree = self.build_text_tree(item)
        self.render_parts(bindings, tree)

        if self.item_head:
            self.write_output(flow, self.fill_template(self.item_head))
        text = self.render_text_tree(tree)
        if tree is not None or text:
            self.write_output(flow, text)
        if self.item_tail:
            self.write_output(flow, self.fill_template(self.item_tail))
        self._flow = flow

    def on_close(self) -> None:
        if self._flow is not None and self.text_tail:
            self.write_output(self._flow, self.fill_template(self.text_tail, self.last_data))


__all__ = ["TeiOffItemComposer", "TeiItemComposer", "PlainTextItemComposer"]
