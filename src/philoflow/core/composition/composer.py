"""Item composer: the orchestrator of a composition run.

A run is ``open()``, then ``compose(item)`` for each item in output order,
then ``close()``; ``get_flows()`` returns the accumulated output:

    composer = TeiOffItemComposer(registry=registry,
                                  text_tree_renderer=TeiOffLinearTextTreeRenderer())
    composer.open()
    for item in items:
        composer.compose(item)
    composer.close()
    flows = composer.get_flows()

Each item is composed as a unit: its flow writes are staged and committed
only when the item completes, so a failing item leaves the output of the
previous items untouched.
"""
from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from philoflow.core.exceptions import ComposerStateError, PhiloflowError
from philoflow.core.model import Item, LayerPart, Part
from philoflow.core.rendering import (
    JsonRenderer,
    RendererContextSupplier,
    RendererRegistry,
    RenderingContext,
    TextTreeRenderer,
    fill_template,
)
from philoflow.core.text import (
    TextPartFlattener,
    TextTreeBuilder,
    TextTreeFilter,
    TextTreeNode,
    TokenTextPartFlattener,
    is_layer_selected,
)

logger = logging.getLogger(__name__)

# Item metadata keys in the context data
M_ITEM_ID = "item-id"
M_ITEM_TITLE = "item-title"
M_ITEM_FACET = "item-facet"
M_ITEM_GROUP = "item-group"
M_ITEM_FLAGS = "item-flags"
M_ITEM_NR = "item-nr"

HEAD_FLOW = "head"
TAIL_FLOW = "tail"

_INVALID_FILE_NAME_CHARS = set('<>:"/\\|?*')


def sanitize_file_name(name: str, replacement: Optional[str] = None) -> str:
    """Make ``name`` usable as a file name.

    Invalid characters are dropped, or replaced with ``replacement``;
    trailing dots are removed.
    """
    if not name:
        return name
    chars: List[str] = []
    for c in name:
        if c in _INVALID_FILE_NAME_CHARS or ord(c) < 32:
            if replacement is not None:
                chars.append(replacement)
        else:
            chars.append(c)
    return "".join(chars).rstrip(".")


class ItemComposer(ABC):
    """Base class for item composers.

    Attributes:
        registry: JSON renderers by part type and role.
        text_tree_renderer: renderer for the text tree of each item.
        flattener: flattener used to build text trees.
        text_tree_filters: filters applied to each tree before rendering.
        context_suppliers: suppliers run for each item before rendering.
        max_workers: when greater than 1, the parts of an item are rendered
            in parallel threads.
        context: the rendering context of the run.
    """

    def __init__(
        self,
        registry: Optional[RendererRegistry] = None,
        text_tree_renderer: Optional[TextTreeRenderer] = None,
        flattener: Optional[TextPartFlattener] = None,
        text_tree_filters: Optional[Sequence[TextTreeFilter]] = None,
        context_suppliers: Optional[Sequence[RendererContextSupplier]] = None,
        layer_type_ids: Optional[Iterable[str]] = None,
        max_workers: int = 1,
    ) -> None:
        self.registry = registry if registry is not None else RendererRegistry()
        self.text_tree_renderer = text_tree_renderer
        self.flattener = flattener or TokenTextPartFlattener()
        self.text_tree_filters: List[TextTreeFilter] = list(text_tree_filters or [])
        self.context_suppliers: List[RendererContextSupplier] = list(context_suppliers or [])
        self.max_workers = max(1, max_workers)
        self.context = RenderingContext()
        self._layer_type_ids = set(layer_type_ids or [])
        self.item_number = 0
        self._opened = False
        self._closed = False
        self._last_data: Dict[str, Any] = {}
        self._compose_lock = threading.Lock()

    # lifecycle ----------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(self) -> None:
        """Start a new run, resetting the context and all flows.

        Raises:
            ComposerStateError: if no text tree renderer is set.
        """
        if self.text_tree_renderer is None:
            raise ComposerStateError("Text tree renderer not set",
                                     context={"composer": self.__class__.__name__})

        self.item_number = 0
        self._last_data = {}
        self.context.clear(seeds=True)
        self.context.select_layer_types(self._layer_type_ids)
        self.text_tree_renderer.reset(self.context)
        self.on_open()

        head = self.text_tree_renderer.render_head(self.context)
        if head:
            self.write_output(HEAD_FLOW, head)
        self.context.flows.commit()

        self._opened = True
        self._closed = False
        logger.info("Opened %s", self.__class__.__name__)

    def on_open(self) -> None:
        """Hook called by :meth:`open` after the context was reset."""

    def compose(self, item: Item) -> None:
        """Compose one item, appending its output to the flows.

        Raises:
            ComposerStateError: if the composer is not open, or another
                ``compose`` call is running on it.
            PhiloflowError: any error from rendering; its context gets the
                item id (and part ids where a part is involved). The flows
                committed before the item are left untouched.
        """
        if item is None:
            raise ValueError("Item is required")
        if not self.is_open:
            raise ComposerStateError("Composer is not open", context={"item_id": item.id})
        if not self._compose_lock.acquire(blocking=False):
            raise ComposerStateError("Concurrent compose on the same composer",
                                     context={"item_id": item.id})
        try:
            self._compose_item(item)
        finally:
            self._compose_lock.release()

    def _compose_item(self, item: Item) -> None:
        context = self.context
        group_snapshot = context.group.snapshot()
        item_number = self.item_number
        try:
            self.item_number += 1
            context.source = item
            self.set_item_metadata(item)

            for supplier in self.context_suppliers:
                supplier.supply(context)

            group_id = self.text_tree_renderer.get_group_id(context)
            if group_id != context.group.last_group_id:
                prev_group_id = context.group.last_group_id
                self.on_group_changed(item, prev_group_id)
                self.text_tree_renderer.on_group_changed(context, prev_group_id)
                context.group.last_group_id = group_id

            self.do_compose(item)
            context.flows.commit()
            self._last_data = dict(context.data)
            logger.debug("Composed item #%d %s", self.item_number, item.id)
        except Exception as exc:
            context.flows.discard()
            context.group = group_snapshot
            self.item_number = item_number
            if isinstance(exc, PhiloflowError):
                exc.with_context(item_id=item.id)
            logger.error("Error composing item %s: %s", item.id, exc)
            raise
        finally:
            context.clear_data()
            context.source = None

    def close(self) -> None:
        """Close the run, writing the final tails.

        Errors propagate: the flows are then incomplete.
        """
        if not self.is_open:
            raise ComposerStateError("Composer is not open")
        try:
            tail = self.text_tree_renderer.render_tail(self.context)
            if tail:
                self.write_output(self.get_tail_flow(), tail)
            self.on_close()
            self.context.flows.commit()
        except Exception:
            self.context.flows.discard()
            raise
        finally:
            self._closed = True
        logger.info("Closed %s after %d items (%d flows)",
                    self.__class__.__name__, self.item_number, len(self.context.flows))

    def on_close(self) -> None:
        """Hook called by :meth:`close` after the tree renderer tail."""

    def get_tail_flow(self) -> str:
        """The flow receiving the tree renderer tail on close."""
        return TAIL_FLOW

    def get_flows(self) -> Dict[str, str]:
        """Return the committed flows by name.

        Raises:
            ComposerStateError: if the composer was never opened.
        """
        if not self._opened:
            raise ComposerStateError("Composer was never opened")
        return self.context.flows.to_dict()

    def compose_all(self, items: Iterable[Item]) -> Dict[str, str]:
        """Run a whole composition over ``items`` and return the flows."""
        self.open()
        for item in items:
            self.compose(item)
        self.close()
        return self.get_flows()

    # helpers ----------------------------------------------------------------

    def set_item_metadata(self, item: Item) -> None:
        self.context.update_data({
            M_ITEM_NR: self.item_number,
            M_ITEM_ID: item.id,
            M_ITEM_TITLE: item.title,
            M_ITEM_FACET: item.facet_id,
            M_ITEM_FLAGS: item.flags,
        })
        if item.group_id is not None:
            self.context.set_data(M_ITEM_GROUP, item.group_id)
        else:
            self.context.remove_data(M_ITEM_GROUP)

    def write_output(self, flow: str, content: str) -> None:
        """Stage content for a flow of the current item."""
        self.context.flows.write(flow, content)

    def fill_template(self, template: Optional[str],
                      data: Optional[Mapping[str, Any]] = None) -> str:
        """Fill a template from ``data`` (default: the context data)."""
        if not template:
            return ""
        return fill_template(template, self.context.data if data is None else data)

    @property
    def last_data(self) -> Dict[str, Any]:
        """The context data of the last composed item."""
        return self._last_data

    def on_group_changed(self, item: Item, prev_group_id: Optional[str]) -> None:
        """Hook called when the group of the composed item changed."""

    def build_text_tree(self, item: Item) -> Optional[TextTreeNode]:
        """Build the text tree of ``item`` and apply the tree filters."""
        builder = TextTreeBuilder(self.flattener)
        tree = builder.build(item, self.context.layer_type_ids)
        if tree is None:
            return None
        for tree_filter in self.text_tree_filters:
            tree = tree_filter.apply(tree, item)
        return tree

    def render_text_tree(self, tree: Optional[TextTreeNode]) -> str:
        """Render the tree of the current item.

        An item without text still goes through the tree renderer, which may
        emit its group transition.
        """
        if tree is None:
            return self.text_tree_renderer.render_empty(self.context)
        return self.text_tree_renderer.render(tree, self.context)

    def get_rendered_parts(self, item: Item) -> List[Part]:
        """Parts to render: all but the layers left out by the layer selection."""
        return [p for p in item.parts
                if not isinstance(p, LayerPart)
                or is_layer_selected(p, self.context.layer_type_ids)]

    def resolve_renderers(self, parts: Sequence[Part]) -> List[Tuple[Part, JsonRenderer]]:
        """Resolve the renderer of every part before rendering any of them."""
        return [(part, self.registry.resolve(part)) for part in parts]

    def render_part(self, part: Part, renderer: JsonRenderer,
                    tree: Optional[TextTreeNode] = None) -> str:
        """Render a part, storing the result in the context data under its id."""
        try:
            result = renderer.render(json.dumps(part.to_dict()), self.context, tree)
        except PhiloflowError as exc:
            raise exc.with_context(part_id=part.id, type_id=part.type_id, role_id=part.role_id)
        self.context.set_data(part.id, result)
        return result

    def render_parts(self, bindings: Sequence[Tuple[Part, JsonRenderer]],
                     tree: Optional[TextTreeNode] = None) -> Dict[str, str]:
        """Render parts, in parallel when ``max_workers`` > 1.

        Returns:
            The rendered text by part id.
        """
        if self.max_workers == 1 or len(bindings) < 2:
            return {part.id: self.render_part(part, renderer, tree) for part, renderer in bindings}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [(part, executor.submit(self.render_part, part, renderer, tree))
                       for part, renderer in bindings]
            return {part.id: future.result() for part, future in futures}

    @abstractmethod
    def do_compose(self, item: Item) -> None:
        """Render the item into the flows."""
        ...


__all__ = [
    "M_ITEM_ID",
    "M_ITEM_TITLE",
    "M_ITEM_FACET",
    "M_ITEM_GROUP",
    "M_ITEM_FLAGS",
    "M_ITEM_NR",
    "HEAD_FLOW",
    "TAIL_FLOW",
    "ItemComposer",
    "sanitize_file_name",
]
