"""TEI rendering.

In standoff mode the base text is rendered as blocks of ``seg`` elements,
one for each annotated segment of the text tree, while each layer is
rendered in its own flow, pointing to those segments by their ``xml:id``:

    <div n="1"><p source="#item-id" n="1">arma <seg xml:id="seg1">virumque</seg></p></div>
    <div xml:id="item-id"><div><app n="1" loc="#seg1"><lem>virumque</lem>...</app></div></div>

Segment numbers are assigned in document order the first time any
renderer sees the tree of an item, and are stable across flows.

In inline mode (:class:`TeiAppLinearTextTreeRenderer`) the apparatus is
embedded in the text blocks instead, and no segment ids are needed.
"""
from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence, Tuple

from philoflow.core.model import ApparatusFragment, LayerPart
from philoflow.core.text import (
    F_EOL_TAIL,
    TextTreeNode,
    build_fragment_id,
    get_fragment_index,
    get_fragment_prefix,
)

from .context import RenderingContext
from .filters import TextFilter
from .json_renderers import JsonRenderer
from .tree_renderers import GroupTextTreeRenderer

logger = logging.getLogger(__name__)

XML_NS = "http://www.w3.org/XML/1998/namespace"
XML_ID = f"{{{XML_NS}}}id"

# Prefix of item ids in TEI pointers
ITEM_ID_PREFIX = "#"

# Name of the id map used for segment numbers
SEG_MAP = "seg"


def to_xml_string(element: ET.Element, indented: bool = False) -> str:
    if indented:
        ET.indent(element)
    return ET.tostring(element, encoding="unicode")


def append_text(parent: ET.Element, text: str) -> None:
    """Append text after the last child of ``parent`` (or as its text)."""
    if not text:
        return
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def _item_id(context: RenderingContext) -> str:
    return context.source.id if context.source else ""


def get_segment_source_id(node: TextTreeNode, context: RenderingContext) -> str:
    return f"{_item_id(context)}/{node.id}"


def assign_segment_ids(tree: TextTreeNode, context: RenderingContext) -> None:
    """Number every annotated segment of the tree, in document order.

    Mapping is idempotent, so calling this from several renderers of the
    same item yields the same numbers.
    """
    for node in tree.iter_nodes():
        if node.data is not None and node.data.text and node.data.fragment_ids:
            context.map_source_id(SEG_MAP, get_segment_source_id(node, context))


def get_segment_id(node: TextTreeNode, context: RenderingContext) -> str:
    return f"seg{context.map_source_id(SEG_MAP, get_segment_source_id(node, context))}"


def find_fragment_bounds(
    fragment_id: str, tree: TextTreeNode
) -> Optional[Tuple[TextTreeNode, TextTreeNode]]:
    """Find the first contiguous run of nodes linked to a fragment.

    Returns:
        The first and last node of the run, or None if no node is linked.
    """
    first: Optional[TextTreeNode] = None
    last: Optional[TextTreeNode] = None
    for node in tree.iter_nodes():
        if node.data is None:
            continue
        if fragment_id in node.data.fragment_ids:
            first = first or node
            last = node
        elif first is not None:
            break
    return (first, last) if first is not None and last is not None else None


def collect_text(first: TextTreeNode, last: TextTreeNode) -> str:
    """Collect the text from ``first`` to ``last`` (inclusive); line ends become spaces."""
    chunks: List[str] = []
    node: Optional[TextTreeNode] = first
    while node is not None:
        if node.data is not None:
            chunks.append(node.data.text)
            if node is not last and node.data.has_feature(F_EOL_TAIL):
                chunks.append(" ")
        if node is last:
            break
        node = node.first_child
    return "".join(chunks)


def add_loc(first: TextTreeNode, last: TextTreeNode, element: ET.Element,
            context: RenderingContext) -> None:
    """Point ``element`` to the segments from ``first`` to ``last``.

    A single segment is referenced by a ``loc`` attribute; a run by a
    child ``loc`` element with ``spanFrom`` and ``spanTo``.
    """
    if first is last:
        element.set("loc", f"#{get_segment_id(first, context)}")
        return
    ET.SubElement(element, "loc", {
        "spanFrom": f"#{get_segment_id(first, context)}",
        "spanTo": f"#{get_segment_id(last, context)}",
    })


def new_app_element(fragment: Dict, index: int, n_attribute: bool = True) -> ET.Element:
    """Create the ``app`` element of the apparatus fragment at ``index``."""
    app = ET.Element("app")
    if n_attribute:
        app.set("n", str(index + 1))
    if fragment.get("tag"):
        app.set("type", fragment["tag"])
    return app


def add_app_entries(
    app: ET.Element,
    entries: Sequence[Dict],
    lemma: str,
    n_attribute: bool = True,
    zero_variant_type: Optional[str] = None,
) -> None:
    """Append a ``lem`` or ``rdg`` child to ``app`` for each apparatus entry.

    Accepted entries become ``lem`` holding ``lemma``; the others become
    ``rdg`` holding their value. When ``zero_variant_type`` is set, a
    ``rdg`` without value (an omission) gets it added to its ``type``.
    """
    for index, entry in enumerate(entries):
        accepted = bool(entry.get("isAccepted"))
        element = ET.SubElement(app, "lem" if accepted else "rdg")
        if n_attribute:
            element.set("n", str(index + 1))
        element.text = lemma if accepted else (entry.get("value") or "")
        types = [entry["tag"]] if entry.get("tag") else []
        if zero_variant_type and not accepted and not entry.get("value"):
            types.append(zero_variant_type)
        if types:
            element.set("type", " ".join(types))
        if entry.get("witnesses"):
            element.set("wit", " ".join(f"#{w}" for w in entry["witnesses"]))
        if entry.get("authors"):
            element.set("resp", " ".join(f"#{a}" for a in entry["authors"]))
        if entry.get("note"):
            ET.SubElement(element, "note").text = entry["note"]


class TeiOffLinearTextTreeRenderer(GroupTextTreeRenderer):
    """Render the base text as TEI blocks of segments.

    Each line of the text becomes a block element (``p`` by default) with
    ``source`` pointing to the item and ``n`` set to the line number.
    Annotated segments are wrapped in ``seg`` elements with their
    ``xml:id``; all the blocks go into a root element (``div``) whose ``n``
    is the item number.
    """

    def __init__(
        self,
        root_element: str = "div",
        block_element: str = "p",
        root_included: bool = True,
        indented: bool = False,
        group_head_template: Optional[str] = None,
        group_tail_template: Optional[str] = None,
        filters: Optional[Sequence[TextFilter]] = None,
    ) -> None:
        super().__init__(group_head_template, group_tail_template, filters)
        self.root_element = root_element
        self.block_element = block_element
        self.root_included = root_included
        self.indented = indented

    def _new_block(self, root: ET.Element, context: RenderingContext, y: int) -> ET.Element:
        return ET.SubElement(root, self.block_element, {
            "source": ITEM_ID_PREFIX + _item_id(context),
            "n": str(y),
        })

    def do_render_tree(self, tree: TextTreeNode, context: RenderingContext) -> str:
        assign_segment_ids(tree, context)

        root = ET.Element(self.root_element)
        if "item-nr" in context.data:
            root.set("n", str(context.data["item-nr"]))

        y = 1
        block = self._new_block(root, context, y)
        for node in tree.iter_nodes():
            segment = node.data
            if segment is None:
                continue
            if segment.text:
                if segment.fragment_ids:
                    seg = ET.SubElement(block, "seg", {XML_ID: get_segment_id(node, context)})
                    seg.text = segment.text
                else:
                    append_text(block, segment.text)
            if segment.has_feature(F_EOL_TAIL) and node.children:
                y += 1
                block = self._new_block(root, context, y)

        if self.root_included:
            return to_xml_string(root, self.indented)
        return "".join(to_xml_string(child, self.indented) for child in root)


class TeiAppLinearTextTreeRenderer(GroupTextTreeRenderer):
    """Render the base text as TEI blocks with an inline apparatus.

    Unlike the standoff renderer, the apparatus layer of the item is not
    rendered in its own flow: each fragment replaces the text it covers
    with an ``app`` element, whose ``lem`` holds that text:

        <p source="#i1" n="1"><app n="1"><lem n="1" wit="#O1">illuc</lem>
        <rdg n="2" wit="#O #G">illud</rdg></app> unde negant</p>

    Fragments are read from the JSON of the apparatus layer part of the
    item being rendered. A fragment spanning several segments yields a
    single ``app`` at its first segment.
    """

    def __init__(
        self,
        root_element: str = "div",
        block_element: str = "p",
        root_included: bool = False,
        indented: bool = False,
        no_item_source: bool = False,
        no_n_attribute: bool = False,
        zero_variant_type: Optional[str] = None,
        layer_role_id: str = ApparatusFragment.TYPE_ID,
        group_head_template: Optional[str] = None,
        group_tail_template: Optional[str] = None,
        filters: Optional[Sequence[TextFilter]] = None,
    ) -> None:
        super().__init__(group_head_template, group_tail_template, filters)
        self.root_element = root_element
        self.block_element = block_element
        self.root_included = root_included
        self.indented = indented
        self.no_item_source = no_item_source
        self.no_n_attribute = no_n_attribute
        self.zero_variant_type = zero_variant_type
        self.layer_role_id = layer_role_id

    def _new_block(self, root: ET.Element, context: RenderingContext, y: int) -> ET.Element:
        block = ET.SubElement(root, self.block_element)
        if not self.no_item_source:
            block.set("source", ITEM_ID_PREFIX + _item_id(context))
        if not self.no_n_attribute:
            block.set("n", str(y))
        return block

    def _get_fragments(self, context: RenderingContext) -> List[Dict]:
        if context.source is None:
            return []
        part = context.source.find_part(role_id=self.layer_role_id, type_id=LayerPart.TYPE_ID)
        if part is None:
            return []
        return list(part.to_dict().get("fragments") or [])

    def do_render_tree(self, tree: TextTreeNode, context: RenderingContext) -> str:
        fragments = self._get_fragments(context)
        prefix = get_fragment_prefix(LayerPart.TYPE_ID, self.layer_role_id)
        n_attribute = not self.no_n_attribute

        root = ET.Element(self.root_element)
        y = 1
        block = self._new_block(root, context, y)
        rendered = set()
        for node in tree.iter_nodes():
            segment = node.data
            if segment is None:
                continue
            fragment_id = next((f for f in segment.fragment_ids if f.startswith(prefix)), None)
            if fragment_id is None or not fragments:
                append_text(block, segment.text)
            elif fragment_id not in rendered:
                rendered.add(fragment_id)
                index = get_fragment_index(fragment_id)
                fragment = fragments[index]
                bounds = find_fragment_bounds(fragment_id, tree)
                lemma = collect_text(*bounds) if bounds else segment.text
                app = new_app_element(fragment, index, n_attribute)
                add_app_entries(app, fragment.get("entries") or [], lemma,
                                n_attribute, self.zero_variant_type)
                block.append(app)
            if segment.has_feature(F_EOL_TAIL) and node.children:
                y += 1
                block = self._new_block(root, context, y)

        if self.root_included:
            return to_xml_string(root, self.indented)
        return "".join(to_xml_string(child, self.indented) for child in root)


class _TeiOffLayerJsonRenderer(JsonRenderer):
    """Base for standoff layer renderers reading the fragments of a layer."""

    def __init__(self, root_element: str = "div", indented: bool = False,
                 filters: Optional[Sequence[TextFilter]] = None) -> None:
        super().__init__(filters)
        self.root_element = root_element
        self.indented = indented

    def _read_layer(self, json_text: str) -> Tuple[str, str, List[Dict]]:
        data = json.loads(json_text)
        return data.get("typeId") or "", data.get("roleId") or "", list(data.get("fragments") or [])

    def _require_tree(self, tree: Optional[TextTreeNode]) -> TextTreeNode:
        if tree is None:
            raise ValueError(f"{self.get_name()} requires the text tree of the item")
        return tree

    def _new_root(self, context: RenderingContext) -> ET.Element:
        return ET.Element(self.root_element, {XML_ID: f"item{_item_id(context)}"})


class TeiOffApparatusJsonRenderer(_TeiOffLayerJsonRenderer):
    """Render an apparatus layer as TEI ``app`` elements linked to segments.

    Accepted entries become ``lem`` elements holding the base text of the
    fragment; other entries become ``rdg`` elements with their value.
    """

    def do_render(self, json_text: str, context: RenderingContext,
                  tree: Optional[TextTreeNode] = None) -> str:
        tree = self._require_tree(tree)
        assign_segment_ids(tree, context)
        type_id, role_id, fragments = self._read_layer(json_text)

        root = self._new_root(context)
        for index, fragment in enumerate(fragments):
            div = ET.SubElement(root, "div")
            if fragment.get("tag"):
                div.set("type", fragment["tag"])

            bounds = find_fragment_bounds(build_fragment_id(type_id, role_id, index), tree)
            if bounds is None:
                logger.warning("Apparatus fragment %d of item %s has no text",
                               index, _item_id(context))
                continue
            app = new_app_element(fragment, index)
            div.append(app)
            add_loc(bounds[0], bounds[1], app, context)
            add_app_entries(app, fragment.get("entries") or [], collect_text(*bounds))

        return to_xml_string(root, self.indented)


class TeiOffCommentJsonRenderer(_TeiOffLayerJsonRenderer):
    """Render a comment layer as TEI ``note`` elements targeting segments."""

    def do_render(self, json_text: str, context: RenderingContext,
                  tree: Optional[TextTreeNode] = None) -> str:
        tree = self._require_tree(tree)
        assign_segment_ids(tree, context)
        type_id, role_id, fragments = self._read_layer(json_text)

        root = self._new_root(context)
        for index, fragment in enumerate(fragments):
            bounds = find_fragment_bounds(build_fragment_id(type_id, role_id, index), tree)
            if bounds is None:
                logger.warning("Comment fragment %d of item %s has no text",
                               index, _item_id(context))
                continue
            first, last = bounds
            target = f"#{get_segment_id(first, context)}"
            if last is not first:
                target += f" #{get_segment_id(last, context)}"
            note = ET.SubElement(root, "note", {"n": str(index + 1), "target": target})
            if fragment.get("tag"):
                note.set("type", fragment["tag"])
            note.text = fragment.get("text") or ""

        return to_xml_string(root, self.indented)


__all__ = [
    "XML_ID",
    "ITEM_ID_PREFIX",
    "assign_segment_ids",
    "get_segment_id",
    "find_fragment_bounds",
    "collect_text",
    "add_loc",
    "new_app_element",
    "add_app_entries",
    "TeiOffLinearTextTreeRenderer",
    "TeiAppLinearTextTreeRenderer",
    "TeiOffApparatusJsonRenderer",
    "TeiOffCommentJsonRenderer",
]
