"""Build items and parts from their dictionary (camelCase JSON) form.

Part and fragment variants are looked up by type id; unknown part types
become :class:`GenericPart` instances keeping their raw payload.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from .items import GenericPart, Item, Part
from .layers import ApparatusEntry, ApparatusFragment, CommentFragment, Fragment, LayerPart
from .text import TextLine, TextPart

_PART_KEYS = ("id", "itemId", "typeId", "roleId", "creatorId", "userId")


def _base_kwargs(data: Mapping[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "item_id": data.get("itemId") or "",
        "type_id": data.get("typeId") or "",
        "role_id": data.get("roleId"),
        "creator_id": data.get("creatorId") or "",
        "user_id": data.get("userId") or "",
    }
    if data.get("id"):
        kwargs["id"] = data["id"]
    return kwargs


def _comment_from_dict(data: Mapping[str, Any]) -> Fragment:
    return CommentFragment(
        location=data.get("location") or "",
        tag=data.get("tag") or "",
        text=data.get("text") or "",
    )


def _apparatus_from_dict(data: Mapping[str, Any]) -> Fragment:
    return ApparatusFragment(
        location=data.get("location") or "",
        tag=data.get("tag") or "",
        entries=[ApparatusEntry.from_dict(e) for e in data.get("entries") or []],
    )


def _generic_fragment_from_dict(data: Mapping[str, Any]) -> Fragment:
    return Fragment(location=data.get("location") or "")


def _text_part_from_dict(data: Mapping[str, Any]) -> Part:
    lines = [TextLine(y=int(ln.get("y", i + 1)), text=ln.get("text") or "")
             for i, ln in enumerate(data.get("lines") or [])]
    return TextPart(citation=data.get("citation") or "", lines=lines, **_base_kwargs(data))


def _layer_part_from_dict(data: Mapping[str, Any]) -> Part:
    kwargs = _base_kwargs(data)
    factory = FRAGMENT_TYPES.get(kwargs["role_id"] or "", _generic_fragment_from_dict)
    fragments = [factory(fr) for fr in data.get("fragments") or []]
    return LayerPart(fragments=fragments, **kwargs)


PART_TYPES: Dict[str, Callable[[Mapping[str, Any]], Part]] = {
    TextPart.TYPE_ID: _text_part_from_dict,
    LayerPart.TYPE_ID: _layer_part_from_dict,
}

FRAGMENT_TYPES: Dict[str, Callable[[Mapping[str, Any]], Fragment]] = {
    CommentFragment.TYPE_ID: _comment_from_dict,
    ApparatusFragment.TYPE_ID: _apparatus_from_dict,
}


def part_from_dict(data: Mapping[str, Any]) -> Part:
    """Create a part from its dictionary form."""
    type_id = data.get("typeId") or ""
    factory = PART_TYPES.get(type_id)
    if factory is not None:
        return factory(data)
    payload = {k: v for k, v in data.items() if k not in _PART_KEYS}
    return GenericPart(payload=payload, **_base_kwargs(data))


def item_from_dict(data: Mapping[str, Any]) -> Item:
    """Create an item with all its parts from its dictionary form."""
    item = Item(
        title=data.get("title") or "",
        description=data.get("description") or "",
        facet_id=data.get("facetId") or "default",
        group_id=data.get("groupId") or None,
        sort_key=data.get("sortKey") or "",
        flags=int(data.get("flags") or 0),
        creator_id=data.get("creatorId") or "",
        user_id=data.get("userId") or "",
    )
    if data.get("id"):
        item.id = data["id"]
    for part_data in data.get("parts") or []:
        item.add_part(part_from_dict(part_data))
    return item


__all__ = [
    "PART_TYPES",
    "FRAGMENT_TYPES",
    "part_from_dict",
    "item_from_dict",
]
