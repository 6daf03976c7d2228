"""Annotated text ranges and their merging into consecutive segments."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from philoflow.core.exceptions import MalformedSpanError

from .location import SpanRelation, relate_bounds


def get_fragment_prefix(type_id: str, role_id: Optional[str]) -> str:
    """Return the fragment id prefix for a layer, like ``type:role@``."""
    return f"{type_id}:{role_id}@"


def build_fragment_id(type_id: str, role_id: Optional[str], index: int) -> str:
    return f"{get_fragment_prefix(type_id, role_id)}{index}"


def get_fragment_layer(fragment_id: str) -> str:
    """Return the layer key (``type:role``) of a fragment id."""
    return fragment_id.rpartition("@")[0]


def get_fragment_index(fragment_id: str) -> int:
    """Return the index of a fragment from its id (``type:role@index[suffix]``).

    Raises:
        ValueError: if the id has no numeric index.
    """
    _, sep, tail = fragment_id.rpartition("@")
    digits = ""
    for c in tail:
        if not c.isdigit():
            break
        digits += c
    if not sep or not digits:
        raise ValueError(f"Invalid fragment ID: {fragment_id}")
    return int(digits)


@dataclass
class AnnotatedTextRange:
    """An inclusive range of text linked to zero or more fragments."""

    start: int
    end: int
    fragment_ids: List[str] = field(default_factory=list)
    text: Optional[str] = None

    def contains(self, index: int) -> bool:
        return self.start <= index <= self.end

    def assign_text(self, text: str) -> None:
        self.text = text[self.start:self.end + 1]

    def __str__(self) -> str:
        return f'{self.start}-{self.end} "{self.text}" {", ".join(self.fragment_ids)}'


def validate_nesting(ranges: Sequence[AnnotatedTextRange]) -> None:
    """Ensure that ranges from different layers are equal, nested or disjoint.

    Raises:
        MalformedSpanError: for the first pair of ranges from different layers
            partially overlapping each other.
    """
    ordered = sorted(ranges, key=lambda r: (r.start, -r.end))
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            if b.start > a.end:
                break
            relation = relate_bounds(a.start, a.end, b.start, b.end)
            if relation is not SpanRelation.OVERLAP:
                continue
            a_layers = {get_fragment_layer(f) for f in a.fragment_ids}
            b_layers = {get_fragment_layer(f) for f in b.fragment_ids}
            if a_layers == b_layers and len(a_layers) == 1:
                continue
            raise MalformedSpanError(
                "Fragments overlap without nesting: "
                f"{', '.join(a.fragment_ids)} ({a.start}-{a.end}) and "
                f"{', '.join(b.fragment_ids)} ({b.start}-{b.end})",
                context={"fragments": a.fragment_ids + b.fragment_ids},
            )


def _fragment_order(ranges: Sequence[AnnotatedTextRange]) -> Dict[str, Tuple[int, int, int]]:
    # outermost first; equal spans keep registration order
    order: Dict[str, Tuple[int, int, int]] = {}
    for n, r in enumerate(ranges):
        for frid in r.fragment_ids:
            order.setdefault(frid, (r.start, -r.end, n))
    return order


def get_consecutive_ranges(
    start: int,
    end: int,
    ranges: Sequence[AnnotatedTextRange],
    breaks: Iterable[int] = (),
) -> List[AnnotatedTextRange]:
    """Merge sparse ranges into consecutive, adjacent ranges covering start-end.

    The text is cut at every range boundary and at every position in
    ``breaks``; gaps become ranges without fragments. Each resulting range
    lists the ids of all the fragments covering it, outermost first.

    Args:
        start: The start text index.
        end: The end text index (inclusive).
        ranges: The ranges to merge, in layer registration order.
        breaks: Additional positions where a new range must start.

    Returns:
        Sorted list of consecutive ranges. Empty when ``end < start``.
    """
    if end < start:
        return []

    positions = {start, end + 1}
    for r in ranges:
        positions.add(r.start)
        positions.add(r.end + 1)
    positions.update(breaks)
    cuts = sorted(p for p in positions if start <= p <= end + 1)

    order = _fragment_order(ranges)
    result: List[AnnotatedTextRange] = []
    for current_start, next_start in zip(cuts, cuts[1:]):
        current_end = next_start - 1
        fragment_ids = set()
        for r in ranges:
            if r.start <= current_end and r.end >= current_start:
                fragment_ids.update(r.fragment_ids)
        result.append(AnnotatedTextRange(
            current_start,
            current_end,
            sorted(fragment_ids, key=lambda f: (order[f], f)),
        ))
    return result


__all__ = [
    "AnnotatedTextRange",
    "build_fragment_id",
    "get_fragment_prefix",
    "get_fragment_layer",
    "get_fragment_index",
    "validate_nesting",
    "get_consecutive_ranges",
]
