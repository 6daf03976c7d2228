"""Flatten a base text part and its layers into annotated ranges.

The flattener is a pure transformation: it reads a text part and a list of
layer parts and returns the whole text (lines joined by LF) with the
character range covered by each layer fragment. It never mutates its
inputs.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple

from philoflow.core.exceptions import (
    MalformedSpanError,
    PhiloflowError,
    UnknownCoordinateError,
    UnsupportedPartError,
)
from philoflow.core.model import LayerPart, Part, TextPart

from .location import TokenTextLocation, TokenTextPoint
from .ranges import AnnotatedTextRange, build_fragment_id, validate_nesting


class TextPartFlattener(ABC):
    """Turns a text part plus layer parts into text and fragment ranges."""

    @abstractmethod
    def flatten(
        self, text_part: Part, layer_parts: Sequence[Part]
    ) -> Tuple[str, List[AnnotatedTextRange]]:
        """Return the flattened text and one range per layer fragment.

        Layer parts are expected in registration order: when two fragments
        from different layers share the same span, the first layer's
        fragment wraps the other one.
        """
        ...


def _token_offsets(line: str) -> List[Tuple[int, int]]:
    """Return (start, end exclusive) offsets of each space-separated token."""
    offsets: List[Tuple[int, int]] = []
    i = 0
    for token in line.split(" "):
        offsets.append((i, i + len(token)))
        i += len(token) + 1
    return offsets


class TokenTextPartFlattener(TextPartFlattener):
    """Flattener for :class:`TextPart` with token-based layer locations."""

    def _line_starts(self, part: TextPart) -> List[int]:
        starts = []
        index = 0
        for line in part.lines:
            starts.append(index)
            index += len(line.text) + 1
        return starts

    def _resolve_point(
        self,
        point: TokenTextPoint,
        part: TextPart,
        line_starts: List[int],
        end: bool,
        as_range_end: bool = False,
    ) -> int:
        if point.y > len(part.lines):
            raise UnknownCoordinateError(
                f"Line {point.y} is outside the text ({len(part.lines)} lines)",
                context={"location": str(point)},
            )
        offsets = _token_offsets(part.lines[point.y - 1].text)
        if point.x > len(offsets):
            raise UnknownCoordinateError(
                f"Token {point.x} is outside line {point.y} ({len(offsets)} tokens)",
                context={"location": str(point)},
            )
        token_start, token_end = offsets[point.x - 1]
        token_length = token_end - token_start
        if token_length == 0:
            raise UnknownCoordinateError(
                f"Token {point.x} in line {point.y} is empty",
                context={"location": str(point)},
            )
        if point.at > token_length or point.at + max(point.run, 1) - 1 > token_length:
            raise UnknownCoordinateError(
                f"Characters {point.at}x{point.run} are outside token {point.y}.{point.x}",
                context={"location": str(point)},
            )

        base = line_starts[point.y - 1] + token_start
        if not end:
            return base + (point.at - 1 if point.at else 0)
        if not point.at:
            return base + token_length - 1
        if point.run:
            return base + point.at + point.run - 2
        # AT without RUN: one character for a range end, else up to token end
        return base + point.at - 1 if as_range_end else base + token_length - 1

    def _resolve(
        self, location: str, part: TextPart, line_starts: List[int], fragment_id: str
    ) -> AnnotatedTextRange:
        loc = TokenTextLocation.parse(location)
        start = self._resolve_point(loc.a, part, line_starts, end=False)
        if loc.b is None:
            end = self._resolve_point(loc.a, part, line_starts, end=True)
        else:
            end = self._resolve_point(loc.b, part, line_starts, end=True, as_range_end=True)
        return AnnotatedTextRange(start, end, [fragment_id])

    def flatten(
        self, text_part: Part, layer_parts: Sequence[Part]
    ) -> Tuple[str, List[AnnotatedTextRange]]:
        """Flatten the text part and its layers.

        Raises:
            UnsupportedPartError: if ``text_part`` is not a :class:`TextPart`.
            MalformedSpanError: for invalid locations or fragments from
                different layers overlapping without nesting; for overlaps
                the context lists the ``part_ids`` of the layers involved.
            UnknownCoordinateError: for locations outside the text.
        """
        if not isinstance(text_part, TextPart):
            raise UnsupportedPartError(
                f"Expected a text part, got {type(text_part).__name__}",
                context={"part_id": text_part.id, "type_id": text_part.type_id},
            )

        text = text_part.get_text()
        line_starts = self._line_starts(text_part)

        ranges: List[AnnotatedTextRange] = []
        part_ids: Dict[str, str] = {}
        for part in layer_parts:
            if not isinstance(part, LayerPart):
                continue
            for index, fragment in enumerate(part.fragments):
                fragment_id = build_fragment_id(part.type_id, part.role_id, index)
                part_ids[fragment_id] = part.id
                try:
                    ranges.append(self._resolve(fragment.location, text_part, line_starts, fragment_id))
                except PhiloflowError as exc:
                    raise exc.with_context(fragment_id=fragment_id, part_id=part.id)

        try:
            validate_nesting(ranges)
        except MalformedSpanError as exc:
            fragments = exc.context.get("fragments") or []
            raise exc.with_context(
                part_ids=list(dict.fromkeys(part_ids[f] for f in fragments if f in part_ids))
            )
        return text, ranges


__all__ = ["TextPartFlattener", "TokenTextPartFlattener"]
