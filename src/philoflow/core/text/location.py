"""Token-based text coordinates.

A location addresses a token (or part of it) in a text made of lines of
space-separated tokens. Grammar::

    point    := Y "." X [ "@" AT [ "x" RUN ] ]
    location := point [ "-" point ]

``Y`` is the 1-based line ordinal, ``X`` the 1-based token ordinal in the
line, ``AT`` the 1-based character in the token and ``RUN`` the number of
characters from ``AT``. A point without ``AT`` covers the whole token; a
point with ``AT`` and no ``RUN`` runs to the end of the token.

Locations are totally ordered and can be related to each other (equal,
nested, disjoint or partially overlapping) without resolving them
against a text.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Any, Optional, Tuple

from philoflow.core.exceptions import MalformedSpanError

POINT_PATTERN = re.compile(r"^(\d+)\.(\d+)(?:@(\d+)(?:x(\d+))?)?$")

# Bound used as the character position of a whole token's end
_TOKEN_END = math.inf

Bound = Tuple[Any, ...]


class SpanRelation(Enum):
    """How a span relates to another one."""
    EQUAL = "equal"
    INSIDE = "inside"        # nested in the other span
    CONTAINS = "contains"    # the other span is nested in this one
    DISJOINT = "disjoint"
    OVERLAP = "overlap"      # partial overlap, not representable as nesting


def relate_bounds(a_start: Any, a_end: Any, b_start: Any, b_end: Any) -> SpanRelation:
    """Relate two inclusive spans given their comparable bounds."""
    if a_start == b_start and a_end == b_end:
        return SpanRelation.EQUAL
    if a_end < b_start or b_end < a_start:
        return SpanRelation.DISJOINT
    if b_start <= a_start and a_end <= b_end:
        return SpanRelation.INSIDE
    if a_start <= b_start and b_end <= a_end:
        return SpanRelation.CONTAINS
    return SpanRelation.OVERLAP


@dataclass(frozen=True)
class TextSpan:
    """An inclusive character span in a flattened text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise MalformedSpanError(
                f"Span start {self.start} is greater than end {self.end}",
                context={"start": self.start, "end": self.end},
            )

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def contains_index(self, index: int) -> bool:
        return self.start <= index <= self.end

    def relate(self, other: "TextSpan") -> SpanRelation:
        return relate_bounds(self.start, self.end, other.start, other.end)


@total_ordering
@dataclass(frozen=True)
class TokenTextPoint:
    """A point in a token-based text."""

    y: int
    x: int
    at: int = 0
    run: int = 0

    @classmethod
    def parse(cls, text: str) -> "TokenTextPoint":
        match = POINT_PATTERN.match(text.strip())
        if not match:
            raise MalformedSpanError(f"Invalid text point: {text!r}", context={"location": text})
        y, x, at, run = match.groups()
        point = cls(int(y), int(x), int(at or 0), int(run or 0))
        if point.y < 1 or point.x < 1:
            raise MalformedSpanError(f"Line and token ordinals are 1-based: {text!r}",
                                     context={"location": text})
        if point.run and not point.at:
            raise MalformedSpanError(f"A run requires a start character: {text!r}",
                                     context={"location": text})
        return point

    @property
    def key(self) -> Tuple[int, int, int, int]:
        return (self.y, self.x, self.at, self.run)

    @property
    def start_bound(self) -> Bound:
        """Lowest (line, token, char) position covered by this point."""
        return (self.y, self.x, self.at or 1)

    def end_bound(self, as_range_end: bool = False) -> Bound:
        """Highest (line, token, char) position covered by this point.

        A range end with ``AT`` and no ``RUN`` covers one character.
        """
        if not self.at:
            return (self.y, self.x, _TOKEN_END)
        if self.run:
            return (self.y, self.x, self.at + self.run - 1)
        return (self.y, self.x, self.at if as_range_end else _TOKEN_END)

    def __lt__(self, other: "TokenTextPoint") -> bool:
        if not isinstance(other, TokenTextPoint):
            return NotImplemented
        return self.key < other.key

    def __str__(self) -> str:
        text = f"{self.y}.{self.x}"
        if self.at:
            text += f"@{self.at}"
            if self.run:
                text += f"x{self.run}"
        return text


@total_ordering
@dataclass(frozen=True)
class TokenTextLocation:
    """A point or a range of points in a token-based text."""

    a: TokenTextPoint
    b: Optional[TokenTextPoint] = None

    @classmethod
    def parse(cls, text: str) -> "TokenTextLocation":
        """Parse a location like ``1.2``, ``1.2@3x2`` or ``1.2-2.1``.

        Raises:
            MalformedSpanError: if the text is not a valid location or the
                range end precedes its start.
        """
        if not text or not text.strip():
            raise MalformedSpanError("Empty location", context={"location": text})
        head, sep, tail = text.strip().partition("-")
        a = TokenTextPoint.parse(head)
        if not sep:
            return cls(a)
        b = TokenTextPoint.parse(tail)
        location = cls(a, b)
        if location.end_bound < location.start_bound:
            raise MalformedSpanError(f"Range end precedes its start: {text!r}",
                                     context={"location": text})
        return location

    @property
    def is_range(self) -> bool:
        return self.b is not None

    @property
    def start_bound(self) -> Bound:
        return self.a.start_bound

    @property
    def end_bound(self) -> Bound:
        if self.b is None:
            return self.a.end_bound()
        return self.b.end_bound(as_range_end=True)

    @property
    def key(self) -> Tuple[Tuple[int, int, int, int], Tuple[int, int, int, int]]:
        return (self.a.key, (self.b or self.a).key)

    def relate(self, other: "TokenTextLocation") -> SpanRelation:
        """Relate this location to another one."""
        return relate_bounds(self.start_bound, self.end_bound, other.start_bound, other.end_bound)

    def contains(self, other: "TokenTextLocation") -> bool:
        return self.relate(other) in (SpanRelation.EQUAL, SpanRelation.CONTAINS)

    def overlaps(self, other: "TokenTextLocation") -> bool:
        return self.relate(other) is not SpanRelation.DISJOINT

    def __lt__(self, other: "TokenTextLocation") -> bool:
        if not isinstance(other, TokenTextLocation):
            return NotImplemented
        return self.key < other.key

    def __str__(self) -> str:
        return f"{self.a}-{self.b}" if self.b is not None else str(self.a)


__all__ = [
    "SpanRelation",
    "relate_bounds",
    "TextSpan",
    "TokenTextPoint",
    "TokenTextLocation",
]
