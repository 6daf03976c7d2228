from __future__ import annotations

import pytest

from philoflow.core.exceptions import MalformedSpanError
from philoflow.core.text import SpanRelation, TextSpan, TokenTextLocation, TokenTextPoint


class TestTokenTextPoint:
    def test_parse_token(self) -> None:
        point = TokenTextPoint.parse("2.3")
        assert (point.y, point.x, point.at, point.run) == (2, 3, 0, 0)

    def test_parse_characters(self) -> None:
        point = TokenTextPoint.parse("1.2@3x2")
        assert (point.y, point.x, point.at, point.run) == (1, 2, 3, 2)
        assert str(point) == "1.2@3x2"

    @pytest.mark.parametrize("text", ["", "1", "1.", "a.b", "1.2@", "1.2x3", "0.1", "1.0"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(MalformedSpanError):
            TokenTextPoint.parse(text)

    def test_points_are_ordered(self) -> None:
        assert TokenTextPoint.parse("1.2") < TokenTextPoint.parse("1.3")
        assert TokenTextPoint.parse("1.9") < TokenTextPoint.parse("2.1")


class TestTokenTextLocation:
    def test_parse_range(self) -> None:
        location = TokenTextLocation.parse("1.2-2.1")
        assert location.is_range
        assert str(location) == "1.2-2.1"

    def test_parse_empty(self) -> None:
        with pytest.raises(MalformedSpanError):
            TokenTextLocation.parse("  ")

    def test_range_end_before_start(self) -> None:
        with pytest.raises(MalformedSpanError) as exc_info:
            TokenTextLocation.parse("2.1-1.1")
        assert exc_info.value.context["location"] == "2.1-1.1"

    @pytest.mark.parametrize(
        ("a", "b", "relation"),
        [
            ("1.2", "1.2", SpanRelation.EQUAL),
            ("1.2", "1.1-1.3", SpanRelation.INSIDE),
            ("1.1-1.3", "1.2", SpanRelation.CONTAINS),
            ("1.1", "1.3", SpanRelation.DISJOINT),
            ("1.1-1.2", "1.2-1.3", SpanRelation.OVERLAP),
            ("1.2@1x2", "1.2@2x2", SpanRelation.OVERLAP),
            ("1.2@1x2", "1.2", SpanRelation.INSIDE),
        ],
    )
    def test_relate(self, a: str, b: str, relation: SpanRelation) -> None:
        assert TokenTextLocation.parse(a).relate(TokenTextLocation.parse(b)) is relation

    def test_contains_and_overlaps(self) -> None:
        outer = TokenTextLocation.parse("1.1-2.1")
        assert outer.contains(TokenTextLocation.parse("1.5"))
        assert outer.overlaps(TokenTextLocation.parse("2.1-2.2"))
        assert not outer.overlaps(TokenTextLocation.parse("2.2"))


class TestTextSpan:
    def test_invalid_span(self) -> None:
        with pytest.raises(MalformedSpanError):
            TextSpan(3, 2)

    def test_relate(self) -> None:
        assert TextSpan(0, 4).relate(TextSpan(2, 3)) is SpanRelation.CONTAINS
        assert TextSpan(0, 4).length == 5
