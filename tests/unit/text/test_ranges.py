from __future__ import annotations

import pytest

from philoflow.core.exceptions import MalformedSpanError
from philoflow.core.text import (
    AnnotatedTextRange,
    build_fragment_id,
    get_consecutive_ranges,
    get_fragment_index,
    get_fragment_layer,
    validate_nesting,
)


def _spans(ranges):
    return [(r.start, r.end, r.fragment_ids) for r in ranges]


class TestFragmentIds:
    def test_build_and_split(self) -> None:
        frid = build_fragment_id("it.vedph.token-text-layer", "fr.it.vedph.comment", 3)

        assert frid == "it.vedph.token-text-layer:fr.it.vedph.comment@3"
        assert get_fragment_layer(frid) == "it.vedph.token-text-layer:fr.it.vedph.comment"
        assert get_fragment_index(frid) == 3

    def test_index_with_suffix(self) -> None:
        assert get_fragment_index("layer:fr.x@12a") == 12

    @pytest.mark.parametrize("frid", ["layer", "layer@", "layer@x"])
    def test_invalid_index(self, frid: str) -> None:
        with pytest.raises(ValueError):
            get_fragment_index(frid)


class TestConsecutiveRanges:
    def test_overlapping_ranges_are_split(self) -> None:
        ranges = [AnnotatedTextRange(2, 4, ["a"]), AnnotatedTextRange(3, 6, ["b"])]

        result = get_consecutive_ranges(0, 9, ranges)

        assert _spans(result) == [
            (0, 1, []),
            (2, 2, ["a"]),
            (3, 4, ["a", "b"]),
            (5, 6, ["b"]),
            (7, 9, []),
        ]

    def test_no_ranges_covers_whole_text(self) -> None:
        assert _spans(get_consecutive_ranges(0, 4, [])) == [(0, 4, [])]

    def test_empty_extent(self) -> None:
        assert get_consecutive_ranges(0, -1, [AnnotatedTextRange(0, 0, ["a"])]) == []

    def test_breaks_cut_ranges(self) -> None:
        result = get_consecutive_ranges(0, 5, [AnnotatedTextRange(0, 5, ["a"])], breaks=[3])
        assert _spans(result) == [(0, 2, ["a"]), (3, 5, ["a"])]

    def test_outermost_fragment_first(self) -> None:
        inner = AnnotatedTextRange(2, 3, ["inner"])
        outer = AnnotatedTextRange(0, 5, ["outer"])

        result = get_consecutive_ranges(0, 5, [inner, outer])

        assert result[1].fragment_ids == ["outer", "inner"]

    def test_equal_spans_keep_registration_order(self) -> None:
        ranges = [AnnotatedTextRange(0, 2, ["first"]), AnnotatedTextRange(0, 2, ["second"])]

        result = get_consecutive_ranges(0, 2, ranges)

        assert result[0].fragment_ids == ["first", "second"]

    def test_ranges_cover_extent_without_gaps(self) -> None:
        ranges = [AnnotatedTextRange(1, 1, ["a"]), AnnotatedTextRange(4, 8, ["b"]),
                  AnnotatedTextRange(6, 7, ["c"])]

        result = get_consecutive_ranges(0, 10, ranges)

        assert result[0].start == 0
        assert result[-1].end == 10
        for previous, current in zip(result, result[1:]):
            assert current.start == previous.end + 1


class TestValidateNesting:
    def test_nested_and_disjoint_are_valid(self) -> None:
        validate_nesting([
            AnnotatedTextRange(0, 9, ["x:fr.a@0"]),
            AnnotatedTextRange(2, 3, ["x:fr.b@0"]),
            AnnotatedTextRange(12, 14, ["x:fr.b@1"]),
        ])

    def test_overlap_within_same_layer_is_valid(self) -> None:
        validate_nesting([
            AnnotatedTextRange(0, 5, ["x:fr.a@0"]),
            AnnotatedTextRange(3, 8, ["x:fr.a@1"]),
        ])

    def test_overlap_across_layers(self) -> None:
        with pytest.raises(MalformedSpanError) as exc_info:
            validate_nesting([
                AnnotatedTextRange(0, 5, ["x:fr.a@0"]),
                AnnotatedTextRange(3, 8, ["x:fr.b@0"]),
            ])
        assert exc_info.value.context["fragments"] == ["x:fr.a@0", "x:fr.b@0"]
