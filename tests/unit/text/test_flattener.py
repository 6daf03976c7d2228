from __future__ import annotations

import pytest

from philoflow.core.exceptions import MalformedSpanError, UnknownCoordinateError, UnsupportedPartError
from philoflow.core.model import (
    ApparatusFragment,
    CommentFragment,
    GenericPart,
    Item,
    LayerPart,
    TextPart,
)
from philoflow.core.text import TokenTextPartFlattener

COMMENT_PREFIX = "it.vedph.token-text-layer:fr.it.vedph.comment@"


def _text_part(*lines: str) -> TextPart:
    part = TextPart()
    for line in lines:
        part.add_line(line)
    return part


def _comments(*locations: str) -> LayerPart:
    layer = LayerPart.of(CommentFragment)
    for location in locations:
        layer.add_fragment(CommentFragment(location=location))
    return layer


def _resolved(text: str, ranges) -> list:
    return [text[r.start:r.end + 1] for r in ranges]


class TestTokenTextPartFlattener:
    def setup_method(self) -> None:
        self.flattener = TokenTextPartFlattener()
        self.text = _text_part("arma virumque cano", "Troiae qui primus")

    def test_text_joins_lines(self) -> None:
        text, ranges = self.flattener.flatten(self.text, [])
        assert text == "arma virumque cano\nTroiae qui primus"
        assert ranges == []

    def test_whole_tokens(self) -> None:
        text, ranges = self.flattener.flatten(self.text, [_comments("1.2", "2.1")])

        assert _resolved(text, ranges) == ["virumque", "Troiae"]
        assert (ranges[0].start, ranges[0].end) == (5, 12)
        assert ranges[0].fragment_ids == [f"{COMMENT_PREFIX}0"]
        assert ranges[1].fragment_ids == [f"{COMMENT_PREFIX}1"]

    def test_characters(self) -> None:
        text, ranges = self.flattener.flatten(self.text, [_comments("1.2@2x3")])

        assert (ranges[0].start, ranges[0].end) == (6, 8)
        assert _resolved(text, ranges) == ["iru"]

    def test_character_to_token_end(self) -> None:
        text, ranges = self.flattener.flatten(self.text, [_comments("1.2@6")])
        assert _resolved(text, ranges) == ["que"]

    def test_range_across_lines(self) -> None:
        text, ranges = self.flattener.flatten(self.text, [_comments("1.3-2.1")])
        assert _resolved(text, ranges) == ["cano\nTroiae"]

    def test_range_end_with_character(self) -> None:
        text, ranges = self.flattener.flatten(self.text, [_comments("1.1-1.2@3")])
        assert _resolved(text, ranges) == ["arma vir"]

    def test_inputs_are_not_changed(self) -> None:
        layer = _comments("1.2")
        before = (self.text.to_dict(), layer.to_dict())

        self.flattener.flatten(self.text, [layer])

        assert (self.text.to_dict(), layer.to_dict()) == before

    def test_non_layer_parts_are_ignored(self) -> None:
        _, ranges = self.flattener.flatten(self.text, [GenericPart(type_id="x")])
        assert ranges == []

    @pytest.mark.parametrize("location", ["3.1", "1.4", "1.2@9", "1.2@7x3"])
    def test_outside_text(self, location: str) -> None:
        with pytest.raises(UnknownCoordinateError) as exc_info:
            self.flattener.flatten(self.text, [_comments(location)])
        assert exc_info.value.context["fragment_id"] == f"{COMMENT_PREFIX}0"

    def test_malformed_location(self) -> None:
        with pytest.raises(MalformedSpanError):
            self.flattener.flatten(self.text, [_comments("1-2")])

    def test_overlap_across_layers(self, item_factory) -> None:
        item: Item = item_factory(
            ["arma virumque cano"],
            apparatus=[ApparatusFragment(location="1.1-1.2")],
            comments=[CommentFragment(location="1.2-1.3")],
        )

        with pytest.raises(MalformedSpanError) as exc_info:
            self.flattener.flatten(item.get_text_part(), item.get_layer_parts())

        apparatus = item.find_part(role_id="fr.it.vedph.apparatus")
        comments = item.find_part(role_id="fr.it.vedph.comment")
        assert exc_info.value.context["part_ids"] == [apparatus.id, comments.id]

    def test_rejects_other_parts(self) -> None:
        part = GenericPart(type_id="x", role_id="base-text")

        with pytest.raises(UnsupportedPartError) as exc_info:
            self.flattener.flatten(part, [])

        assert isinstance(exc_info.value, TypeError)
        assert exc_info.value.context == {"part_id": part.id, "type_id": "x"}
