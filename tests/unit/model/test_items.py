from __future__ import annotations

import json

import pytest

from philoflow.core.model import (
    BASE_TEXT_ROLE_ID,
    ApparatusEntry,
    ApparatusEntryType,
    ApparatusFragment,
    CommentFragment,
    GenericPart,
    Item,
    LayerPart,
    TextPart,
    item_from_dict,
    part_from_dict,
)


class TestParts:
    def test_text_part_defaults(self) -> None:
        part = TextPart()
        part.add_line("arma virumque")
        part.add_line("cano")

        assert part.type_id == "it.vedph.token-text"
        assert part.role_id == BASE_TEXT_ROLE_ID
        assert [line.y for line in part.lines] == [1, 2]
        assert part.get_text() == "arma virumque\ncano"
        assert part.lines[0].get_tokens() == ["arma", "virumque"]

    def test_layer_part_role_follows_fragment_type(self) -> None:
        layer = LayerPart.of(CommentFragment)

        assert layer.type_id == "it.vedph.token-text-layer"
        assert layer.role_id == "fr.it.vedph.comment"
        assert layer.renderer_key == "it.vedph.token-text-layer:fr.it.vedph.comment"

    def test_layer_part_rejects_non_fragment_role(self) -> None:
        with pytest.raises(ValueError):
            LayerPart(role_id="comments")

    def test_layer_to_dict_is_json_serializable(self) -> None:
        layer = LayerPart.of(ApparatusFragment)
        layer.add_fragment(ApparatusFragment(
            location="1.2",
            entries=[ApparatusEntry(type=ApparatusEntryType.DELETION, note="om.")],
        ))

        data = json.loads(json.dumps(layer.to_dict()))

        assert data["roleId"] == "fr.it.vedph.apparatus"
        assert data["fragments"][0]["location"] == "1.2"
        assert data["fragments"][0]["entries"][0]["type"] == "deletion"
        assert data["fragments"][0]["entries"][0]["note"] == "om."


class TestItem:
    def test_add_part_binds_item(self) -> None:
        item = Item(id="i1")
        part = item.add_part(TextPart())
        assert part.item_id == "i1"
        assert item.get_text_part() is part

    def test_layer_parts_sorted_by_role(self) -> None:
        item = Item()
        comment = item.add_part(LayerPart.of(CommentFragment))
        apparatus = item.add_part(LayerPart.of(ApparatusFragment))
        item.add_part(TextPart())

        assert item.get_layer_parts() == [apparatus, comment]

    def test_item_without_text(self) -> None:
        assert Item().get_text_part() is None


class TestSerialization:
    def test_item_round_trip_keeps_parts(self, annotated_item: Item) -> None:
        item = item_from_dict(json.loads(json.dumps(annotated_item.to_dict())))

        assert item.id == annotated_item.id
        assert isinstance(item.get_text_part(), TextPart)
        apparatus, comment = item.get_layer_parts()
        assert isinstance(apparatus.fragments[0], ApparatusFragment)
        assert apparatus.fragments[0].entries[1].value == "virum"
        assert isinstance(comment.fragments[0], CommentFragment)
        assert comment.fragments[0].text == "A note"

    def test_unknown_part_type_is_generic(self) -> None:
        part = part_from_dict({"id": "p1", "typeId": "it.vedph.note", "text": "hello"})

        assert isinstance(part, GenericPart)
        assert part.payload == {"text": "hello"}
        assert part.to_dict()["text"] == "hello"
