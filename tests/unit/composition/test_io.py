from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from philoflow.core.composition import (
    DirectoryFlowSink,
    FlowSink,
    MemoryFlowSink,
    iter_items,
    load_items,
    sanitize_file_name,
)
from philoflow.core.model import Item, LayerPart, TextPart


class TestSanitizeFileName:
    def test_invalid_characters(self) -> None:
        assert sanitize_file_name('a<b>:c"d/e\\f|g?h*i') == "abcdefghi"
        assert sanitize_file_name("a/b", "_") == "a_b"

    def test_control_characters_and_trailing_dots(self) -> None:
        assert sanitize_file_name("a\tb\n..") == "ab"
        assert sanitize_file_name("") == ""


class TestLoadItems:
    def test_json_list(self, tmp_path: Path, annotated_item: Item) -> None:
        path = tmp_path / "items.json"
        path.write_text(json.dumps([annotated_item.to_dict()]), encoding="utf-8")

        items = load_items(path)

        assert [item.id for item in items] == ["i1"]
        assert isinstance(items[0].get_text_part(), TextPart)
        assert all(isinstance(p, LayerPart) for p in items[0].get_layer_parts())

    def test_yaml_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "items.yaml"
        path.write_text(yaml.safe_dump({"items": [
            {"id": "a", "title": "A", "groupId": "g"},
            {"id": "b", "title": "B"},
        ]}), encoding="utf-8")

        items = load_items(path)

        assert [(i.id, i.group_id) for i in items] == [("a", "g"), ("b", None)]

    def test_invalid_shape(self) -> None:
        with pytest.raises(ValueError):
            list(iter_items({"things": []}))
        with pytest.raises(ValueError):
            list(iter_items(["not an item"]))

    def test_invalid_document(self, tmp_path: Path) -> None:
        path = tmp_path / "items.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_items(path)


class TestFlowSinks:
    def test_memory_sink_accumulates(self) -> None:
        sink = MemoryFlowSink()
        sink.write_flows({"text": "a"})
        sink.write_flows({"text": "b", "notes": "c"})

        assert isinstance(sink, FlowSink)
        assert sink.flows == {"text": "ab", "notes": "c"}

    def test_directory_sink(self, tmp_path: Path) -> None:
        sink = DirectoryFlowSink(tmp_path / "out")

        sink.write_flows({"text": "<div>è</div>", "fr.it.vedph.comment": "<div/>"})

        assert (tmp_path / "out" / "text.xml").read_text(encoding="utf-8") == "<div>è</div>"
        assert (tmp_path / "out" / "fr.it.vedph.comment.xml").exists()
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == [
            "fr.it.vedph.comment.xml",
            "text.xml",
        ]

    def test_directory_sink_file_names(self, tmp_path: Path) -> None:
        sink = DirectoryFlowSink(tmp_path, extension=".txt")
        assert sink.get_path("a/b:c") == tmp_path / "a_b_c.txt"
