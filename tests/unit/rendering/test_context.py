from __future__ import annotations

import pytest

from philoflow.core.rendering import FlowSet, IdMap, RenderingContext


class TestFlowSet:
    def test_writes_are_staged_until_commit(self) -> None:
        flows = FlowSet()
        flows.write("text", "a")

        assert "text" in flows
        assert flows.get("text") is None
        assert flows.to_dict() == {}

        flows.commit()
        assert flows.to_dict() == {"text": "a"}

    def test_discard_keeps_committed_content(self) -> None:
        flows = FlowSet()
        flows.write("text", "a")
        flows.commit()
        flows.write("text", "b")
        flows.write("notes", "c")

        flows.discard()

        assert flows.to_dict() == {"text": "a"}
        assert "notes" not in flows

    def test_flows_are_append_only(self) -> None:
        flows = FlowSet()
        for chunk in ("a", "b", "c"):
            flows.write("text", chunk)
            flows.commit()
        assert flows.get("text") == "abc"

    def test_empty_write_creates_flow(self) -> None:
        flows = FlowSet()
        flows.write("empty", "")
        flows.commit()
        assert flows.to_dict() == {"empty": ""}
        assert flows.names == ["empty"]

    def test_flow_name_required(self) -> None:
        with pytest.raises(ValueError):
            FlowSet().write("", "x")


class TestIdMap:
    def test_mapping_is_idempotent(self) -> None:
        id_map = IdMap()
        assert id_map.map_source_id("i1/2") == 1
        assert id_map.map_source_id("i1/3") == 2
        assert id_map.map_source_id("i1/2") == 1
        assert id_map.get_source_id(2) == "i1/3"
        assert len(id_map) == 2

    def test_reset(self) -> None:
        id_map = IdMap()
        id_map.map_source_id("a")
        id_map.reset()
        assert id_map.get_mapped_id("a") is None
        assert id_map.map_source_id("b") == 2

        id_map.reset(seed=True)
        assert id_map.map_source_id("c") == 1


class TestRenderingContext:
    def test_data(self) -> None:
        context = RenderingContext()
        context.set_data("a", 1)
        context.update_data({"b": 2, "keep.c": 3})
        context.remove_data("a")
        assert context.data == {"b": 2, "keep.c": 3}

        context.clear_data("keep.")
        assert context.data == {"keep.c": 3}

    def test_counters(self) -> None:
        context = RenderingContext()
        assert [context.get_next_id_for("app") for _ in range(3)] == [1, 2, 3]
        assert context.get_next_id_for("note") == 1

    def test_clear(self) -> None:
        context = RenderingContext()
        context.map_source_id("seg", "x")
        context.flows.write("text", "a")
        context.flows.commit()
        context.group.ordinal = 3

        context.clear(seeds=True)

        assert context.flows.to_dict() == {}
        assert context.group.ordinal == 0
        assert context.map_source_id("seg", "y") == 1
