from __future__ import annotations

from philoflow.core.model import ApparatusFragment, CommentFragment, GenericPart, Item
from philoflow.core.text import (
    F_EOL_TAIL,
    AnnotatedTextRange,
    BlockLinearTextTreeFilter,
    ExportedSegment,
    MergeLinearTextTreeFilter,
    TextTreeBuilder,
    TextTreeNode,
    TokenTextPartFlattener,
    build_tree_from_ranges,
    is_layer_selected,
)

APPARATUS_ID = "it.vedph.token-text-layer:fr.it.vedph.apparatus@0"
COMMENT_ID = "it.vedph.token-text-layer:fr.it.vedph.comment@0"


def _nodes(tree: TextTreeNode) -> list:
    return [(s.text, s.fragment_ids, s.has_feature(F_EOL_TAIL)) for s in tree.iter_segments()]


def _linear(*texts: str) -> TextTreeNode:
    root = TextTreeNode()
    node = root
    for n, text in enumerate(texts, start=1):
        node = node.add_child(TextTreeNode(str(n), ExportedSegment(text), text))
    return root


class TestExportedSegment:
    def test_features(self) -> None:
        segment = ExportedSegment("x")
        segment.add_feature("a", "1")
        segment.add_feature("a", "1")
        segment.add_feature("a", "2")
        assert segment.features == [("a", "1"), ("a", "2")]

        segment.add_feature("a", "3", unique=True)
        assert segment.features == [("a", "3")]
        assert segment.get_feature("a") == "3"

        segment.remove_features("a")
        assert not segment.has_feature("a")

    def test_merge(self) -> None:
        target = ExportedSegment("ab", tags={"t1"})
        source = ExportedSegment("cd", features=[("f", "v")], tags={"t2"})

        merged = ExportedSegment.merge_segments(source, target)

        assert merged is target
        assert target.text == "abcd"
        assert target.tags == {"t1", "t2"}
        assert target.has_feature("f", "v")


class TestTextTreeBuilder:
    def setup_method(self) -> None:
        self.builder = TextTreeBuilder(TokenTextPartFlattener())

    def test_linear_tree(self, annotated_item: Item) -> None:
        tree = self.builder.build(annotated_item)

        assert tree.data is None
        assert _nodes(tree) == [
            ("arma ", [], False),
            ("virumque", [COMMENT_ID, APPARATUS_ID], False),
            (" cano", [COMMENT_ID], True),
            ("Troiae qui primus", [], False),
        ]
        for node in tree.iter_nodes():
            assert len(node.children) <= 1

    def test_text_is_preserved(self, annotated_item: Item) -> None:
        tree = self.builder.build(annotated_item)
        assert tree.get_text() == "arma virumque cano\nTroiae qui primus"

    def test_segments_cover_text_exactly(self, item_factory) -> None:
        item = item_factory(
            ["a bb ccc", "dddd", "e"],
            apparatus=[ApparatusFragment(location="1.2@1x1"), ApparatusFragment(location="3.1")],
            comments=[CommentFragment(location="1.1-2.1")],
        )

        tree = self.builder.build(item)

        assert tree.get_text() == "a bb ccc\ndddd\ne"

    def test_item_without_text(self) -> None:
        assert self.builder.build(Item(parts=[GenericPart(type_id="x")])) is None

    def test_layer_selection(self, annotated_item: Item) -> None:
        tree = self.builder.build(annotated_item, {"fr.it.vedph.comment"})

        ids = {frid for s in tree.iter_segments() for frid in s.fragment_ids}
        assert ids == {COMMENT_ID}

    def test_empty_line(self, item_factory) -> None:
        tree = self.builder.build(item_factory(["a", "", "b"]))

        assert _nodes(tree) == [("a", [], True), ("", [], True), ("b", [], False)]
        assert tree.get_text() == "a\n\nb"


class TestLayerSelection:
    def test_empty_selection_selects_all(self, annotated_item: Item) -> None:
        for part in annotated_item.get_layer_parts():
            assert is_layer_selected(part, set())

    def test_selection_by_type_role_or_key(self, annotated_item: Item) -> None:
        apparatus, comment = annotated_item.get_layer_parts()

        assert is_layer_selected(apparatus, {"it.vedph.token-text-layer"})
        assert is_layer_selected(comment, {"it.vedph.token-text-layer:fr.it.vedph.comment"})
        assert not is_layer_selected(apparatus, {"fr.it.vedph.comment"})


class TestBuildTreeFromRanges:
    def test_line_feed_becomes_feature(self) -> None:
        text = "ab\ncd"
        ranges = [AnnotatedTextRange(0, 1), AnnotatedTextRange(2, 2), AnnotatedTextRange(3, 4)]

        tree = build_tree_from_ranges(ranges, text)

        assert _nodes(tree) == [("ab", [], True), ("cd", [], False)]
        assert [n.id for n in tree.iter_nodes()] == ["", "1", "2"]


class TestMergeLinearTextTreeFilter:
    def test_merges_same_fragments(self) -> None:
        text = "abcdef"
        ranges = [AnnotatedTextRange(0, 1, ["x@0"]), AnnotatedTextRange(2, 3, ["x@0"]),
                  AnnotatedTextRange(4, 5)]
        tree = build_tree_from_ranges(ranges, text)

        merged = MergeLinearTextTreeFilter().apply(tree)

        assert [(s.text, s.fragment_ids) for s in merged.iter_segments()] == [
            ("abcd", ["x@0"]),
            ("ef", []),
        ]
        assert [n.id for n in merged.iter_nodes()] == ["", "1", "2"]

    def test_original_tree_is_unchanged(self) -> None:
        tree = _linear("a", "b")

        merged = MergeLinearTextTreeFilter().apply(tree)

        assert [s.text for s in merged.iter_segments()] == ["ab"]
        assert [s.text for s in tree.iter_segments()] == ["a", "b"]

    def test_line_end_is_not_merged(self, annotated_item: Item) -> None:
        item = Item(id="i2", parts=list(annotated_item.parts[:1]))
        tree = TextTreeBuilder(TokenTextPartFlattener()).build(item)

        merged = MergeLinearTextTreeFilter().apply(tree)

        assert [s.text for s in merged.iter_segments()] == ["arma virumque cano", "Troiae qui primus"]


class TestBlockLinearTextTreeFilter:
    def test_splits_at_line_feeds(self) -> None:
        tree = _linear("ab\ncd", "ef")

        result = BlockLinearTextTreeFilter().apply(tree)

        assert _nodes(result) == [("ab", [], True), ("cd", [], False), ("ef", [], False)]
        assert [n.id for n in result.iter_nodes()] == ["", "1", "2", "3"]
        assert result.get_text() == "ab\ncdef"

    def test_tree_without_line_feeds(self) -> None:
        result = BlockLinearTextTreeFilter().apply(_linear("a", "b"))
        assert [s.text for s in result.iter_segments()] == ["a", "b"]
