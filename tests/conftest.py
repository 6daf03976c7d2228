"""Shared fixtures.

Tests build real items and real components: NO MOCKS.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

import pytest

from philoflow.core.model import (
    ApparatusEntry,
    ApparatusFragment,
    CommentFragment,
    Item,
    LayerPart,
    TextPart,
)
from philoflow.core.rendering import (
    NullJsonRenderer,
    RendererRegistry,
    TeiOffApparatusJsonRenderer,
    TeiOffCommentJsonRenderer,
)

TEXT_TYPE_ID = TextPart.TYPE_ID
LAYER_TYPE_ID = LayerPart.TYPE_ID
APPARATUS_ROLE_ID = ApparatusFragment.TYPE_ID
COMMENT_ROLE_ID = CommentFragment.TYPE_ID

# "arma virumque cano" / "Troiae qui primus"
VIRGIL_LINES = ["arma virumque cano", "Troiae qui primus"]


def build_item(
    lines: Sequence[str],
    *,
    item_id: str = "i1",
    title: str = "Item",
    group_id: Optional[str] = None,
    flags: int = 0,
    apparatus: Sequence[ApparatusFragment] = (),
    comments: Sequence[CommentFragment] = (),
) -> Item:
    item = Item(id=item_id, title=title, group_id=group_id, flags=flags)
    text = TextPart()
    for line in lines:
        text.add_line(line)
    item.add_part(text)
    if apparatus:
        layer = LayerPart.of(ApparatusFragment)
        for fragment in apparatus:
            layer.add_fragment(fragment)
        item.add_part(layer)
    if comments:
        layer = LayerPart.of(CommentFragment)
        for fragment in comments:
            layer.add_fragment(fragment)
        item.add_part(layer)
    return item


@pytest.fixture
def item_factory() -> Callable[..., Item]:
    return build_item


@pytest.fixture
def annotated_item() -> Item:
    """Virgil's first line with an apparatus on "virumque" and a comment on "virumque cano"."""
    return build_item(
        VIRGIL_LINES,
        apparatus=[ApparatusFragment(
            location="1.2",
            entries=[
                ApparatusEntry(is_accepted=True, witnesses=["B"]),
                ApparatusEntry(value="virum", witnesses=["A"]),
            ],
        )],
        comments=[CommentFragment(location="1.2-1.3", tag="philology", text="A note")],
    )


@pytest.fixture
def tei_registry() -> RendererRegistry:
    registry = RendererRegistry()
    registry.add(NullJsonRenderer(), TEXT_TYPE_ID)
    registry.add(TeiOffApparatusJsonRenderer(), LAYER_TYPE_ID, APPARATUS_ROLE_ID)
    registry.add(TeiOffCommentJsonRenderer(), LAYER_TYPE_ID, COMMENT_ROLE_ID)
    return registry
