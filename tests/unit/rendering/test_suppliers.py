from __future__ import annotations

import pytest

from philoflow.core.model import Item
from philoflow.core.rendering import FlagRendererContextSupplier, RenderingContext
from philoflow.core.rendering.suppliers import parse_flag_entry, parse_flag_key


def _supply(supplier: FlagRendererContextSupplier, flags: int, **data) -> dict:
    context = RenderingContext()
    context.source = Item(flags=flags)
    context.update_data(data)
    supplier.supply(context)
    return context.data


class TestParsing:
    @pytest.mark.parametrize(("key", "value"), [("1", 1), ("16", 16), ("h10", 16), ("HFF", 255)])
    def test_flag_key(self, key: str, value: int) -> None:
        assert parse_flag_key(key) == value

    def test_invalid_flag_key(self) -> None:
        with pytest.raises(ValueError):
            parse_flag_key("x1")

    def test_flag_entry(self) -> None:
        assert parse_flag_entry("alpha=one=1") == ("alpha", "one=1")
        assert parse_flag_entry("alpha") == ("alpha", None)


class TestFlagRendererContextSupplier:
    def setup_method(self) -> None:
        self.supplier = FlagRendererContextSupplier(
            on={"1": "alpha=one", "4": "beta=four", "h10": "gamma=sixteen"},
            off={"1": "alpha=none", "h10": "gamma"},
        )

    def test_flags_on(self) -> None:
        data = _supply(self.supplier, 5)
        assert data["alpha"] == "one"
        assert data["beta"] == "four"
        assert "gamma" not in data

    def test_flags_off(self) -> None:
        data = _supply(self.supplier, 0, gamma="old")
        assert data == {"alpha": "none"}

    def test_combined_flag(self) -> None:
        supplier = FlagRendererContextSupplier(on={"3": "both=yes"})
        assert "both" not in _supply(supplier, 1)
        assert _supply(supplier, 7)["both"] == "yes"

    def test_no_item(self) -> None:
        context = RenderingContext()
        self.supplier.supply(context)
        assert context.data == {}
