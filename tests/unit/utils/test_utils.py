from __future__ import annotations

from pathlib import Path

import pytest

from philoflow.core.utils import deep_merge, merge_lists, read_document, write_text_atomic
from philoflow.data import CONFIG_DIR, SCHEMAS_DIR, get_data_path, list_data_files, read_yaml


class TestMerge:
    def test_nested_dicts(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        result = deep_merge(base, {"a": {"c": 4}})

        assert result == {"a": {"b": 1, "c": 4}, "d": 3}
        assert base == {"a": {"b": 1, "c": 2}, "d": 3}

    @pytest.mark.parametrize(
        ("override", "expected"),
        [(["+", 3], [1, 2, 3]), (["=", 3], [3]), ([3], [3]), ([], [])],
    )
    def test_lists(self, override: list, expected: list) -> None:
        assert merge_lists([1, 2], override) == expected


class TestFileIO:
    def test_atomic_write_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "out.txt"

        write_text_atomic(path, "line\n")
        write_text_atomic(path, "again\n")

        assert path.read_text(encoding="utf-8") == "again\n"
        assert [p.name for p in path.parent.iterdir()] == ["out.txt"]

    def test_read_yaml_and_json(self, tmp_path: Path) -> None:
        (tmp_path / "a.yml").write_text("x: [1, 2]\n", encoding="utf-8")
        (tmp_path / "b.json").write_text('{"x": [1, 2]}', encoding="utf-8")

        assert read_document(tmp_path / "a.yml") == read_document(tmp_path / "b.json") == {"x": [1, 2]}

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("x: [1, 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            read_document(path)


class TestBundledData:
    def test_bundled_files_exist(self) -> None:
        assert get_data_path("schemas", "composer.schema.yaml").is_file()
        assert get_data_path("config", "defaults.yaml").is_file()

    def test_read_yaml(self) -> None:
        defaults = read_yaml("config", "defaults.yaml")
        assert defaults["composer"]["tag"] == "it.vedph.item-composer.tei-off"

    def test_list_data_files(self) -> None:
        assert list_data_files(CONFIG_DIR) == ["defaults.yaml"]
        assert list_data_files(SCHEMAS_DIR) == ["composer.schema.yaml"]
        assert list_data_files("missing") == []

    def test_read_yaml_returns_copies(self) -> None:
        first = read_yaml(CONFIG_DIR, "defaults.yaml")
        first["composer"]["tag"] = "changed"

        assert read_yaml(CONFIG_DIR, "defaults.yaml")["composer"]["tag"] == "it.vedph.item-composer.tei-off"

    def test_missing_file(self) -> None:
        with pytest.raises(FileNotFoundError, match="defaults.yaml"):
            read_yaml(CONFIG_DIR, "nope.yaml")
