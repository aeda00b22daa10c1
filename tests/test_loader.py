"""
Tests for content unit loading and file discovery.
"""

import json

import pytest

from src.bundler.errors import MalformedInputError
from src.bundler.loader import discover_content_files, load_content_unit


class TestLoadContentUnit:
    """Tests for load_content_unit."""

    def test_parses_object(self, tmp_path):
        path = tmp_path / "unit.json"
        path.write_text(json.dumps({"feat": [{"name": "Alert"}]}), encoding="utf-8")

        unit = load_content_unit(path)

        assert unit == {"feat": [{"name": "Alert"}]}

    def test_preserves_field_order(self, tmp_path):
        path = tmp_path / "unit.json"
        path.write_text('{"spell": [], "feat": [], "item": []}', encoding="utf-8")

        assert list(load_content_unit(path)) == ["spell", "feat", "item"]

    def test_malformed_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"feat": [', encoding="utf-8")

        with pytest.raises(MalformedInputError) as exc:
            load_content_unit(path)

        assert "broken.json" in str(exc.value)
        assert "invalid JSON" in str(exc.value)

    def test_invalid_utf8_raises(self, tmp_path):
        path = tmp_path / "latin.json"
        path.write_bytes(b'{"feat": ["\xff"]}')

        with pytest.raises(MalformedInputError, match="not valid UTF-8") as exc:
            load_content_unit(path)

        assert "latin.json" in str(exc.value)

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(MalformedInputError, match="must be an object"):
            load_content_unit(path)

    def test_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            load_content_unit(tmp_path / "missing.json")


class TestDiscoverContentFiles:
    """Tests for discover_content_files."""

    def test_root_order_then_sorted_names(self, tmp_path):
        (tmp_path / "feats").mkdir()
        (tmp_path / "races").mkdir()
        for name in ["b.json", "a.json", "c.json"]:
            (tmp_path / "feats" / name).write_text("{}")
        (tmp_path / "races" / "z.json").write_text("{}")

        found = discover_content_files(tmp_path, ["races", "feats"])

        assert [(root, p.name) for root, p in found] == [
            ("races", "z.json"),
            ("feats", "a.json"),
            ("feats", "b.json"),
            ("feats", "c.json"),
        ]

    def test_only_json_files(self, tmp_path):
        (tmp_path / "items").mkdir()
        (tmp_path / "items" / "sword.json").write_text("{}")
        (tmp_path / "items" / "README.md").write_text("notes")
        (tmp_path / "items" / "nested.json").mkdir()

        found = discover_content_files(tmp_path, ["items"])

        assert [p.name for _, p in found] == ["sword.json"]

    def test_missing_root_skipped(self, tmp_path):
        (tmp_path / "spells").mkdir()
        (tmp_path / "spells" / "fire.json").write_text("{}")

        found = discover_content_files(tmp_path, ["races", "spells"])

        assert len(found) == 1
        assert found[0][0] == "spells"

    def test_root_that_is_a_file_raises(self, tmp_path):
        (tmp_path / "races").write_text("not a dir")

        with pytest.raises(NotADirectoryError):
            discover_content_files(tmp_path, ["races"])

    def test_no_roots(self, tmp_path):
        assert discover_content_files(tmp_path, []) == []
