"""
Tests for whitelisted content merging.
"""

from src.bundler.merger import CONTENT_TYPES, ContentMerger


class TestContentMerger:
    """Tests for ContentMerger.merge_unit."""

    def test_concatenates_in_order(self):
        merger = ContentMerger()
        merger.merge_unit({"feat": [{"name": "A"}]})
        merger.merge_unit({"feat": [{"name": "B"}, {"name": "C"}]})

        assert merger.content == {"feat": [{"name": "A"}, {"name": "B"}, {"name": "C"}]}

    def test_field_order_preserved(self):
        merger = ContentMerger()
        merger.merge_unit({"spell": [1], "race": [2]})
        merger.merge_unit({"item": [3], "spell": [4]})

        assert list(merger.content) == ["spell", "race", "item"]
        assert merger.content["spell"] == [1, 4]

    def test_metadata_never_merged(self):
        merger = ContentMerger()
        merger.merge_unit({"metadata": {"sources": []}, "feat": []})

        assert "metadata" not in merger.content
        assert merger.content == {"feat": []}

    def test_unknown_keys_dropped(self):
        merger = ContentMerger()
        merger.merge_unit({"feat": [1], "homebrewStuff": [2], "_meta": [3]})

        assert merger.content == {"feat": [1]}

    def test_non_list_values_dropped(self):
        merger = ContentMerger()
        merger.merge_unit({"feat": {"name": "not a list"}, "spell": "x", "item": None})

        assert merger.content == {}

    def test_does_not_mutate_unit(self):
        unit = {"feat": [1, 2]}
        merger = ContentMerger()
        merger.merge_unit(unit)
        merger.merge_unit({"feat": [3]})

        assert unit == {"feat": [1, 2]}

    def test_whitelist_contents(self):
        assert "optionalfeature" in CONTENT_TYPES
        assert "variantrule" in CONTENT_TYPES
        assert "metadata" not in CONTENT_TYPES
        assert len(CONTENT_TYPES) == 15
