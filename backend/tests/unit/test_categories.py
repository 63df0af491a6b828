"""Unit tests for preference → place category mapping."""

import json
from pathlib import Path

import pytest

from mapmyway.models import PlaceCategory
from mapmyway.services.places import (
    PreferenceMapping,
    load_preference_mapping,
    map_preferences,
)


class TestMapPreferences:
    """Tests for map_preferences."""

    def test_known_and_unknown_keys(self, mapping: PreferenceMapping) -> None:
        result = map_preferences(mapping, {"food": ["vegan", "unicorn"]})
        assert result.categories == [PlaceCategory(type="restaurant", keyword="vegan")]
        assert result.dropped == ["food:unicorn"]

    def test_unknown_group(self, mapping: PreferenceMapping) -> None:
        result = map_preferences(mapping, {"nightlife": ["disco"]})
        assert result.categories == []
        assert result.dropped == ["nightlife:disco"]

    def test_group_then_key_order(self, mapping: PreferenceMapping) -> None:
        result = map_preferences(
            mapping, {"food": ["cafe", "vegan"], "activities": ["park", "museum"]}
        )
        assert [c.type for c in result.categories] == ["cafe", "restaurant", "park", "museum"]

    def test_empty_preferences(self, mapping: PreferenceMapping) -> None:
        result = map_preferences(mapping, {})
        assert result.categories == []
        assert result.dropped == []

    def test_drops_are_logged(self, mapping: PreferenceMapping, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            map_preferences(mapping, {"food": ["unicorn"]})
        assert "food:unicorn" in caplog.text


class TestPreferenceMapping:
    """Tests for PreferenceMapping."""

    def test_lookup(self, mapping: PreferenceMapping) -> None:
        assert mapping.lookup("activities", "museum") == PlaceCategory(type="museum")
        assert mapping.lookup("activities", "zoo") is None
        assert mapping.lookup("missing", "museum") is None

    def test_read_only(self, mapping: PreferenceMapping) -> None:
        with pytest.raises(TypeError):
            mapping.groups["food"]["pizza"] = PlaceCategory(type="restaurant")  # type: ignore[index]

    def test_rejects_non_object_group(self) -> None:
        with pytest.raises(ValueError):
            PreferenceMapping.from_dict({"food": ["vegan"]})  # type: ignore[dict-item]


class TestLoadPreferenceMapping:
    def test_bundled_mapping(self) -> None:
        mapping = load_preference_mapping()
        assert {"activities", "food"} <= set(mapping.groups)
        assert mapping.lookup("food", "vegan") == PlaceCategory(type="restaurant", keyword="vegan")

    def test_custom_path(self, tmp_path: Path) -> None:
        path = tmp_path / "mapping.json"
        path.write_text(json.dumps({"food": {"khinkali": {"type": "restaurant", "keyword": "khinkali"}}}))
        mapping = load_preference_mapping(path)
        assert list(mapping.groups) == ["food"]
        assert mapping.lookup("food", "khinkali").keyword == "khinkali"
