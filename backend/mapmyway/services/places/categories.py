"""Preference → place category mapping.

The mapping table groups user-facing preference keys ("vegan", "museum")
under preference groups ("food", "activities") and maps each key to the
``PlaceCategory`` used for nearby search. It is loaded once at startup
and passed explicitly to ``map_preferences``.
"""

import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from mapmyway.models import PlaceCategory

logger = logging.getLogger(__name__)


class PreferenceMapping:
    """Read-only ``group -> key -> PlaceCategory`` table."""

    def __init__(self, groups: Mapping[str, Mapping[str, PlaceCategory]]) -> None:
        self._groups = MappingProxyType({
            group: MappingProxyType(dict(entries)) for group, entries in groups.items()
        })

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping[str, Any]]) -> "PreferenceMapping":
        """Build from the JSON shape ``{group: {key: {"type": ..., "keyword": ...}}}``."""
        groups: dict[str, dict[str, PlaceCategory]] = {}
        for group, entries in raw.items():
            if not isinstance(entries, Mapping):
                raise ValueError(f"Preference group {group!r} must be an object")
            groups[group] = {
                key: value if isinstance(value, PlaceCategory) else PlaceCategory.model_validate(value)
                for key, value in entries.items()
            }
        return cls(groups)

    @property
    def groups(self) -> Mapping[str, Mapping[str, PlaceCategory]]:
        return self._groups

    def lookup(self, group: str, key: str) -> PlaceCategory | None:
        entries = self._groups.get(group)
        if entries is None:
            return None
        return entries.get(key)


@dataclass(frozen=True)
class CategoryMapping:
    """Result of mapping a user's preferences."""

    categories: list[PlaceCategory] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)  # "group:key"


def load_preference_mapping(path: str | Path | None = None) -> PreferenceMapping:
    """Load the mapping table from ``path`` or the bundled ``mapping.json``."""
    if path is None:
        raw_text = resources.files("mapmyway.data").joinpath("mapping.json").read_text("utf-8")
        source = "bundled mapping.json"
    else:
        raw_text = Path(path).read_text(encoding="utf-8")
        source = str(path)

    mapping = PreferenceMapping.from_dict(json.loads(raw_text))
    total = sum(len(entries) for entries in mapping.groups.values())
    logger.info(f"[CATEGORIES] Loaded {total} preference keys in {len(mapping.groups)} groups from {source}")
    return mapping


def map_preferences(
    mapping: PreferenceMapping, preferences: Mapping[str, list[str]]
) -> CategoryMapping:
    """Resolve ``{group: [keys]}`` into place categories.

    Categories come out in group order, then key order. Keys (or whole
    groups) missing from the table are dropped and reported, never raised.
    """
    categories: list[PlaceCategory] = []
    dropped: list[str] = []

    for group, keys in preferences.items():
        for key in keys:
            category = mapping.lookup(group, key)
            if category is None:
                dropped.append(f"{group}:{key}")
            else:
                categories.append(category)

    if dropped:
        logger.warning(f"[CATEGORIES] Dropped unknown preferences: {', '.join(dropped)}")

    return CategoryMapping(categories=categories, dropped=dropped)
