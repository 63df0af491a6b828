"""Places along a route: category mapping, sampling, search and dedup."""

from .categories import (
    CategoryMapping,
    PreferenceMapping,
    load_preference_mapping,
    map_preferences,
)
from .dedup import deduplicate_places
from .orchestrator import FailurePolicy, RouteSearchOrchestrator, RouteSearchOutcome
from .sampler import DEFAULT_CHECKPOINT_COUNT, checkpoint_stride, sample_checkpoints
from .service import (
    MAX_RADIUS_METERS,
    CachedPlacesService,
    GooglePlacesService,
    PlacesService,
    parse_place,
)

__all__ = [
    "CategoryMapping",
    "PreferenceMapping",
    "load_preference_mapping",
    "map_preferences",
    "deduplicate_places",
    "FailurePolicy",
    "RouteSearchOrchestrator",
    "RouteSearchOutcome",
    "DEFAULT_CHECKPOINT_COUNT",
    "checkpoint_stride",
    "sample_checkpoints",
    "MAX_RADIUS_METERS",
    "CachedPlacesService",
    "GooglePlacesService",
    "PlacesService",
    "parse_place",
]
