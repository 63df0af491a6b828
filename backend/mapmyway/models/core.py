"""Core data models for MapMyWay.

This module contains the Pydantic models used throughout the application
for representing coordinates, route checkpoints, place categories, places
found along a route, directions and trip plans.

All models are frozen: aggregates are built from immutable parts and never
mutated after construction.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import PlanWarning


class TravelMode(str, Enum):
    """Travel modes accepted by the directions provider."""

    DRIVING = "driving"
    WALKING = "walking"
    BICYCLING = "bicycling"
    TRANSIT = "transit"


class Coordinate(BaseModel):
    """Geographic coordinate with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Longitude in degrees")

    def to_param(self) -> str:
        """Format as the ``lat,lng`` string Google APIs expect."""
        return f"{self.latitude},{self.longitude}"


class Checkpoint(BaseModel):
    """A sampled point along a route used as a search origin."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Index of the point in the decoded route")
    coordinate: Coordinate


class PlaceCategory(BaseModel):
    """Nearby-search filter: a Google place type plus an optional keyword."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., min_length=1, description="Google Places type, e.g. 'museum'")
    keyword: Optional[str] = Field(None, description="Extra keyword, e.g. 'vegan'")

    @property
    def cache_token(self) -> str:
        return f"{self.type}:{self.keyword or ''}"


class PlaceResult(BaseModel):
    """A place returned by a nearby search.

    ``id`` is the Google place id and identifies the place across all
    checkpoints and categories.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Google place id")
    name: str = Field(..., description="Display name of the place")
    coordinate: Coordinate
    address: Optional[str] = Field(None, description="Vicinity / short address")
    category: PlaceCategory = Field(..., description="Category whose search found the place")
    rating: Optional[float] = Field(None, ge=0, le=5)
    price_level: Optional[int] = Field(None, ge=0, le=4)
    opening_hours: Optional[dict[str, Any]] = None
    types: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Outcome of searching places along one route."""

    model_config = ConfigDict(frozen=True)

    checkpoint_count: int = Field(..., ge=0)
    places: list[PlaceResult] = Field(default_factory=list, description="Unique by id")
    categories: list[PlaceCategory] = Field(default_factory=list, description="Categories searched")
    dropped_preferences: list[str] = Field(
        default_factory=list, description="'group:key' preferences with no mapping entry"
    )
    failed_searches: list[str] = Field(
        default_factory=list, description="Searches skipped after a failure (skip policy only)"
    )


class GeocodedAddress(BaseModel):
    """An address resolved to a coordinate."""

    model_config = ConfigDict(frozen=True)

    original_address: str
    coordinate: Coordinate
    formatted_address: Optional[str] = None
    place_id: Optional[str] = None


class DistanceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    value: int = Field(0, ge=0, description="Distance in meters")


class DurationInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    value: int = Field(0, ge=0, description="Duration in seconds")


class Directions(BaseModel):
    """Route between two points as returned by the directions provider."""

    model_config = ConfigDict(frozen=True)

    distance: DistanceInfo
    duration: DurationInfo
    polyline: str = Field(..., description="Encoded overview polyline")
    start_location: Coordinate
    end_location: Coordinate
    start_address: Optional[str] = None
    end_address: Optional[str] = None
    travel_mode: TravelMode = TravelMode.DRIVING


class TripPath(BaseModel):
    """Final multi-stop route through the waypoints a user picked."""

    model_config = ConfigDict(frozen=True)

    origin: Coordinate
    destination: Coordinate
    waypoints: list[Coordinate] = Field(default_factory=list)
    overview_polyline: str


class ItineraryOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    coordinate: Optional[Coordinate] = None


class ItineraryCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    options: list[ItineraryOption] = Field(default_factory=list, max_length=3)


class ItineraryDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=1)
    categories: list[ItineraryCategory] = Field(default_factory=list)


class Itinerary(BaseModel):
    """Day-by-day grouping of places produced by the AI provider."""

    model_config = ConfigDict(frozen=True)

    days: list[ItineraryDay] = Field(default_factory=list)
    provider: Optional[str] = Field(None, description="Provider that generated the plan")


class TripPlan(BaseModel):
    """A planned trip: endpoints, route, places along it and optional itinerary."""

    model_config = ConfigDict(frozen=True)

    origin: str
    destination: str
    start: GeocodedAddress
    end: GeocodedAddress
    directions: Directions
    search: SearchResult
    preferences: dict[str, list[str]] = Field(default_factory=dict)
    search_radius: int = Field(..., gt=0, le=50000)
    itinerary: Optional[Itinerary] = None
    warnings: list[PlanWarning] = Field(default_factory=list)
