"""MapMyWay data models."""

from .core import (
    Checkpoint,
    Coordinate,
    Directions,
    DistanceInfo,
    DurationInfo,
    GeocodedAddress,
    Itinerary,
    ItineraryCategory,
    ItineraryDay,
    ItineraryOption,
    PlaceCategory,
    PlaceResult,
    SearchResult,
    TravelMode,
    TripPath,
    TripPlan,
)
from .errors import (
    AppError,
    DirectionsError,
    ErrorCode,
    GeocodingError,
    ItineraryError,
    MalformedPolylineError,
    PlaceSearchError,
    PlacesError,
    PlanTimeoutError,
    PlanWarning,
    RecoveryOption,
    RemoteServiceError,
    TripPlannerError,
)

__all__ = [
    # Core
    "Checkpoint",
    "Coordinate",
    "Directions",
    "DistanceInfo",
    "DurationInfo",
    "GeocodedAddress",
    "Itinerary",
    "ItineraryCategory",
    "ItineraryDay",
    "ItineraryOption",
    "PlaceCategory",
    "PlaceResult",
    "SearchResult",
    "TravelMode",
    "TripPath",
    "TripPlan",
    # Errors
    "AppError",
    "DirectionsError",
    "ErrorCode",
    "GeocodingError",
    "ItineraryError",
    "MalformedPolylineError",
    "PlaceSearchError",
    "PlacesError",
    "PlanTimeoutError",
    "PlanWarning",
    "RecoveryOption",
    "RemoteServiceError",
    "TripPlannerError",
]
