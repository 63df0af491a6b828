"""Error types for MapMyWay.

Two families live here:

- Exceptions raised by the services (``TripPlannerError`` and subclasses).
  Remote failures carry the status string reported by the Google API.
- API-facing Pydantic models (``AppError``, ``ErrorCode``, ``RecoveryOption``,
  ``PlanWarning``) used in response envelopes.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class TripPlannerError(Exception):
    """Base class for all planner errors."""


class MalformedPolylineError(TripPlannerError):
    """The encoded polyline cannot be decoded."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class RemoteServiceError(TripPlannerError):
    """A remote collaborator reported a non-OK status."""

    service = "remote"

    def __init__(self, status: str, message: str = "") -> None:
        self.status = status
        self.message = message
        detail = f"{self.service} error: {status}"
        if message:
            detail = f"{detail} {message}"
        super().__init__(detail)


class GeocodingError(RemoteServiceError):
    service = "Geocoding"


class DirectionsError(RemoteServiceError):
    service = "Directions"


class PlacesError(RemoteServiceError):
    service = "Places"


class ItineraryError(TripPlannerError):
    """The AI provider could not produce a usable itinerary."""


class PlanTimeoutError(TripPlannerError):
    """Planning did not finish within the configured time budget."""


class PlaceSearchError(TripPlannerError):
    """A single (checkpoint, category) nearby search failed."""

    def __init__(self, checkpoint: Any, category: Any, status: str, cause: Exception | None = None) -> None:
        self.checkpoint = checkpoint
        self.category = category
        self.status = status
        self.__cause__ = cause
        super().__init__(
            f"Nearby search failed at checkpoint {checkpoint.index} "
            f"({checkpoint.coordinate.to_param()}) for {category.cache_token}: {status}"
        )


class ErrorCode(str, Enum):
    """Error codes returned in API error envelopes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_POLYLINE = "INVALID_POLYLINE"
    GEOCODING_FAILED = "GEOCODING_FAILED"
    NO_ROUTE = "NO_ROUTE"
    PLACES_FAILED = "PLACES_FAILED"
    ITINERARY_FAILED = "ITINERARY_FAILED"
    TIMEOUT = "TIMEOUT"
    API_ERROR = "API_ERROR"


class RecoveryOption(BaseModel):
    """An action the client can offer the user after an error."""

    label: str
    action: str
    params: Optional[dict[str, Any]] = None


class AppError(BaseModel):
    """Error payload of an API response."""

    code: ErrorCode
    message: str = Field(..., description="Technical error message")
    user_message: str = Field(..., description="Message safe to show to users")
    remote_status: Optional[str] = Field(None, description="Status reported by the remote API")
    recovery_options: list[RecoveryOption] = Field(default_factory=list)


class PlanWarning(BaseModel):
    """Non-fatal problem attached to a successful response."""

    code: str
    message: str
    details: list[str] = Field(default_factory=list)
