"""Route directions."""

from .service import (
    MAX_WAYPOINTS,
    CachedDirectionsService,
    DirectionsService,
    GoogleDirectionsService,
)

__all__ = [
    "MAX_WAYPOINTS",
    "CachedDirectionsService",
    "DirectionsService",
    "GoogleDirectionsService",
]
