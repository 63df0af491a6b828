"""Trip planning pipeline."""

from .service import TripPlannerService, create_trip_planner

__all__ = ["TripPlannerService", "create_trip_planner"]
