"""AI itinerary generation: Gemini (primary) + Groq (fallback)."""

from .service import (
    GeminiItineraryService,
    GroqItineraryService,
    ItineraryService,
    create_itinerary_service,
)

__all__ = [
    "GeminiItineraryService",
    "GroqItineraryService",
    "ItineraryService",
    "create_itinerary_service",
]
