"""AI itinerary generation: Gemini (primary) + Groq (fallback).

Provider-agnostic base class with two concrete implementations:
- GeminiItineraryService: Google Gemini with a JSON response schema
- GroqItineraryService:   Groq LPU in JSON mode

The model only groups places it is given. Options that reference ids
outside the input are dropped, so an itinerary never contains invented
places.
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from mapmyway.models import (
    Coordinate,
    GeocodedAddress,
    Itinerary,
    ItineraryCategory,
    ItineraryDay,
    ItineraryError,
    ItineraryOption,
    PlaceResult,
)

logger = logging.getLogger(__name__)

MAX_OPTIONS_PER_CATEGORY = 3
MAX_DAYS = 30

SYSTEM_PROMPT = (
    "You are a road-trip planner. You receive a start point, an end point and "
    "a list of places found along the route. You organise ONLY those places "
    "into a day-by-day plan. Never invent places, ids or coordinates. "
    "Respond ONLY with valid JSON. No explanations, no markdown, no extra text."
)

ITINERARY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "itinerary": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "day": {"type": "NUMBER"},
                    "categories": {
                        "type": "ARRAY",
                        "items": {
                            "type": "OBJECT",
                            "properties": {
                                "category": {"type": "STRING"},
                                "options": {
                                    "type": "ARRAY",
                                    "items": {
                                        "type": "OBJECT",
                                        "properties": {
                                            "id": {"type": "STRING"},
                                            "name": {"type": "STRING"},
                                            "coordinates": {
                                                "type": "OBJECT",
                                                "properties": {
                                                    "latitude": {"type": "NUMBER"},
                                                    "longitude": {"type": "NUMBER"},
                                                },
                                            },
                                        },
                                        "property_ordering": ["id", "name", "coordinates"],
                                    },
                                },
                            },
                            "property_ordering": ["category", "options"],
                        },
                    },
                },
                "property_ordering": ["day", "categories"],
            },
        },
    },
}


class ItineraryService(ABC):
    """Base class for AI itinerary services.

    Prompt construction and response parsing live here. Subclasses only
    implement ``_generate()`` for their API client.
    """

    _timeout: float

    @abstractmethod
    async def _generate(self, prompt: str, timeout: float | None = None) -> str:
        """Send prompt to the AI provider and return raw text."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name for logging."""
        ...

    # ── Utilities ─────────────────────────────────────────────────────

    @staticmethod
    def _sanitize_input(text: str, max_length: int = 500) -> str:
        """Strip control characters and cap length before text enters a prompt."""
        cleaned = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)
        return cleaned[:max_length].strip()

    @staticmethod
    def _extract_json(text: str) -> str:
        if "```json" in text:
            return text.split("```json")[1].split("```")[0].strip()
        if "```" in text:
            return text.split("```")[1].split("```")[0].strip()
        return text

    @classmethod
    def _point_payload(cls, point: GeocodedAddress) -> dict[str, Any]:
        return {
            "address": cls._sanitize_input(point.formatted_address or point.original_address, 200),
            "coordinates": point.coordinate.model_dump(),
        }

    @classmethod
    def _place_payload(cls, place: PlaceResult) -> dict[str, Any]:
        return {
            "id": place.id,
            "name": cls._sanitize_input(place.name, 120),
            "category": place.category.keyword or place.category.type,
            "coordinates": place.coordinate.model_dump(),
            "rating": place.rating,
        }

    def build_prompt(
        self,
        start: GeocodedAddress,
        end: GeocodedAddress,
        places: list[PlaceResult],
        days: int,
    ) -> str:
        payload = [self._place_payload(p) for p in places]
        return (
            f"You are given a trip with a start point, an end point, and a list of places.\n"
            f"Create a day-by-day itinerary for {days} days.\n\n"
            f"Rules:\n"
            f"- Use ONLY the places provided below (do not invent new places).\n"
            f"- For each day, group places by category.\n"
            f"- For each category, suggest up to {MAX_OPTIONS_PER_CATEGORY} options.\n"
            f"- Cover the trip until all places are used.\n"
            f"- Keep a logical flow: start from the start point, finish at the end point.\n"
            f"- Use exactly {days} days, numbered from 1.\n\n"
            f"Return JSON shaped like:\n"
            f'{{"itinerary": [{{"day": 1, "categories": [{{"category": "museum", '
            f'"options": [{{"id": "place id", "name": "Place name", '
            f'"coordinates": {{"latitude": 0.0, "longitude": 0.0}}}}]}}]}}]}}\n\n'
            f"Start: {json.dumps(self._point_payload(start))}\n"
            f"End: {json.dumps(self._point_payload(end))}\n"
            f"Places: {json.dumps(payload)}\n"
            f"Days: {days}"
        )

    def parse_itinerary(self, text: str, places: list[PlaceResult], days: int) -> Itinerary:
        """Parse provider output, keeping only options that reference known places."""
        try:
            data = json.loads(self._extract_json(text))
        except json.JSONDecodeError as e:
            raise ItineraryError(f"{self.provider_name} returned invalid JSON: {e}") from e

        raw_days = data.get("itinerary") if isinstance(data, dict) else data
        if not isinstance(raw_days, list):
            raise ItineraryError(f"{self.provider_name} response has no itinerary list")

        known = {p.id: p for p in places}
        plan: list[ItineraryDay] = []
        dropped = 0

        for raw_day in raw_days:
            if not isinstance(raw_day, dict):
                continue
            try:
                day_number = int(raw_day.get("day", 0))
            except (TypeError, ValueError):
                continue
            if not 1 <= day_number <= days:
                continue

            categories: list[ItineraryCategory] = []
            for raw_cat in raw_day.get("categories") or []:
                if not isinstance(raw_cat, dict):
                    continue
                options: list[ItineraryOption] = []
                for raw_opt in raw_cat.get("options") or []:
                    place = known.get(str(raw_opt.get("id", ""))) if isinstance(raw_opt, dict) else None
                    if place is None:
                        dropped += 1
                        continue
                    # Take name and coordinates from our data, not the model's copy
                    options.append(ItineraryOption(
                        id=place.id,
                        name=place.name,
                        coordinate=Coordinate(
                            latitude=place.coordinate.latitude,
                            longitude=place.coordinate.longitude,
                        ),
                    ))
                    if len(options) == MAX_OPTIONS_PER_CATEGORY:
                        break
                if options:
                    categories.append(ItineraryCategory(
                        category=str(raw_cat.get("category") or "other"),
                        options=options,
                    ))
            plan.append(ItineraryDay(day=day_number, categories=categories))

        if dropped:
            logger.info(f"[{self.provider_name}] Dropped {dropped} options with unknown place ids")
        if not plan:
            raise ItineraryError(f"{self.provider_name} returned an empty itinerary")

        plan.sort(key=lambda d: d.day)
        return Itinerary(days=plan, provider=self.provider_name)

    # ── Shared implementation ────────────────────────────────────────

    async def generate(
        self,
        start: GeocodedAddress,
        end: GeocodedAddress,
        places: list[PlaceResult],
        days: int,
    ) -> Itinerary:
        """Group ``places`` into a ``days``-day itinerary.

        Raises:
            ValueError: if ``days`` is outside 1..30.
            ItineraryError: if the provider fails or returns nothing usable.
        """
        if not 1 <= days <= MAX_DAYS:
            raise ValueError(f"days must be between 1 and {MAX_DAYS}, got {days}")
        if not places:
            return Itinerary(
                days=[ItineraryDay(day=d) for d in range(1, days + 1)],
                provider=self.provider_name,
            )

        prompt = self.build_prompt(start, end, places, days)
        logger.info(f"[{self.provider_name}] Generating {days}-day itinerary for {len(places)} places")
        try:
            text = await self._generate(prompt, timeout=45.0)
        except asyncio.TimeoutError as e:
            raise ItineraryError(f"{self.provider_name} timed out") from e
        except Exception as e:
            raise ItineraryError(f"{self.provider_name} error: {e}") from e

        itinerary = self.parse_itinerary(text, places, days)
        logger.info(f"[{self.provider_name}] Itinerary ready: {len(itinerary.days)} days")
        return itinerary


# ═══════════════════════════════════════════════════════════════════════
# Provider: Gemini  (primary, structured JSON output)
# ═══════════════════════════════════════════════════════════════════════

class GeminiItineraryService(ItineraryService):
    """Google Gemini with a response schema."""

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "gemini-2.0-flash",
        timeout_seconds: float = 30.0,
    ) -> None:
        from google import genai

        self._api_key = api_key
        if not self._api_key:
            raise ValueError("GEMINI_API_KEY not provided")
        self._client = genai.Client(api_key=self._api_key)
        self._model_name = model_name
        self._timeout = timeout_seconds
        logger.info(f"[AI] Gemini ready: {self._model_name}")

    @property
    def provider_name(self) -> str:
        return "Gemini"

    async def _generate(self, prompt: str, timeout: float | None = None) -> str:
        from google.genai import types

        t = timeout or self._timeout
        try:
            resp = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model_name,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        system_instruction=SYSTEM_PROMPT,
                        response_mime_type="application/json",
                        response_schema=ITINERARY_SCHEMA,
                        temperature=0.3,
                    ),
                ),
                timeout=t,
            )
            return (resp.text or "").strip()
        except asyncio.TimeoutError:
            logger.warning(f"[Gemini] Timeout after {t}s")
            raise
        except Exception as e:
            logger.warning(f"[Gemini] Error: {e}")
            raise


# ═══════════════════════════════════════════════════════════════════════
# Provider: Groq  (fallback, fast LPU inference)
# ═══════════════════════════════════════════════════════════════════════

class GroqItineraryService(ItineraryService):
    """Groq LPU with Llama 3.1 8B Instant in JSON mode."""

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "llama-3.1-8b-instant",
        timeout_seconds: float = 15.0,
    ) -> None:
        from groq import AsyncGroq

        self._api_key = api_key
        if not self._api_key:
            raise ValueError("GROQ_API_KEY not provided")
        self._client = AsyncGroq(api_key=self._api_key)
        self._model_name = model_name
        self._timeout = timeout_seconds
        logger.info(f"[AI] Groq ready: {self._model_name}")

    @property
    def provider_name(self) -> str:
        return "Groq"

    async def _generate(self, prompt: str, timeout: float | None = None) -> str:
        t = timeout or self._timeout
        try:
            resp = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model_name,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    response_format={"type": "json_object"},
                    temperature=0.3,
                    max_tokens=4096,
                ),
                timeout=t,
            )
            return (resp.choices[0].message.content or "").strip()
        except asyncio.TimeoutError:
            logger.warning(f"[Groq] Timeout after {t}s")
            raise
        except Exception as e:
            logger.warning(f"[Groq] Error: {e}")
            raise


# ═══════════════════════════════════════════════════════════════════════
# Factory: Gemini → Groq
# ═══════════════════════════════════════════════════════════════════════

def create_itinerary_service(
    gemini_api_key: str = "",
    gemini_model: str = "gemini-2.0-flash",
    groq_api_key: str = "",
    groq_model: str = "llama-3.1-8b-instant",
) -> ItineraryService | None:
    """Create the best available itinerary service, or None if no key is set."""
    if gemini_api_key:
        try:
            return GeminiItineraryService(api_key=gemini_api_key, model_name=gemini_model)
        except Exception as e:
            logger.info(f"[AI] Gemini init failed: {e}")

    if groq_api_key:
        try:
            return GroqItineraryService(api_key=groq_api_key, model_name=groq_model)
        except Exception as e:
            logger.info(f"[AI] Groq init failed: {e}")

    logger.info("[AI] No itinerary provider configured (set GEMINI_API_KEY or GROQ_API_KEY)")
    return None
