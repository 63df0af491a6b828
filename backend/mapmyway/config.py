"""Process configuration.

Values come from environment variables (a local ``.env`` file is loaded
first) and are read once into an immutable ``Settings`` object.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

try:
    load_dotenv()
except Exception:
    pass  # Python 3.14+ compat

THIRTY_DAYS = 30 * 24 * 3600


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={raw!r} is not an integer, using {default}")
        return default


def _positive_int_env(name: str, default: int) -> int:
    value = _int_env(name, default)
    if value < 1:
        logger.warning(f"[CONFIG] {name}={value} must be at least 1, using {default}")
        return default
    return value


def _choice_env(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.getenv(name, default).strip().lower()
    if value not in choices:
        logger.warning(f"[CONFIG] {name}={value!r} is not one of {choices}, using {default!r}")
        return default
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={raw!r} is not a number, using {default}")
        return default


def _list_env(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the planner and its collaborators."""

    # Google Maps platform
    google_api_key: str = ""
    google_maps_base_url: str = "https://maps.googleapis.com/maps/api"
    http_timeout_seconds: float = 5.0

    # AI itinerary providers
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"

    # Cache: "redis", "memory" or "none"
    cache_backend: str = "memory"
    redis_url: str = "redis://localhost:6379"
    cache_ttl_seconds: int = THIRTY_DAYS

    # Route sampling and search
    checkpoint_count: int = 10
    search_concurrency: int = 5
    results_per_search: int = 3
    default_radius_meters: int = 3000
    place_search_failure_policy: str = "abort"
    plan_timeout_seconds: float = 60.0

    preference_mapping_path: str | None = None
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        google_api_key=os.getenv("GOOGLE_API_KEY", ""),
        google_maps_base_url=os.getenv(
            "GOOGLE_MAPS_BASE_URL", "https://maps.googleapis.com/maps/api"
        ).rstrip("/"),
        http_timeout_seconds=_float_env("HTTP_TIMEOUT_SECONDS", 5.0),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
        groq_api_key=os.getenv("GROQ_API_KEY", ""),
        groq_model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
        cache_backend=os.getenv("CACHE_BACKEND", "memory").strip().lower(),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
        cache_ttl_seconds=_int_env("CACHE_TTL_SECONDS", THIRTY_DAYS),
        checkpoint_count=_positive_int_env("CHECKPOINT_COUNT", 10),
        search_concurrency=_positive_int_env("SEARCH_CONCURRENCY", 5),
        results_per_search=_positive_int_env("RESULTS_PER_SEARCH", 3),
        default_radius_meters=_positive_int_env("DEFAULT_RADIUS_METERS", 3000),
        place_search_failure_policy=_choice_env(
            "PLACE_SEARCH_FAILURE_POLICY", "abort", ("abort", "skip")
        ),
        plan_timeout_seconds=_float_env("PLAN_TIMEOUT_SECONDS", 60.0),
        preference_mapping_path=os.getenv("PREFERENCE_MAPPING_PATH") or None,
        cors_origins=_list_env(
            "CORS_ORIGINS", ["http://localhost:3000", "http://localhost:5173"]
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read on first use."""
    return load_settings()
