"""Clear cached map API responses.

Usage::

    python -m mapmyway.clear_cache            # everything
    python -m mapmyway.clear_cache "places:*" # one family of keys
"""

import argparse
import asyncio
import logging

from mapmyway.config import get_settings
from mapmyway.services.cache import CacheService, create_cache_service

logger = logging.getLogger(__name__)


async def clear_cache(cache: CacheService, pattern: str = "*") -> int:
    """Delete keys matching ``pattern`` and close the backend."""
    try:
        deleted = await cache.invalidate(pattern)
    finally:
        await cache.close()
    logger.info(f"[CACHE] Cleared {deleted} keys matching {pattern!r}")
    return deleted


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Clear cached map API responses")
    parser.add_argument("pattern", nargs="?", default="*", help="glob pattern of keys to delete")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    settings = get_settings()
    cache = create_cache_service(
        settings.cache_backend, settings.redis_url, settings.cache_ttl_seconds
    )
    try:
        asyncio.run(clear_cache(cache, args.pattern))
    except Exception as e:
        logger.error(f"[CACHE] Error clearing cache: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
