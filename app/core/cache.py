"""
app/core/cache.py

Small helpers around the shared Redis client for read-through caching.
"""

import logging
from typing import Any

from app.core.blacklist import redis_client
from app.core.config import settings

logger = logging.getLogger(__name__)

CACHE_PREFIX = settings.CACHE_PREFIX
DEFAULT_CACHE_TTL = settings.DEFAULT_CACHE_TTL


def _cache_key(namespace: str, identifier: Any) -> str:
    """Generate a simple cache key."""
    return f"{CACHE_PREFIX}{namespace}:{identifier}"


def _paginated_cache_key(namespace: str, identifier: Any, skip: int, limit: int) -> str:
    """Generate a cache key for paginated data."""
    return f"{CACHE_PREFIX}{namespace}:{identifier}:skip={skip}:limit={limit}"


async def invalidate_pattern(pattern: str) -> int:
    """Delete every key matching `pattern`. Returns the number removed."""
    if not redis_client:
        return 0
    deleted = 0
    try:
        async for key in redis_client.scan_iter(match=pattern):
            await redis_client.delete(key)
            deleted += 1
        logger.info(f"[CACHE ASYNC] Deleted {deleted} keys matching pattern {pattern}")
    except Exception as e:
        logger.error(f"[CACHE ASYNC ERROR] Failed pattern deletion for {pattern}: {e}")
    return deleted
