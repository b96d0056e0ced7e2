"""
Redis caching for slot listings.

CACHING STRATEGY
================

What we cache:
  - The computed slot list of one venue on one date (JSON-serialized)
  - Cache key pattern: "slots:{venue_id}:{YYYY-MM-DD}"

Why:
  - The slot grid is the hottest read in the app (every venue screen)
  - Recomputing means loading the venue's hours and the day's bookings

Invalidation strategy:
  - Create and cancel delete exactly the key of the affected (venue, date),
    no SCAN needed
  - Short TTL (SLOT_CACHE_TTL) as safety net

The cache is advisory only. Booking creation never reads it: the unique
index is what decides whether a slot is free. A stale listing can at worst
show a free slot that then fails with 409.
"""

import json
from datetime import date
from typing import Optional

from arena.core.config import get_settings
from arena.core.logging import get_logger
from arena.core.metrics import record_cache_operation
from arena.infrastructure.redis_client import get_redis

logger = get_logger(__name__)
settings = get_settings()


def _make_slots_key(venue_id: int, booking_date: date) -> str:
    return f"slots:{venue_id}:{booking_date.isoformat()}"


async def get_cached_slots(venue_id: int, booking_date: date) -> Optional[list[dict]]:
    """Retrieve a cached slot list."""
    client = await get_redis()
    if not client:
        return None

    key = _make_slots_key(venue_id, booking_date)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_slots(venue_id: int, booking_date: date, slots: list[dict]) -> None:
    """Cache a slot list with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_slots_key(venue_id, booking_date)
    try:
        await client.setex(key, settings.SLOT_CACHE_TTL, json.dumps(slots))
        logger.debug("cache_set", key=key, ttl=settings.SLOT_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_slots(venue_id: int, booking_date: date) -> None:
    """Drop the cached slot list of one venue/date."""
    client = await get_redis()
    if not client:
        return

    key = _make_slots_key(venue_id, booking_date)
    try:
        await client.delete(key)
        logger.info("cache_invalidated", key=key)
    except Exception as e:
        logger.error("cache_invalidation_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
