"""
Redis slot guard for high-contention slots (Friday-night prime time).

Circuit Breaker Pattern:
  On Redis failure, the guard "fails open" (admits the request).
  A Redis outage must not block bookings; the database unique index
  remains authoritative and still rejects the losers.
"""

from arena.core.config import get_settings
from arena.core.logging import get_logger
from arena.core.metrics import redis_circuit_breaker_open, redis_connection_errors
from arena.infrastructure.redis_client import get_redis
from arena.services.guards.base import SlotGuard

logger = get_logger(__name__)


class RedisSlotGuard(SlotGuard):
    """
    Strategy: SET key NX PX ttl before touching the database.
    The first request for a slot holds the marker; concurrent ones are
    turned away without a database round trip. The marker expires on its
    own, so a crashed request can never lock a slot for longer than the TTL.
    """

    def __init__(self, ttl_ms: int | None = None):
        self.ttl_ms = ttl_ms or get_settings().SLOT_GUARD_TTL_MS

    async def acquire(self, key: str) -> bool:
        client = await get_redis()
        if client is None:
            redis_circuit_breaker_open.set(1)
            return True

        try:
            acquired = await client.set(key, "1", nx=True, px=self.ttl_ms)
            redis_circuit_breaker_open.set(0)
            return bool(acquired)
        except Exception as e:
            # Circuit breaker: fail open
            redis_connection_errors.inc()
            redis_circuit_breaker_open.set(1)
            logger.warning("slot_guard_fail_open", key=key, error=str(e))
            return True

    async def release(self, key: str):
        client = await get_redis()
        if client is None:
            return
        try:
            await client.delete(key)
        except Exception as e:
            # Marker expires on its own
            redis_connection_errors.inc()
            logger.warning("slot_guard_release_failed", key=key, error=str(e))
