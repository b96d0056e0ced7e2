"""
Optimistic slot guard - no pre-check.
Relies entirely on the database unique index.
"""

from arena.services.guards.base import SlotGuard


class OptimisticSlotGuard(SlotGuard):
    """
    No admission control - always admit.

    Use when:
    - Normal load, a handful of requests per slot
    - Simplicity preferred over fail-fast
    """

    async def acquire(self, key: str) -> bool:
        """Always admit - let the DB handle conflicts."""
        return True

    async def release(self, key: str):
        """No-op - nothing to release."""
        pass
