"""
Slot guard strategies and the factory that picks one from settings.
"""

from typing import Optional

from arena.core.config import get_settings
from .base import SlotGuard, slot_key
from .optimistic import OptimisticSlotGuard
from .redis_guard import RedisSlotGuard

__all__ = ['SlotGuard', 'slot_key', 'OptimisticSlotGuard', 'RedisSlotGuard', 'get_slot_guard']


def build_slot_guard(strategy: str) -> SlotGuard:
    """
    Strategy selection:
    - "optimistic": DB unique index only (default)
    - "redis": fail-fast marker in Redis in front of the DB
    """
    if strategy == 'redis':
        return RedisSlotGuard()
    return OptimisticSlotGuard()


# Singleton instance
_guard: Optional[SlotGuard] = None


def get_slot_guard() -> SlotGuard:
    """Get slot guard singleton. Also used as a FastAPI dependency."""
    global _guard
    if _guard is None:
        _guard = build_slot_guard(get_settings().SLOT_GUARD)
    return _guard
