"""
Slot guard strategy interface.
Allows swapping between different fail-fast approaches in front of the
authoritative database claim.
"""

from abc import ABC, abstractmethod
from datetime import date


def slot_key(venue_id: int, booking_date: date, slot_hour: int) -> str:
    return f"slot:{venue_id}:{booking_date.isoformat()}:{slot_hour:02d}"


class SlotGuard(ABC):
    """
    Interface for slot admission strategies.

    Implementations:
    - OptimisticSlotGuard: No pre-check, rely on the unique index
    - RedisSlotGuard: Short-lived SET NX marker in Redis before the insert

    A guard can only reject early. Admission never means the slot is won;
    the store's atomic insert decides that.
    """

    @abstractmethod
    async def acquire(self, key: str) -> bool:
        """
        Try to mark a slot as being claimed.

        Returns:
            True if admitted (proceed to the store)
            False if rejected (fail fast with SlotConflict)
        """
        pass

    @abstractmethod
    async def release(self, key: str):
        """Drop the marker (claim failed or booking cancelled)."""
        pass
