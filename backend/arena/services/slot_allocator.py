"""
Slot allocation: the only path that creates active bookings.

`try_reserve` is admit-then-insert:
  1. The slot guard may turn the request away early (advisory)
  2. The store's atomic insert decides who wins (authoritative)
If the insert fails for any reason the guard marker is dropped again, so a
failed attempt never leaves a slot half-reserved.
"""

from arena.core.errors import SlotConflict
from arena.core.logging import get_logger
from arena.core.metrics import record_slot_guard
from arena.models.booking import Booking
from arena.services.guards import SlotGuard, slot_key
from arena.stores.interfaces import BookingStore

logger = get_logger(__name__)


class SlotAllocator:
    def __init__(self, store: BookingStore, guard: SlotGuard):
        self._store = store
        self._guard = guard

    async def try_reserve(self, booking: Booking) -> Booking:
        """
        Atomically claim (venue, date, slot hour) by inserting `booking`.

        Raises:
            SlotConflict: the slot is already held by an active booking.
        """
        key = slot_key(booking.venue_id, booking.booking_date, booking.slot_hour)

        admitted = await self._guard.acquire(key)
        record_slot_guard(admitted)
        if not admitted:
            logger.info("slot_guard_rejected", key=key, user_id=booking.user_id)
            raise SlotConflict(booking.venue_id, booking.booking_date, booking.slot_start)

        try:
            return await self._store.atomic_create(booking)
        except Exception:
            await self._guard.release(key)
            raise

    async def release(self, booking: Booking) -> None:
        """Drop any guard marker for a booking's slot (after cancellation)."""
        await self._guard.release(slot_key(booking.venue_id, booking.booking_date, booking.slot_hour))
