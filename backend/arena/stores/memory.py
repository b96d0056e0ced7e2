"""
Process-local booking store.

Used by tests and by the offline contention experiment. Exclusivity comes
from a single asyncio.Lock around the key check and insert, so the claim is
still one atomic step from the caller's point of view.
"""

import asyncio
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from arena.core.errors import SlotConflict
from arena.models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from arena.stores.interfaces import BookingStore


class InMemoryBookingStore(BookingStore):
    def __init__(self):
        self._lock = asyncio.Lock()
        self._bookings: dict[int, Booking] = {}
        self._active_slots: dict[tuple[int, date, int], int] = {}
        self._next_id = 1

    @staticmethod
    def _slot_key(booking: Booking) -> tuple[int, date, int]:
        return (booking.venue_id, booking.booking_date, booking.slot_hour)

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    async def find_bookings(
        self,
        venue_id: int,
        booking_date: date,
        statuses: Iterable[str],
    ) -> list[Booking]:
        wanted = set(statuses)
        return sorted(
            (
                b for b in self._bookings.values()
                if b.venue_id == venue_id and b.booking_date == booking_date and b.status in wanted
            ),
            key=lambda b: b.slot_hour,
        )

    async def atomic_create(self, booking: Booking) -> Booking:
        async with self._lock:
            key = self._slot_key(booking)
            if key in self._active_slots:
                raise SlotConflict(booking.venue_id, booking.booking_date, booking.slot_start)

            booking.id = self._next_id
            self._next_id += 1
            now = datetime.now(timezone.utc)
            booking.created_at = now
            booking.updated_at = now
            self._bookings[booking.id] = booking
            if booking.status in ACTIVE_STATUSES:
                self._active_slots[key] = booking.id
            return booking

    async def update_booking(
        self,
        booking_id: int,
        patch: dict[str, Any],
        expected_status: str,
    ) -> Optional[Booking]:
        async with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.status != expected_status:
                return None

            for field, value in patch.items():
                setattr(booking, field, value)
            booking.updated_at = datetime.now(timezone.utc)

            if booking.status == BookingStatus.CANCELLED.value:
                self._active_slots.pop(self._slot_key(booking), None)
            return booking

    async def save_review(self, booking_id: int, patch: dict[str, Any]) -> Optional[Booking]:
        async with self._lock:
            booking = self._bookings.get(booking_id)
            if (
                booking is None
                or booking.status != BookingStatus.COMPLETED.value
                or booking.rating is not None
            ):
                return None

            for field, value in patch.items():
                setattr(booking, field, value)
            booking.updated_at = datetime.now(timezone.utc)
            return booking

    async def list_user_bookings(
        self,
        user_id: int,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        matches = [
            b for b in self._bookings.values()
            if b.user_id == user_id and (status is None or b.status == status)
        ]
        matches.sort(key=lambda b: (b.created_at, b.id), reverse=True)
        start = (page - 1) * page_size
        return matches[start:start + page_size], len(matches)
