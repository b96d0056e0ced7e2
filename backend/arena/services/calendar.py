"""
Venue calendar: derives the bookable hour slots of a venue for one date.

Slots are never stored. Each query recomputes them from the venue's
operating hours and the active bookings for that date, so the result is a
pure function of (venue config, bookings).
"""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable

from arena.models.booking import ACTIVE_STATUSES
from arena.services.pricing import price_category, slot_price
from arena.stores.interfaces import BookingStore


@dataclass(frozen=True)
class TimeSlot:
    start: str
    end: str
    price: int
    category: str
    available: bool

    def to_dict(self) -> dict:
        return asdict(self)


def build_slots(venue, booking_date: date, bookings: Iterable) -> list[TimeSlot]:
    hours = venue.hours_for(booking_date.weekday())
    if hours is None or hours.closed:
        return []

    open_hour, close_hour = hours.open_hour, hours.close_hour
    if close_hour <= open_hour:
        return []

    taken = {b.slot_hour for b in bookings if b.status in ACTIVE_STATUSES}

    return [
        TimeSlot(
            start=f"{hour:02d}:00",
            end=f"{hour + 1:02d}:00",
            price=slot_price(venue, hour),
            category=price_category(hour).value,
            available=hour not in taken,
        )
        for hour in range(open_hour, close_hour)
    ]


class VenueCalendar:
    """Read-only view over a venue's slots backed by a BookingStore."""

    def __init__(self, store: BookingStore):
        self._store = store

    async def available_slots(self, venue, booking_date: date) -> list[TimeSlot]:
        bookings = await self._store.find_bookings(venue.id, booking_date, ACTIVE_STATUSES)
        return build_slots(venue, booking_date, bookings)
