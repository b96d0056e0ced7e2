"""
Tests for the venue slot grid.
"""

from datetime import date

import pytest

from arena.models.booking import Booking
from arena.models.venue import VenueOperatingHours
from arena.services.calendar import VenueCalendar, build_slots
from arena.stores.memory import InMemoryBookingStore

from conftest import TOMORROW, build_venue


def _booking(venue_id: int, hour: int, status: str = "confirmed") -> Booking:
    return Booking(
        venue_id=venue_id,
        user_id=1,
        booking_date=TOMORROW,
        slot_start=f"{hour:02d}:00",
        slot_hour=hour,
        duration=1,
        total_amount=2000,
        status=status,
    )


def test_slots_cover_operating_hours():
    venue = build_venue(id=1)
    slots = build_slots(venue, TOMORROW, [])

    assert [s.start for s in slots][:2] == ["06:00", "07:00"]
    assert slots[-1].start == "22:00"
    assert slots[-1].end == "23:00"
    assert len(slots) == 17
    assert all(s.available for s in slots)


def test_slot_prices_follow_categories():
    venue = build_venue(id=1)
    by_start = {s.start: s for s in build_slots(venue, TOMORROW, [])}

    assert by_start["18:00"].category == "evening"
    assert by_start["18:00"].price == 2400
    assert by_start["21:00"].category == "night"
    assert by_start["21:00"].price == 2000


def test_closed_day_has_no_slots():
    hours = [
        VenueOperatingHours(weekday=day, open_time="06:00", close_time="23:00", closed=(day == TOMORROW.weekday()))
        for day in range(7)
    ]
    venue = build_venue(id=1, hours=hours)
    assert build_slots(venue, TOMORROW, []) == []


def test_missing_hours_row_means_closed():
    hours = [VenueOperatingHours(weekday=0, open_time="06:00", close_time="23:00", closed=False)]
    venue = build_venue(id=1, hours=hours)
    # 2026-03-03 is a Tuesday
    assert build_slots(venue, TOMORROW, []) == []


def test_close_before_open_has_no_slots():
    hours = [
        VenueOperatingHours(weekday=day, open_time="10:00", close_time="10:30", closed=False)
        for day in range(7)
    ]
    venue = build_venue(id=1, hours=hours)
    assert build_slots(venue, TOMORROW, []) == []


def test_active_bookings_mark_slots_taken():
    venue = build_venue(id=1)
    bookings = [_booking(1, 18), _booking(1, 19, status="pending"), _booking(1, 20, status="cancelled")]
    availability = {s.start: s.available for s in build_slots(venue, TOMORROW, bookings)}

    assert availability["18:00"] is False
    assert availability["19:00"] is False
    assert availability["20:00"] is True


def test_slots_are_deterministic():
    venue = build_venue(id=1)
    bookings = [_booking(1, 9)]
    assert build_slots(venue, TOMORROW, bookings) == build_slots(venue, TOMORROW, bookings)


@pytest.mark.asyncio
async def test_calendar_reads_active_bookings_from_store():
    store = InMemoryBookingStore()
    venue = build_venue(id=1)
    await store.atomic_create(_booking(1, 7))
    await store.atomic_create(_booking(2, 8))

    slots = await VenueCalendar(store).available_slots(venue, TOMORROW)
    availability = {s.start: s.available for s in slots}

    assert availability["07:00"] is False
    assert availability["08:00"] is True


@pytest.mark.asyncio
async def test_other_dates_do_not_affect_slots():
    store = InMemoryBookingStore()
    venue = build_venue(id=1)
    await store.atomic_create(_booking(1, 7))

    slots = await VenueCalendar(store).available_slots(venue, date(2026, 3, 10))
    assert all(s.available for s in slots)
