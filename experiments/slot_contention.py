#!/usr/bin/env python3
"""
Slot contention experiment - runs without a database or Redis.

Many users race for the same venue slot through the real BookingLifecycle.
Two stores are compared:
  - atomic:  InMemoryBookingStore (check and insert are one step)
  - broken:  check-then-insert with a simulated round trip in between

Run: python experiments/slot_contention.py
"""

import asyncio
import os
import random
import time
from datetime import datetime, timedelta, timezone

os.environ.setdefault("REDIS_ENABLED", "false")

from arena.core.clock import FixedClock
from arena.core.errors import SlotConflict
from arena.models.venue import Venue, VenueOperatingHours
from arena.services.guards import OptimisticSlotGuard
from arena.services.lifecycle import BookingLifecycle, CustomerDetails
from arena.stores.memory import InMemoryBookingStore

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
SLOT_DATE = (NOW + timedelta(days=1)).date()


class CheckThenInsertStore(InMemoryBookingStore):
    """Looks for an active booking, waits, then inserts. Lets races through."""

    async def atomic_create(self, booking):
        taken = await self.find_bookings(booking.venue_id, booking.booking_date, ["pending", "confirmed"])
        await asyncio.sleep(random.uniform(0.001, 0.005))
        if any(b.slot_hour == booking.slot_hour for b in taken):
            raise SlotConflict(booking.venue_id, booking.booking_date, booking.slot_start)

        booking.id = self._next_id
        self._next_id += 1
        booking.created_at = booking.updated_at = datetime.now(timezone.utc)
        self._bookings[booking.id] = booking
        return booking


def make_venue() -> Venue:
    venue = Venue(
        id=1,
        name="Prime Turf",
        status="active",
        is_bookable=True,
        timezone="UTC",
        base_price=2000,
        currency="PKR",
        evening_multiplier=1.2,
        minimum_booking_duration=1,
        advance_booking_days=30,
    )
    venue.operating_hours = [
        VenueOperatingHours(weekday=day, open_time="06:00", close_time="23:00", closed=False)
        for day in range(7)
    ]
    return venue


async def run_test(strategy: str, users: int):
    print(f"\n{'='*60}")
    print(f"Store: {strategy.upper()} | Users: {users} | Slot: {SLOT_DATE} 18:00")
    print(f"{'='*60}\n")

    store = InMemoryBookingStore() if strategy == "atomic" else CheckThenInsertStore()
    lifecycle = BookingLifecycle(store, OptimisticSlotGuard(), FixedClock(NOW))
    venue = make_venue()
    customer = CustomerDetails(name="Racer", phone_number="+923001234567")
    response_times = []

    async def attempt(user_id: int) -> bool:
        started = time.perf_counter()
        try:
            await lifecycle.create(venue, user_id, SLOT_DATE, "18:00", 1, customer)
            return True
        except SlotConflict:
            return False
        finally:
            response_times.append((time.perf_counter() - started) * 1000)

    start_time = time.perf_counter()
    results = await asyncio.gather(*[attempt(i) for i in range(1, users + 1)])
    total_time = time.perf_counter() - start_time

    successful = sum(results)
    times = sorted(response_times)
    active = await store.find_bookings(venue.id, SLOT_DATE, ["pending", "confirmed"])

    print(f"Time:            {total_time:.3f}s")
    print(f"Successful:      {successful}")
    print(f"Conflicts:       {users - successful}")
    print(f"Active bookings: {len(active)}")
    print("\nResponse times:")
    print(f"  Avg: {sum(times)/len(times):.1f}ms")
    print(f"  P95: {times[int(len(times)*0.95)]:.1f}ms")
    print(f"  Max: {max(times):.1f}ms")

    print(f"\n{'='*60}")
    if len(active) == 1:
        print("✓ PASS: exactly one booking holds the slot")
    else:
        print(f"✗ FAIL: DOUBLE BOOKING! {len(active)} active bookings for one slot")
    print(f"{'='*60}")


async def main():
    users = 100

    print("\n" + "=" * 60)
    print("SLOT CONTENTION EXPERIMENT")
    print("=" * 60)

    await run_test("atomic", users)
    await run_test("broken", users)

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print("Atomic:  claim is one step, one winner, everyone else gets 409")
    print("Broken:  the gap between check and insert admits many winners")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
