"""
Tests for the cancellation window and refund tiers.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from arena.models.booking import Booking
from arena.services.cancellation import CancellationPolicy

from conftest import TOMORROW, build_venue

SLOT_START = datetime(2026, 3, 3, 18, 0, tzinfo=timezone.utc)


def _booking(status: str = "confirmed", total_amount: int = 2000) -> Booking:
    return Booking(
        venue_id=1,
        user_id=1,
        booking_date=TOMORROW,
        slot_start="18:00",
        slot_hour=18,
        duration=1,
        total_amount=total_amount,
        status=status,
    )


@pytest.mark.parametrize(
    "before_start, can_cancel, percentage, refund",
    [
        (timedelta(hours=48), True, 100, 2000),
        (timedelta(hours=24), True, 100, 2000),
        (timedelta(hours=23, minutes=59), True, 80, 1600),
        (timedelta(hours=12), True, 80, 1600),
        (timedelta(hours=11, minutes=59), True, 50, 1000),
        (timedelta(hours=2), True, 50, 1000),
        (timedelta(hours=1, minutes=59), False, 0, 0),
        (timedelta(0), False, 0, 0),
    ],
)
def test_refund_tiers(before_start, can_cancel, percentage, refund):
    policy = CancellationPolicy.for_venue(build_venue())
    booking = _booking()
    now = SLOT_START - before_start

    assert policy.can_cancel(booking, now) is can_cancel
    assert policy.refund_percentage(booking, now) == percentage
    assert policy.refund_amount(booking, now) == refund


def test_refund_rounds_half_up():
    policy = CancellationPolicy.for_venue(build_venue())
    # 80% of 1999 = 1599.2, 50% of 1999 = 999.5
    assert policy.refund_amount(_booking(total_amount=1999), SLOT_START - timedelta(hours=20)) == 1599
    assert policy.refund_amount(_booking(total_amount=1999), SLOT_START - timedelta(hours=3)) == 1000


@pytest.mark.parametrize("status", ["cancelled", "completed"])
def test_inactive_bookings_cannot_be_cancelled(status):
    policy = CancellationPolicy.for_venue(build_venue())
    now = SLOT_START - timedelta(days=3)
    assert policy.can_cancel(_booking(status=status), now) is False
    assert policy.refund_amount(_booking(status=status), now) == 0


def test_venue_overrides_thresholds():
    venue = build_venue(cancellation_cutoff_hours=6, full_refund_hours=48, partial_refund_hours=24)
    policy = CancellationPolicy.for_venue(venue)
    booking = _booking()

    assert policy.refund_percentage(booking, SLOT_START - timedelta(hours=48)) == 100
    assert policy.refund_percentage(booking, SLOT_START - timedelta(hours=30)) == 80
    assert policy.refund_percentage(booking, SLOT_START - timedelta(hours=6)) == 50
    assert policy.can_cancel(booking, SLOT_START - timedelta(hours=5)) is False


def test_slot_time_is_read_in_venue_timezone():
    policy = CancellationPolicy.for_venue(build_venue(timezone="Asia/Karachi"))
    booking = _booking()
    # 18:00 in Karachi (UTC+5) is 13:00 UTC
    local_start = datetime(2026, 3, 3, 18, 0, tzinfo=ZoneInfo("Asia/Karachi"))

    assert policy.time_until(booking, local_start - timedelta(hours=2)) == timedelta(hours=2)
    assert policy.can_cancel(booking, datetime(2026, 3, 3, 11, 30, tzinfo=timezone.utc)) is False
    assert policy.can_cancel(booking, datetime(2026, 3, 3, 11, 0, tzinfo=timezone.utc)) is True
