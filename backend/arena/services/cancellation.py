"""
Cancellation window and refund tiers.

A booking can be cancelled while it is pending or confirmed and at least
`cutoff_hours` remain before its start. The refund is the first tier whose
threshold is <= the time remaining, so exact boundaries (24h, 12h, 2h) fall
into the higher tier. Refunds are rounded half-up to whole currency units.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from arena.core.config import Settings, get_settings
from arena.models.booking import ACTIVE_STATUSES
from arena.services.pricing import round_amount


@dataclass(frozen=True)
class CancellationPolicy:
    timezone: ZoneInfo
    cutoff_hours: int = 2
    # (hours remaining threshold, refund percentage), highest threshold first
    tiers: tuple[tuple[int, int], ...] = ((24, 100), (12, 80), (2, 50))

    @classmethod
    def for_venue(cls, venue, settings: Settings | None = None) -> "CancellationPolicy":
        settings = settings or get_settings()

        def pick(override, default):
            return default if override is None else override

        tiers = (
            (pick(venue.full_refund_hours, settings.FULL_REFUND_HOURS), 100),
            (pick(venue.partial_refund_hours, settings.PARTIAL_REFUND_HOURS), settings.PARTIAL_REFUND_PERCENT),
            (pick(venue.cancellation_cutoff_hours, settings.CANCELLATION_CUTOFF_HOURS), settings.LATE_REFUND_PERCENT),
        )
        return cls(
            timezone=ZoneInfo(venue.timezone or settings.DEFAULT_VENUE_TIMEZONE),
            cutoff_hours=pick(venue.cancellation_cutoff_hours, settings.CANCELLATION_CUTOFF_HOURS),
            tiers=tuple(sorted(tiers, reverse=True)),
        )

    def time_until(self, booking, now: datetime) -> timedelta:
        return booking.starts_at(self.timezone) - now

    def hours_until(self, booking, now: datetime) -> float:
        return self.time_until(booking, now) / timedelta(hours=1)

    def can_cancel(self, booking, now: datetime) -> bool:
        if booking.status not in ACTIVE_STATUSES:
            return False
        return self.time_until(booking, now) >= timedelta(hours=self.cutoff_hours)

    def refund_percentage(self, booking, now: datetime) -> int:
        if not self.can_cancel(booking, now):
            return 0
        remaining = self.time_until(booking, now)
        for threshold, percentage in self.tiers:
            if remaining >= timedelta(hours=threshold):
                return percentage
        return 0

    def refund_amount(self, booking, now: datetime) -> int:
        percentage = self.refund_percentage(booking, now)
        if percentage == 0:
            return 0
        refund = round_amount(Decimal(booking.total_amount) * percentage / 100)
        return min(max(refund, 0), booking.total_amount)
