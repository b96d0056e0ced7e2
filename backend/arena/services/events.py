"""
Booking domain events.

The lifecycle records what happened; aggregate bookkeeping (venue and user
counters, ratings) consumes these after the booking transaction commits.
"""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class BookingCreated:
    booking_id: int
    venue_id: int
    user_id: int
    booking_date: date
    total_amount: int
    occurred_at: datetime


@dataclass(frozen=True)
class BookingCancelled:
    booking_id: int
    venue_id: int
    user_id: int
    booking_date: date
    refund_amount: int
    occurred_at: datetime


@dataclass(frozen=True)
class BookingReviewed:
    booking_id: int
    venue_id: int
    rating: int
    occurred_at: datetime


BookingEvent = BookingCreated | BookingCancelled | BookingReviewed


@dataclass
class EventOutbox:
    """Per-request buffer of events, drained once the transaction commits."""

    events: list = field(default_factory=list)

    def publish(self, event: BookingEvent) -> None:
        self.events.append(event)

    def drain(self) -> list:
        drained, self.events = self.events, []
        return drained


def get_outbox() -> EventOutbox:
    """FastAPI dependency: a fresh outbox per request."""
    return EventOutbox()
