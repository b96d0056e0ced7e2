"""
Booking lifecycle: create / confirm payment / cancel / complete / review.

State machine
=============

    pending ──► confirmed ──► completed
       │            │
       └────────────┴──► cancelled

`completed` and `cancelled` are terminal. Every transition is written with
a compare-and-set on the current status, so two racing requests (double
cancel, double complete) cannot both succeed: the loser re-reads the row and
gets AlreadyCancelled / InvalidTransition.

Creation validates the request against the venue, prices it, and hands the
pending booking to the SlotAllocator, which is the only component allowed
to create an active booking.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from arena.core.clock import Clock
from arena.core.config import Settings, get_settings
from arena.core.errors import (
    AlreadyCancelled,
    BookingNotFound,
    InvalidTransition,
    NotCancellable,
    ReviewNotAllowed,
    SlotConflict,
    ValidationError,
    VenueUnavailable,
)
from arena.core.logging import get_logger
from arena.core.metrics import (
    booking_latency,
    record_booking_attempt,
    record_cancellation,
    record_transition,
)
from arena.models.booking import BOOKING_TYPES, PAYMENT_METHODS, Booking, BookingStatus, PaymentStatus
from arena.models.venue import normalize_hhmm
from arena.services.cancellation import CancellationPolicy
from arena.services.events import BookingCancelled, BookingCreated, BookingReviewed, EventOutbox
from arena.services.guards import SlotGuard
from arena.services.pricing import booking_total
from arena.services.slot_allocator import SlotAllocator
from arena.stores.interfaces import BookingStore

logger = get_logger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value},
    BookingStatus.COMPLETED.value: set(),
    BookingStatus.CANCELLED.value: set(),
}


def assert_transition(current: str, target: str) -> None:
    if target in BOOKING_TRANSITIONS.get(current, set()):
        return
    if current == BookingStatus.CANCELLED.value and target == BookingStatus.CANCELLED.value:
        raise AlreadyCancelled()
    raise InvalidTransition(current, target)


@dataclass(frozen=True)
class CustomerDetails:
    name: str
    phone_number: str
    email: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass(frozen=True)
class CancellationResult:
    booking: Booking
    refund_amount: int
    refund_percentage: int


class BookingLifecycle:
    def __init__(
        self,
        store: BookingStore,
        guard: SlotGuard,
        clock: Clock,
        outbox: Optional[EventOutbox] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.allocator = SlotAllocator(store, guard)
        self.clock = clock
        self.outbox = outbox if outbox is not None else EventOutbox()
        self.settings = settings or get_settings()

    def venue_timezone(self, venue) -> ZoneInfo:
        return ZoneInfo(venue.timezone or self.settings.DEFAULT_VENUE_TIMEZONE)

    def cancellation_policy(self, venue) -> CancellationPolicy:
        return CancellationPolicy.for_venue(venue, self.settings)

    def validate_request(
        self,
        venue,
        booking_date: date,
        slot_start: str,
        duration: float,
        now: datetime,
    ) -> str:
        """Check a booking request against the venue. Returns the normalised HH:MM start."""
        if not venue.is_open_for_booking:
            raise VenueUnavailable()

        try:
            slot_start = normalize_hhmm(slot_start)
        except (TypeError, ValueError):
            raise ValidationError("Valid time slot is required (HH:MM format)")
        hour, minute = (int(part) for part in slot_start.split(":"))

        min_hours, max_hours = self.settings.MIN_BOOKING_HOURS, self.settings.MAX_BOOKING_HOURS
        if duration is None or not min_hours <= duration <= max_hours:
            raise ValidationError(f"Duration must be between {min_hours:g} and {max_hours:g} hours")
        venue_minimum = venue.minimum_booking_duration or min_hours
        if duration < venue_minimum:
            raise ValidationError(f"Minimum booking duration at this venue is {venue_minimum:g} hours")

        tz = self.venue_timezone(venue)
        today = now.astimezone(tz).date()
        advance_days = venue.advance_booking_days or self.settings.DEFAULT_ADVANCE_BOOKING_DAYS
        if booking_date < today:
            raise ValidationError("Booking date is in the past")
        if booking_date > today + timedelta(days=advance_days):
            raise ValidationError(f"Bookings open at most {advance_days} days in advance")
        if datetime.combine(booking_date, time(hour, minute), tzinfo=tz) <= now:
            raise ValidationError("This time slot has already started")

        hours = venue.hours_for(booking_date.weekday())
        if hours is None or hours.closed:
            raise ValidationError(f"Venue is closed on {WEEKDAYS[booking_date.weekday()]}")
        if not hours.open_hour <= hour < hours.close_hour:
            raise ValidationError(
                f"Time slot is outside operating hours ({hours.open_time}-{hours.close_time})"
            )

        return slot_start

    async def create(
        self,
        venue,
        user_id: int,
        booking_date: date,
        slot_start: str,
        duration: float,
        customer: CustomerDetails,
        booking_type: str = "individual",
    ) -> Booking:
        """
        Validate, price and atomically claim a slot.

        Raises:
            VenueUnavailable / ValidationError: request rejected, nothing written.
            SlotConflict: the slot is already held by another active booking.
        """
        now = self.clock.now()

        with booking_latency.time():
            try:
                slot_start = self.validate_request(venue, booking_date, slot_start, duration, now)
                if booking_type not in BOOKING_TYPES:
                    raise ValidationError(f"Unknown booking type: {booking_type}")
            except (ValidationError, VenueUnavailable) as e:
                record_booking_attempt("invalid")
                logger.info("booking_rejected", venue_id=venue.id, user_id=user_id, reason=e.message)
                raise

            hour = int(slot_start.split(":")[0])
            booking = Booking(
                venue_id=venue.id,
                user_id=user_id,
                booking_date=booking_date,
                slot_start=slot_start,
                slot_hour=hour,
                duration=duration,
                total_amount=booking_total(venue, hour, duration),
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                payment_method="cash",
                customer_name=customer.name,
                customer_phone=customer.phone_number,
                customer_email=customer.email,
                special_requests=customer.special_requests,
                booking_type=booking_type,
            )

            try:
                booking = await self.allocator.try_reserve(booking)
            except SlotConflict:
                record_booking_attempt("conflict")
                logger.info(
                    "slot_conflict",
                    venue_id=venue.id,
                    date=booking_date.isoformat(),
                    slot=slot_start,
                    user_id=user_id,
                )
                raise
            except Exception as e:
                record_booking_attempt("error")
                logger.error("booking_failed", venue_id=venue.id, user_id=user_id, error=str(e))
                raise

        record_booking_attempt("success")
        self.outbox.publish(
            BookingCreated(
                booking_id=booking.id,
                venue_id=booking.venue_id,
                user_id=booking.user_id,
                booking_date=booking.booking_date,
                total_amount=booking.total_amount,
                occurred_at=now,
            )
        )
        logger.info(
            "booking_created",
            booking_id=booking.id,
            reference=booking.formatted_reference,
            venue_id=venue.id,
            user_id=user_id,
            date=booking_date.isoformat(),
            slot=slot_start,
            total_amount=booking.total_amount,
        )
        return booking

    async def _transition(self, booking: Booking, target: str, patch: dict) -> Booking:
        assert_transition(booking.status, target)

        updated = await self.store.update_booking(
            booking.id,
            {**patch, "status": target},
            expected_status=booking.status,
        )
        if updated is None:
            # Lost a race: report against the state that won
            current = await self.store.get_booking(booking.id)
            if current is None:
                raise BookingNotFound(booking.id)
            logger.warning(
                "booking_transition_race",
                booking_id=booking.id,
                expected=booking.status,
                actual=current.status,
                target=target,
            )
            assert_transition(current.status, target)
            raise InvalidTransition(current.status, target)

        record_transition(target)
        return updated

    async def confirm_payment(
        self,
        booking: Booking,
        payment_method: str = "cash",
        transaction_id: Optional[str] = None,
    ) -> Booking:
        """pending -> confirmed, payment recorded as paid."""
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method: {payment_method}")

        now = self.clock.now()
        booking = await self._transition(
            booking,
            BookingStatus.CONFIRMED.value,
            {
                "payment_status": PaymentStatus.PAID.value,
                "payment_method": payment_method,
                "transaction_id": transaction_id,
                "paid_at": now,
                "confirmed_at": now,
            },
        )
        logger.info("booking_confirmed", booking_id=booking.id, payment_method=payment_method)
        return booking

    async def cancel(
        self,
        booking: Booking,
        actor_id: int,
        *,
        venue,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CancellationResult:
        """
        Cancel a pending or confirmed booking and record the refund once.

        Raises:
            AlreadyCancelled: the booking was cancelled before.
            InvalidTransition: the booking is completed.
            NotCancellable: less than the cutoff remains before the slot.
        """
        now = now or self.clock.now()

        if booking.status == BookingStatus.CANCELLED.value:
            raise AlreadyCancelled()
        if booking.status == BookingStatus.COMPLETED.value:
            raise InvalidTransition(booking.status, BookingStatus.CANCELLED.value)

        policy = self.cancellation_policy(venue)
        if not policy.can_cancel(booking, now):
            logger.info(
                "cancellation_denied",
                booking_id=booking.id,
                hours_until=round(policy.hours_until(booking, now), 2),
            )
            raise NotCancellable(policy.cutoff_hours)

        refund_percentage = policy.refund_percentage(booking, now)
        refund_amount = policy.refund_amount(booking, now)

        patch = {
            "cancelled_at": now,
            "cancelled_by": actor_id,
            "cancellation_reason": reason or "Cancelled by user",
            "refund_amount": refund_amount,
        }
        if refund_amount > 0:
            patch["payment_status"] = PaymentStatus.REFUNDED.value
            patch["refunded_at"] = now

        booking = await self._transition(booking, BookingStatus.CANCELLED.value, patch)
        await self.allocator.release(booking)

        record_cancellation(refund_percentage, refund_amount)
        self.outbox.publish(
            BookingCancelled(
                booking_id=booking.id,
                venue_id=booking.venue_id,
                user_id=booking.user_id,
                booking_date=booking.booking_date,
                refund_amount=refund_amount,
                occurred_at=now,
            )
        )
        logger.info(
            "booking_cancelled",
            booking_id=booking.id,
            cancelled_by=actor_id,
            refund_amount=refund_amount,
            refund_percentage=refund_percentage,
        )
        return CancellationResult(
            booking=booking,
            refund_amount=refund_amount,
            refund_percentage=refund_percentage,
        )

    async def complete(self, booking: Booking) -> Booking:
        """confirmed -> completed. A second call fails with InvalidTransition."""
        booking = await self._transition(
            booking,
            BookingStatus.COMPLETED.value,
            {"completed_at": self.clock.now()},
        )
        logger.info("booking_completed", booking_id=booking.id)
        return booking

    async def add_review(
        self,
        booking: Booking,
        rating: int,
        comment: Optional[str] = None,
    ) -> Booking:
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if booking.status != BookingStatus.COMPLETED.value:
            raise ReviewNotAllowed("Can only review completed bookings")
        if booking.rating is not None:
            raise ReviewNotAllowed("Booking already reviewed")

        now = self.clock.now()
        updated = await self.store.save_review(
            booking.id,
            {"rating": rating, "review_comment": comment, "reviewed_at": now},
        )
        if updated is None:
            # a concurrent request stored its review first
            raise ReviewNotAllowed("Booking already reviewed")

        self.outbox.publish(
            BookingReviewed(
                booking_id=updated.id,
                venue_id=updated.venue_id,
                rating=rating,
                occurred_at=now,
            )
        )
        logger.info("booking_reviewed", booking_id=updated.id, rating=rating)
        return updated
