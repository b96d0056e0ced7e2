"""
Booking model representing a user's reservation of one venue slot.

Key design decisions:
- Partial unique index on (venue_id, booking_date, slot_hour) among
  non-cancelled rows is the mutual-exclusion guarantee: the database rejects
  a second active claim on the same slot, so there is no check-then-insert
  window. Cancelled rows fall out of the index and free the slot.
- Status field allows cancellation without deleting records (audit trail)
- The human-readable reference is derived from the database id, which is
  assigned atomically, instead of counting existing rows
"""

import enum
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)

from arena.core.config import get_settings
from arena.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
BOOKING_TYPES = ("individual", "team", "tournament", "training")
PAYMENT_METHODS = ("cash", "card", "online", "wallet")


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    booking_date = Column(Date, nullable=False)
    slot_start = Column(String(5), nullable=False)  # HH:MM
    slot_hour = Column(Integer, nullable=False)
    duration = Column(Float, nullable=False)
    total_amount = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(20), nullable=False, default="cash")
    transaction_id = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_email = Column(String(255), nullable=True)
    special_requests = Column(String(1000), nullable=True)
    booking_type = Column(String(20), nullable=False, default="individual")

    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation record, written once
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    refund_amount = Column(Integer, nullable=True)

    # Review record, written once
    rating = Column(Integer, nullable=True)
    review_comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # One active booking per venue slot
        Index(
            "uq_bookings_active_slot",
            "venue_id",
            "booking_date",
            "slot_hour",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
        Index("ix_bookings_venue_date", "venue_id", "booking_date"),
        Index("ix_bookings_user_created", "user_id", "created_at"),
        CheckConstraint("duration >= 0.5 AND duration <= 8", name="check_booking_duration"),
        CheckConstraint("slot_hour BETWEEN 0 AND 23", name="check_booking_slot_hour"),
        CheckConstraint("total_amount >= 0", name="check_booking_amount_non_negative"),
        CheckConstraint(
            "refund_amount IS NULL OR (refund_amount >= 0 AND refund_amount <= total_amount)",
            name="check_booking_refund_bounds",
        ),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded')",
            name="check_booking_payment_status",
        ),
        CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="check_booking_rating"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def reference(self) -> str | None:
        if self.id is None:
            return None
        return str(self.id + get_settings().BOOKING_REFERENCE_OFFSET).zfill(6)

    @property
    def formatted_reference(self) -> str | None:
        if self.reference is None:
            return None
        return f"{get_settings().BOOKING_REFERENCE_PREFIX}{self.reference}"

    @property
    def slot_end(self) -> str:
        hours, minutes = (int(part) for part in self.slot_start.split(":"))
        end_minutes = hours * 60 + minutes + round(self.duration * 60)
        return f"{end_minutes // 60:02d}:{end_minutes % 60:02d}"

    def starts_at(self, tz: ZoneInfo) -> datetime:
        hours, minutes = (int(part) for part in self.slot_start.split(":"))
        return datetime.combine(self.booking_date, time(hours, minutes), tzinfo=tz)

    def ends_at(self, tz: ZoneInfo) -> datetime:
        return self.starts_at(tz) + timedelta(hours=self.duration)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, venue={self.venue_id}, date={self.booking_date}, "
            f"slot={self.slot_start}, status={self.status})>"
        )
