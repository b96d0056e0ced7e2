"""
Venue (turf) model with pricing, operating hours and booking policy.

Key design decisions:
- Price multipliers are nullable columns; NULL means "no variation" (x1)
- Operating hours live in a child table, one row per weekday; a missing
  row means the venue is closed that day
- Cancellation thresholds are nullable overrides of the global defaults
- Aggregate stats are only written by the stats consumer, never by the
  booking path, so slot exclusivity never contends with bookkeeping
"""

import re

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from arena.core.config import get_settings
from arena.db.base import Base, TimestampMixin

VENUE_STATUSES = ("active", "inactive", "maintenance", "pending_approval")

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def normalize_hhmm(value: str, allow_midnight_close: bool = False) -> str:
    """Zero-pad an H:MM / HH:MM string. Raises ValueError when malformed."""
    if allow_midnight_close and value == "24:00":
        return value
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format: {value!r} (expected HH:MM)")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="pending_approval")
    is_bookable = Column(Boolean, nullable=False, default=True)
    timezone = Column(String(64), nullable=False, default=lambda: get_settings().DEFAULT_VENUE_TIMEZONE)

    # Pricing
    base_price = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default=lambda: get_settings().DEFAULT_CURRENCY)
    morning_multiplier = Column(Float, nullable=True)
    afternoon_multiplier = Column(Float, nullable=True)
    evening_multiplier = Column(Float, nullable=True)
    night_multiplier = Column(Float, nullable=True)

    # Booking policy
    minimum_booking_duration = Column(Float, nullable=False, default=1)
    advance_booking_days = Column(Integer, nullable=False, default=30)
    cancellation_cutoff_hours = Column(Integer, nullable=True)
    full_refund_hours = Column(Integer, nullable=True)
    partial_refund_hours = Column(Integer, nullable=True)

    # Aggregates (stats consumer only)
    total_bookings = Column(Integer, nullable=False, default=0)
    total_cancellations = Column(Integer, nullable=False, default=0)
    total_revenue = Column(Integer, nullable=False, default=0)
    rating_average = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    operating_hours = relationship(
        "VenueOperatingHours",
        back_populates="venue",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="VenueOperatingHours.weekday",
    )

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="check_venue_base_price_non_negative"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'maintenance', 'pending_approval')",
            name="check_venue_status",
        ),
        CheckConstraint("minimum_booking_duration >= 0.5", name="check_venue_min_duration"),
        CheckConstraint("advance_booking_days >= 1", name="check_venue_advance_days"),
        CheckConstraint(
            "(morning_multiplier IS NULL OR morning_multiplier >= 0.1) AND "
            "(afternoon_multiplier IS NULL OR afternoon_multiplier >= 0.1) AND "
            "(evening_multiplier IS NULL OR evening_multiplier >= 0.1) AND "
            "(night_multiplier IS NULL OR night_multiplier >= 0.1)",
            name="check_venue_multipliers",
        ),
        Index("ix_venues_status", "status"),
    )

    @property
    def is_open_for_booking(self) -> bool:
        return self.status == "active" and bool(self.is_bookable)

    def multiplier_for(self, category: str) -> float:
        value = getattr(self, f"{category}_multiplier", None)
        return 1.0 if value is None else value

    def hours_for(self, weekday: int):
        """Operating hours row for a weekday (0 = Monday), or None."""
        for hours in self.operating_hours:
            if hours.weekday == weekday:
                return hours
        return None

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name}, status={self.status})>"


class VenueOperatingHours(Base):
    __tablename__ = "venue_operating_hours"

    id = Column(Integer, primary_key=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)  # 0 = Monday .. 6 = Sunday
    open_time = Column(String(5), nullable=True)
    close_time = Column(String(5), nullable=True)
    closed = Column(Boolean, nullable=False, default=False)

    venue = relationship("Venue", back_populates="operating_hours")

    __table_args__ = (
        UniqueConstraint("venue_id", "weekday", name="uq_venue_weekday_hours"),
        CheckConstraint("weekday BETWEEN 0 AND 6", name="check_hours_weekday"),
        # Zero-padded HH:MM strings compare in time order
        CheckConstraint(
            "closed OR (open_time IS NOT NULL AND close_time IS NOT NULL AND open_time < close_time)",
            name="check_hours_open_before_close",
        ),
    )

    @validates("open_time")
    def _validate_open(self, key, value):
        return None if value is None else normalize_hhmm(value)

    @validates("close_time")
    def _validate_close(self, key, value):
        return None if value is None else normalize_hhmm(value, allow_midnight_close=True)

    @property
    def open_hour(self) -> int:
        return int(self.open_time.split(":")[0])

    @property
    def close_hour(self) -> int:
        return int(self.close_time.split(":")[0])

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{self.open_time}-{self.close_time}"
        return f"<VenueOperatingHours(venue={self.venue_id}, weekday={self.weekday}, {state})>"
