"""Initial schema: users, venues, operating hours, bookings.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("total_bookings", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_spent", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending_approval'")),
        sa.Column("is_bookable", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("timezone", sa.String(64), nullable=False, server_default=sa.text("'Asia/Karachi'")),
        sa.Column("base_price", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'PKR'")),
        sa.Column("morning_multiplier", sa.Float(), nullable=True),
        sa.Column("afternoon_multiplier", sa.Float(), nullable=True),
        sa.Column("evening_multiplier", sa.Float(), nullable=True),
        sa.Column("night_multiplier", sa.Float(), nullable=True),
        sa.Column("minimum_booking_duration", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("advance_booking_days", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("cancellation_cutoff_hours", sa.Integer(), nullable=True),
        sa.Column("full_refund_hours", sa.Integer(), nullable=True),
        sa.Column("partial_refund_hours", sa.Integer(), nullable=True),
        sa.Column("total_bookings", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cancellations", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_revenue", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating_average", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("base_price >= 0", name="check_venue_base_price_non_negative"),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'maintenance', 'pending_approval')",
            name="check_venue_status",
        ),
        sa.CheckConstraint("minimum_booking_duration >= 0.5", name="check_venue_min_duration"),
        sa.CheckConstraint("advance_booking_days >= 1", name="check_venue_advance_days"),
        sa.CheckConstraint(
            "(morning_multiplier IS NULL OR morning_multiplier >= 0.1) AND "
            "(afternoon_multiplier IS NULL OR afternoon_multiplier >= 0.1) AND "
            "(evening_multiplier IS NULL OR evening_multiplier >= 0.1) AND "
            "(night_multiplier IS NULL OR night_multiplier >= 0.1)",
            name="check_venue_multipliers",
        ),
    )
    op.create_index("ix_venues_id", "venues", ["id"])
    op.create_index("ix_venues_status", "venues", ["status"])

    op.create_table(
        "venue_operating_hours",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("open_time", sa.String(5), nullable=True),
        sa.Column("close_time", sa.String(5), nullable=True),
        sa.Column("closed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("venue_id", "weekday", name="uq_venue_weekday_hours"),
        sa.CheckConstraint("weekday BETWEEN 0 AND 6", name="check_hours_weekday"),
        sa.CheckConstraint(
            "closed OR (open_time IS NOT NULL AND close_time IS NOT NULL AND open_time < close_time)",
            name="check_hours_open_before_close",
        ),
    )
    op.create_index("ix_venue_operating_hours_venue_id", "venue_operating_hours", ["venue_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("slot_start", sa.String(5), nullable=False),
        sa.Column("slot_hour", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default=sa.text("'cash'")),
        sa.Column("transaction_id", sa.String(255), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(20), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("special_requests", sa.String(1000), nullable=True),
        sa.Column("booking_type", sa.String(20), nullable=False, server_default=sa.text("'individual'")),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("refund_amount", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("duration >= 0.5 AND duration <= 8", name="check_booking_duration"),
        sa.CheckConstraint("slot_hour BETWEEN 0 AND 23", name="check_booking_slot_hour"),
        sa.CheckConstraint("total_amount >= 0", name="check_booking_amount_non_negative"),
        sa.CheckConstraint(
            "refund_amount IS NULL OR (refund_amount >= 0 AND refund_amount <= total_amount)",
            name="check_booking_refund_bounds",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded')",
            name="check_booking_payment_status",
        ),
        sa.CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="check_booking_rating"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_venue_id", "bookings", ["venue_id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_venue_date", "bookings", ["venue_id", "booking_date"])
    op.create_index("ix_bookings_user_created", "bookings", ["user_id", "created_at"])
    # Slot exclusivity: at most one non-cancelled booking per venue/date/hour.
    # Cancelled rows drop out of the index, which frees the slot.
    op.create_index(
        "uq_bookings_active_slot",
        "bookings",
        ["venue_id", "booking_date", "slot_hour"],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
    )


def downgrade() -> None:
    op.drop_index("uq_bookings_active_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("venue_operating_hours")
    op.drop_table("venues")
    op.drop_table("users")
