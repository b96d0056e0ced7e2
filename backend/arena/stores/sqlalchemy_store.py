"""
SQLAlchemy implementation of the BookingStore.

CONCURRENCY STRATEGY: Conditional insert on a partial unique index
=================================================================

Problem:
  Two users request the same venue slot at the same time. A "query for an
  existing booking, then insert" sequence lets both observe a free slot
  before either commits. Result: double booking.

Solution:
  The bookings table carries a partial unique index

      UNIQUE (venue_id, booking_date, slot_hour) WHERE status != 'cancelled'

  and `atomic_create` simply inserts inside a SAVEPOINT. The database
  serialises the two inserts on the index entry: exactly one commits, the
  other fails with a unique violation, which we translate to SlotConflict.
  Any other integrity failure (foreign key, check constraint) becomes a
  ValidationError.
  The savepoint rollback leaves the outer transaction usable and nothing
  half-written behind.

State changes use the same idea as optimistic locking: the UPDATE carries
the expected status in its WHERE clause, and rowcount == 0 means another
request got there first.
"""

from contextlib import contextmanager
from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.errors import SlotConflict, StoreUnavailable, ValidationError
from arena.core.logging import get_logger
from arena.core.metrics import record_db_operation
from arena.models.booking import Booking, BookingStatus
from arena.stores.interfaces import BookingStore

logger = get_logger(__name__)

ACTIVE_SLOT_INDEX = "uq_bookings_active_slot"


def _is_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    # PostgreSQL names the index; SQLite lists the indexed columns
    return ACTIVE_SLOT_INDEX in message or "bookings.slot_hour" in message


@contextmanager
def _store_errors():
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.error("booking_store_unavailable", error=str(e))
        raise StoreUnavailable() from e


class SqlAlchemyBookingStore(BookingStore):
    """PostgreSQL-backed booking store on a request-scoped AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        with _store_errors():
            record_db_operation("read")
            return await self.db.get(Booking, booking_id)

    async def find_bookings(
        self,
        venue_id: int,
        booking_date: date,
        statuses: Iterable[str],
    ) -> list[Booking]:
        with _store_errors():
            record_db_operation("read")
            result = await self.db.execute(
                select(Booking)
                .where(
                    Booking.venue_id == venue_id,
                    Booking.booking_date == booking_date,
                    Booking.status.in_(list(statuses)),
                )
                .order_by(Booking.slot_hour.asc())
            )
            return list(result.scalars().all())

    async def atomic_create(self, booking: Booking) -> Booking:
        with _store_errors():
            try:
                async with self.db.begin_nested():
                    self.db.add(booking)
                    await self.db.flush()
            except IntegrityError as e:
                if not _is_slot_violation(e):
                    logger.warning(
                        "booking_insert_rejected",
                        venue_id=booking.venue_id,
                        user_id=booking.user_id,
                        error=str(e.orig),
                    )
                    raise ValidationError("Booking violates a data constraint") from e
                record_db_operation("conflict")
                raise SlotConflict(booking.venue_id, booking.booking_date, booking.slot_start) from e

            record_db_operation("write")
            await self.db.refresh(booking)
            return booking

    async def update_booking(
        self,
        booking_id: int,
        patch: dict[str, Any],
        expected_status: str,
    ) -> Optional[Booking]:
        return await self._conditional_update(
            booking_id, patch, Booking.status == expected_status
        )

    async def save_review(self, booking_id: int, patch: dict[str, Any]) -> Optional[Booking]:
        return await self._conditional_update(
            booking_id,
            patch,
            Booking.status == BookingStatus.COMPLETED.value,
            Booking.rating.is_(None),
        )

    async def _conditional_update(self, booking_id: int, patch: dict[str, Any], *conditions) -> Optional[Booking]:
        with _store_errors():
            result = await self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, *conditions)
                .values(**patch)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                record_db_operation("conflict")
                return None

            record_db_operation("write")
            return await self.db.get(Booking, booking_id, populate_existing=True)

    async def list_user_bookings(
        self,
        user_id: int,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        query = select(Booking).where(Booking.user_id == user_id)
        if status:
            query = query.where(Booking.status == status)

        with _store_errors():
            record_db_operation("read")
            count_query = select(func.count()).select_from(query.subquery())
            total = (await self.db.execute(count_query)).scalar()

            result = await self.db.execute(
                query
                .order_by(Booking.created_at.desc(), Booking.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            return list(result.scalars().all()), total
