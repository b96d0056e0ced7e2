"""
Aggregate bookkeeping driven by booking events.

Runs after the booking transaction has committed, in its own session, so
counters never hold locks on the booking path and a failure here can never
undo or block a booking. Each update is a single atomic
`SET col = col + :delta`, safe under concurrent consumers.
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from arena.core.logging import get_logger
from arena.models.user import User
from arena.models.venue import Venue
from arena.services.cache_service import invalidate_slots
from arena.services.events import BookingCancelled, BookingCreated, BookingReviewed

logger = get_logger(__name__)


async def _on_created(db: AsyncSession, event: BookingCreated) -> None:
    await db.execute(
        update(Venue)
        .where(Venue.id == event.venue_id)
        .values(
            total_bookings=Venue.total_bookings + 1,
            total_revenue=Venue.total_revenue + event.total_amount,
        )
    )
    await db.execute(
        update(User)
        .where(User.id == event.user_id)
        .values(
            total_bookings=User.total_bookings + 1,
            total_spent=User.total_spent + event.total_amount,
        )
    )


async def _on_cancelled(db: AsyncSession, event: BookingCancelled) -> None:
    await db.execute(
        update(Venue)
        .where(Venue.id == event.venue_id)
        .values(
            total_cancellations=Venue.total_cancellations + 1,
            total_revenue=Venue.total_revenue - event.refund_amount,
        )
    )
    await db.execute(
        update(User)
        .where(User.id == event.user_id)
        .values(total_spent=User.total_spent - event.refund_amount)
    )


async def _on_reviewed(db: AsyncSession, event: BookingReviewed) -> None:
    # Running mean folded in a single statement
    await db.execute(
        update(Venue)
        .where(Venue.id == event.venue_id)
        .values(
            rating_average=(Venue.rating_average * Venue.rating_count + event.rating)
            / (Venue.rating_count + 1),
            rating_count=Venue.rating_count + 1,
        )
    )


HANDLERS = {
    BookingCreated: _on_created,
    BookingCancelled: _on_cancelled,
    BookingReviewed: _on_reviewed,
}


async def apply_event(db: AsyncSession, event) -> None:
    handler = HANDLERS.get(type(event))
    if handler is None:
        logger.warning("stats_event_unhandled", event_type=type(event).__name__)
        return
    await handler(db, event)


async def dispatch_events(session_factory: async_sessionmaker, events: list) -> None:
    """
    Background task: refresh caches and apply counters for committed events.
    Each event gets its own transaction; failures are logged and skipped.
    """
    for event in events:
        if isinstance(event, (BookingCreated, BookingCancelled)):
            await invalidate_slots(event.venue_id, event.booking_date)

        try:
            async with session_factory() as db:
                async with db.begin():
                    await apply_event(db, event)
            logger.debug("stats_event_applied", event_type=type(event).__name__, booking_id=event.booking_id)
        except Exception as e:
            logger.error(
                "stats_event_failed",
                event_type=type(event).__name__,
                booking_id=event.booking_id,
                error=str(e),
            )
