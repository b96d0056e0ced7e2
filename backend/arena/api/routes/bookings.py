"""
Booking endpoints with concurrency-safe slot reservation.

Each mutating endpoint commits the request transaction itself, then hands
the lifecycle's events to a background task (cache invalidation and
aggregate counters), so bookkeeping only ever sees committed bookings.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from arena.api.deps import get_booking_store, get_lifecycle
from arena.core.clock import Clock, get_clock
from arena.core.config import Settings, get_settings
from arena.core.errors import BookingNotFound, Forbidden
from arena.core.logging import get_logger
from arena.core.security import get_current_user_id
from arena.db.session import get_db, get_session_factory
from arena.models.booking import Booking
from arena.schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingSummary,
    PaymentConfirmation,
    ReviewCreate,
)
from arena.services.cancellation import CancellationPolicy
from arena.services.lifecycle import BookingLifecycle, CustomerDetails
from arena.services.stats_service import dispatch_events
from arena.services.venue_service import get_venue, get_venues
from arena.stores.interfaces import BookingStore

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


async def _commit_and_dispatch(
    db: AsyncSession,
    lifecycle: BookingLifecycle,
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker,
) -> None:
    await db.commit()
    events = lifecycle.outbox.drain()
    if events:
        background_tasks.add_task(dispatch_events, session_factory, events)


async def _get_owned_booking(store: BookingStore, booking_id: int, user_id: int) -> Booking:
    booking = await store.get_booking(booking_id)
    if not booking:
        raise BookingNotFound(booking_id)
    if booking.user_id != user_id:
        logger.warning("booking_access_denied", booking_id=booking_id, user_id=user_id)
        raise Forbidden()
    return booking


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Book a venue slot.

    The slot is claimed with a single conditional insert; if another active
    booking already holds it the request fails with 409 and nothing is written.
    """
    venue = await get_venue(db, booking_data.venue_id)
    customer = booking_data.customer_details
    booking = await lifecycle.create(
        venue,
        user_id,
        booking_data.date,
        booking_data.slot_start,
        booking_data.duration,
        CustomerDetails(
            name=customer.name,
            phone_number=customer.phone_number,
            email=customer.email,
            special_requests=customer.special_requests,
        ),
        booking_type=booking_data.booking_type,
    )
    await _commit_and_dispatch(db, lifecycle, background_tasks, session_factory)
    return booking


@router.get("/", response_model=BookingListResponse)
async def list_user_bookings(
    booking_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """The caller's bookings, newest first, with cancellation previews."""
    bookings, total = await store.list_user_bookings(user_id, booking_status, page, page_size)
    venues = await get_venues(db, (b.venue_id for b in bookings))
    now = clock.now()

    summaries = []
    for booking in bookings:
        policy = CancellationPolicy.for_venue(venues[booking.venue_id], settings)
        summaries.append(
            BookingSummary.model_validate(
                {
                    **BookingResponse.model_validate(booking).model_dump(),
                    "can_cancel": policy.can_cancel(booking, now),
                    "refund_preview": policy.refund_amount(booking, now),
                }
            )
        )

    return BookingListResponse(bookings=summaries, total=total, page=page, page_size=page_size)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    store: BookingStore = Depends(get_booking_store),
):
    """Booking details. Only the booking's owner may read it."""
    return await _get_owned_booking(store, booking_id, user_id)


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    background_tasks: BackgroundTasks,
    reason: Optional[str] = Query(None, max_length=500),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Cancel a booking; the refund tier depends on the time left before the slot."""
    booking = await _get_owned_booking(store, booking_id, user_id)
    venue = await get_venue(db, booking.venue_id)
    result = await lifecycle.cancel(booking, user_id, venue=venue, reason=reason)
    await _commit_and_dispatch(db, lifecycle, background_tasks, session_factory)

    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=result.booking.id,
        status=result.booking.status,
        refund_amount=result.refund_amount,
        refund_percentage=result.refund_percentage,
    )


@router.post("/{booking_id}/confirm-payment", response_model=BookingResponse)
async def confirm_payment_endpoint(
    booking_id: int,
    payment: PaymentConfirmation,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Record payment for a pending booking (pending -> confirmed)."""
    booking = await _get_owned_booking(store, booking_id, user_id)
    booking = await lifecycle.confirm_payment(
        booking,
        payment_method=payment.payment_method,
        transaction_id=payment.transaction_id,
    )
    await db.commit()
    return booking


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking_endpoint(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Mark a confirmed booking as played (confirmed -> completed)."""
    booking = await store.get_booking(booking_id)
    if not booking:
        raise BookingNotFound(booking_id)
    booking = await lifecycle.complete(booking)
    await db.commit()
    logger.info("booking_completed_by", booking_id=booking_id, user_id=user_id)
    return booking


@router.post("/{booking_id}/review", response_model=BookingResponse)
async def review_booking_endpoint(
    booking_id: int,
    review: ReviewCreate,
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Rate a completed booking once (1-5)."""
    booking = await _get_owned_booking(store, booking_id, user_id)
    booking = await lifecycle.add_review(booking, review.rating, review.comment)
    await _commit_and_dispatch(db, lifecycle, background_tasks, session_factory)
    return booking
