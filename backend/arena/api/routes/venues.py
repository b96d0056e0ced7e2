"""
Venue endpoints: venue details and the per-date slot grid.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arena.api.deps import get_booking_store
from arena.core.errors import VenueUnavailable
from arena.core.logging import get_logger
from arena.core.metrics import record_slot_query
from arena.db.session import get_db
from arena.schemas.venue import SlotListResponse, VenueResponse
from arena.services.cache_service import get_cached_slots, set_cached_slots
from arena.services.calendar import VenueCalendar
from arena.services.venue_service import get_venue
from arena.stores.interfaces import BookingStore

logger = get_logger(__name__)
router = APIRouter(prefix="/venues", tags=["Venues"])


@router.get("/{venue_id}", response_model=VenueResponse)
async def get_venue_endpoint(venue_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single venue with its operating hours."""
    return await get_venue(db, venue_id)


@router.get("/{venue_id}/slots", response_model=SlotListResponse)
async def list_slots_endpoint(
    venue_id: int,
    slot_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
):
    """
    Hour slots of a venue on a date with price and availability.
    Results are cached in Redis for a few seconds and invalidated on
    every booking or cancellation for that venue/date.
    """
    venue = await get_venue(db, venue_id)
    if not venue.is_open_for_booking:
        raise VenueUnavailable()

    cached = await get_cached_slots(venue_id, slot_date)
    if cached is not None:
        record_slot_query(cached=True)
        return SlotListResponse(
            venue_id=venue_id, date=slot_date, currency=venue.currency, slots=cached, cached=True
        )

    slots = [slot.to_dict() for slot in await VenueCalendar(store).available_slots(venue, slot_date)]
    record_slot_query(cached=False)
    await set_cached_slots(venue_id, slot_date, slots)

    logger.debug("slots_computed", venue_id=venue_id, date=slot_date.isoformat(), count=len(slots))
    return SlotListResponse(venue_id=venue_id, date=slot_date, currency=venue.currency, slots=slots)
