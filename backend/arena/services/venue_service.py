"""
Venue lookups for the booking core. Venues are read-only here.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.errors import VenueNotFound
from arena.models.venue import Venue


async def get_venue(db: AsyncSession, venue_id: int) -> Venue:
    """Get a single venue (with operating hours) by ID."""
    result = await db.execute(select(Venue).where(Venue.id == venue_id))
    venue = result.scalar_one_or_none()

    if not venue:
        raise VenueNotFound(venue_id)
    return venue


async def get_venues(db: AsyncSession, venue_ids: Iterable[int]) -> dict[int, Venue]:
    """Venues by id for a batch of bookings."""
    ids = set(venue_ids)
    if not ids:
        return {}
    result = await db.execute(select(Venue).where(Venue.id.in_(ids)))
    return {venue.id: venue for venue in result.scalars().all()}
