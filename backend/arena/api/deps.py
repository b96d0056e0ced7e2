"""
Request-scoped wiring of stores, guards, clock and lifecycle.
Every piece is a dependency so tests can override it.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.clock import Clock, get_clock
from arena.core.config import Settings, get_settings
from arena.db.session import get_db
from arena.services.events import EventOutbox, get_outbox
from arena.services.guards import SlotGuard, get_slot_guard
from arena.services.lifecycle import BookingLifecycle
from arena.stores.interfaces import BookingStore
from arena.stores.sqlalchemy_store import SqlAlchemyBookingStore


def get_booking_store(db: AsyncSession = Depends(get_db)) -> BookingStore:
    return SqlAlchemyBookingStore(db)


def get_lifecycle(
    store: BookingStore = Depends(get_booking_store),
    guard: SlotGuard = Depends(get_slot_guard),
    clock: Clock = Depends(get_clock),
    outbox: EventOutbox = Depends(get_outbox),
    settings: Settings = Depends(get_settings),
) -> BookingLifecycle:
    return BookingLifecycle(store, guard, clock, outbox=outbox, settings=settings)
