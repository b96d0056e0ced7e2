"""
Booking persistence behind a swappable interface.
"""

from .interfaces import BookingStore
from .memory import InMemoryBookingStore
from .sqlalchemy_store import SqlAlchemyBookingStore

__all__ = ['BookingStore', 'InMemoryBookingStore', 'SqlAlchemyBookingStore']
