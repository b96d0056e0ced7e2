"""Store interfaces (repository pattern).

Stores must be swappable. The booking core only ever creates active
bookings through `atomic_create`, and only ever mutates an existing booking
through `update_booking`, which is a compare-and-set on its status, or
`save_review`, which additionally requires the rating to be unset.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Iterable, Optional

from arena.models.booking import Booking


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        """Return a booking by id, or None if not found."""
        ...

    @abstractmethod
    async def find_bookings(
        self,
        venue_id: int,
        booking_date: date,
        statuses: Iterable[str],
    ) -> list[Booking]:
        """Return bookings of a venue on a date whose status is in `statuses`."""
        ...

    @abstractmethod
    async def atomic_create(self, booking: Booking) -> Booking:
        """Insert a new active booking as a single conditional write.

        Raises:
            SlotConflict: another active booking holds (venue, date, slot hour).
            StoreUnavailable: the store could not be reached; nothing was written.
        """
        ...

    @abstractmethod
    async def update_booking(
        self,
        booking_id: int,
        patch: dict[str, Any],
        expected_status: str,
    ) -> Optional[Booking]:
        """Apply `patch` only if the booking is still in `expected_status`.

        Returns the updated booking, or None when the status no longer matched.
        """
        ...

    @abstractmethod
    async def save_review(self, booking_id: int, patch: dict[str, Any]) -> Optional[Booking]:
        """Apply review fields only to a completed booking that has no rating yet.

        Returns the updated booking, or None when it was not completed or was
        already reviewed.
        """
        ...

    @abstractmethod
    async def list_user_bookings(
        self,
        user_id: int,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        """Return one page of a user's bookings, newest first, and the total count."""
        ...
