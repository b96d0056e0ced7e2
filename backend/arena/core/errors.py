"""Domain error codes for the booking core.

Services raise these; the API layer maps them to HTTP responses in one place
(see `arena.main`).
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    VENUE_NOT_FOUND = "VENUE_NOT_FOUND"
    VENUE_UNAVAILABLE = "VENUE_UNAVAILABLE"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    SLOT_CONFLICT = "SLOT_CONFLICT"
    NOT_CANCELLABLE = "NOT_CANCELLABLE"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    REVIEW_NOT_ALLOWED = "REVIEW_NOT_ALLOWED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised for malformed or out-of-policy booking input."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message)


class VenueNotFound(DomainError):
    def __init__(self, venue_id: int) -> None:
        super().__init__(code=ErrorCode.VENUE_NOT_FOUND, message=f"Venue {venue_id} not found")
        self.venue_id = venue_id


class VenueUnavailable(DomainError):
    """Raised when a venue is not active or not bookable."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.VENUE_UNAVAILABLE,
            message="Venue is not available for booking",
        )


class BookingNotFound(DomainError):
    def __init__(self, booking_id: int) -> None:
        super().__init__(code=ErrorCode.BOOKING_NOT_FOUND, message="Booking not found")
        self.booking_id = booking_id


class Forbidden(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.FORBIDDEN, message="Access denied")


class SlotConflict(DomainError):
    """Raised when another active booking already holds the slot."""

    def __init__(self, venue_id: int, booking_date, slot_start: str) -> None:
        super().__init__(
            code=ErrorCode.SLOT_CONFLICT,
            message="This time slot is already booked",
        )
        self.venue_id = venue_id
        self.booking_date = booking_date
        self.slot_start = slot_start


class NotCancellable(DomainError):
    def __init__(self, cutoff_hours: int) -> None:
        super().__init__(
            code=ErrorCode.NOT_CANCELLABLE,
            message=(
                "Booking cannot be cancelled. Cancellation is only allowed up to "
                f"{cutoff_hours} hours before the booking time."
            ),
        )


class AlreadyCancelled(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.ALREADY_CANCELLED, message="Booking is already cancelled")


class InvalidTransition(DomainError):
    """Raised when a booking is moved out of a terminal or incompatible state."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Invalid booking transition: {current} -> {target}",
        )
        self.current = current
        self.target = target


class ReviewNotAllowed(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.REVIEW_NOT_ALLOWED, message=message)


class StoreUnavailable(DomainError):
    """Raised when the backing store cannot be reached."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="Booking store is unavailable, please retry",
        )


HTTP_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.VENUE_UNAVAILABLE: 400,
    ErrorCode.NOT_CANCELLABLE: 400,
    ErrorCode.ALREADY_CANCELLED: 400,
    ErrorCode.REVIEW_NOT_ALLOWED: 400,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.VENUE_NOT_FOUND: 404,
    ErrorCode.BOOKING_NOT_FOUND: 404,
    ErrorCode.SLOT_CONFLICT: 409,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.STORE_UNAVAILABLE: 503,
}
