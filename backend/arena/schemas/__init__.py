from arena.schemas.booking import (
    BookingCreate, BookingResponse, BookingSummary, BookingListResponse,
    BookingCancelResponse, PaymentConfirmation, ReviewCreate,
)
from arena.schemas.venue import VenueResponse, TimeSlotResponse, SlotListResponse

__all__ = [
    "BookingCreate", "BookingResponse", "BookingSummary", "BookingListResponse",
    "BookingCancelResponse", "PaymentConfirmation", "ReviewCreate",
    "VenueResponse", "TimeSlotResponse", "SlotListResponse",
]
