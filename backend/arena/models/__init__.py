from arena.models.user import User
from arena.models.venue import Venue, VenueOperatingHours
from arena.models.booking import Booking, BookingStatus, PaymentStatus

__all__ = [
    "User",
    "Venue",
    "VenueOperatingHours",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
]
