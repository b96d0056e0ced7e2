"""
Time-of-day pricing.

One boundary table is used everywhere (slot listing and booking totals):

    morning    06:00 - 11:59
    afternoon  12:00 - 16:59
    evening    17:00 - 20:59
    night      everything else

Amounts are whole currency units, rounded half-up.
"""

import enum
from decimal import ROUND_HALF_UP, Decimal

from arena.core.errors import ValidationError


class PriceCategory(str, enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


def round_amount(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_category(hour: int) -> PriceCategory:
    if not 0 <= hour <= 23:
        raise ValidationError(f"Hour out of range: {hour}")
    if 6 <= hour < 12:
        return PriceCategory.MORNING
    if 12 <= hour < 17:
        return PriceCategory.AFTERNOON
    if 17 <= hour < 21:
        return PriceCategory.EVENING
    return PriceCategory.NIGHT


def slot_price(venue, hour: int) -> int:
    """Price of one hour starting at `hour`: base price x category multiplier."""
    multiplier = venue.multiplier_for(price_category(hour).value)
    return round_amount(Decimal(venue.base_price) * Decimal(str(multiplier)))


def booking_total(venue, hour: int, duration: float) -> int:
    return round_amount(Decimal(slot_price(venue, hour)) * Decimal(str(duration)))
