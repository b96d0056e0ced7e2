"""
Pydantic schemas for venue and slot responses.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel


class OperatingHoursResponse(BaseModel):
    weekday: int
    open_time: Optional[str]
    close_time: Optional[str]
    closed: bool

    model_config = {"from_attributes": True}


class VenueResponse(BaseModel):
    id: int
    name: str
    status: str
    is_bookable: bool
    timezone: str
    base_price: int
    currency: str
    morning_multiplier: Optional[float]
    afternoon_multiplier: Optional[float]
    evening_multiplier: Optional[float]
    night_multiplier: Optional[float]
    minimum_booking_duration: float
    advance_booking_days: int
    rating_average: float
    rating_count: int
    operating_hours: list[OperatingHoursResponse]

    model_config = {"from_attributes": True}


class TimeSlotResponse(BaseModel):
    start: str
    end: str
    price: int
    category: str
    available: bool


class SlotListResponse(BaseModel):
    venue_id: int
    date: date
    currency: str
    slots: list[TimeSlotResponse]
    cached: bool = False
