"""
Pydantic schemas for booking-related request/response validation.

Shape checks (types, required fields, phone format) happen here and fail
with 422. Booking rules (duration range, operating hours, time format,
booking window) are enforced by the lifecycle and fail with 400.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field


class CustomerDetailsIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., pattern=r"^\+?[1-9]\d{1,14}$")
    email: Optional[EmailStr] = None
    special_requests: Optional[str] = Field(None, max_length=1000)


class BookingCreate(BaseModel):
    venue_id: int
    date: date
    slot_start: str = Field(..., max_length=5, examples=["18:00"])
    duration: float = 1
    customer_details: CustomerDetailsIn
    booking_type: Literal["individual", "team", "tournament", "training"] = "individual"


class BookingResponse(BaseModel):
    id: int
    reference: str
    formatted_reference: str
    venue_id: int
    user_id: int
    booking_date: date
    slot_start: str
    slot_end: str
    duration: float
    total_amount: int
    status: str
    payment_status: str
    payment_method: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str]
    special_requests: Optional[str]
    booking_type: str
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[int] = None
    rating: Optional[int] = None
    review_comment: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingSummary(BookingResponse):
    can_cancel: bool
    refund_preview: int


class BookingListResponse(BaseModel):
    bookings: list[BookingSummary]
    total: int
    page: int
    page_size: int


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: str
    refund_amount: int
    refund_percentage: int


class PaymentConfirmation(BaseModel):
    payment_method: Literal["cash", "card", "online", "wallet"] = "cash"
    transaction_id: Optional[str] = Field(None, max_length=255)


class ReviewCreate(BaseModel):
    rating: int
    comment: Optional[str] = Field(None, max_length=2000)
