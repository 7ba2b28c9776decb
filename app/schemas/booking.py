from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime, date
from decimal import Decimal

from ..models.booking import BookingStatus, PaymentStatus, BookingType


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase keys (userId, checkInDate, ...)"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class BookingRequestBase(CamelModel):
    # Every field is optional here so the workflow can name the first missing one
    user_id: Optional[str] = None
    hotel_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = None
    payment_amount: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    payment_status: Optional[PaymentStatus] = None
    payment_transaction_id: Optional[str] = Field(None, max_length=255)
    status: Optional[BookingStatus] = None

    @field_validator('status')
    @classmethod
    def initial_status(cls, v):
        if v is not None and v not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise ValueError("A new booking can only be PENDING or CONFIRMED")
        return v

    @field_validator('payment_currency')
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v


class ApartmentBookingCreate(BookingRequestBase):
    apartment_id: Optional[str] = None


class RoomBookingCreate(BookingRequestBase):
    room_id: Optional[str] = None


class AvailabilityCheckRequest(CamelModel):
    booking_type: Optional[BookingType] = None
    apartment_id: Optional[str] = None
    room_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = None


class AvailabilityCheckResponse(BaseModel):
    available: bool
    reason: Optional[str] = None
    conflicting_bookings: int = 0


class BookingStatusUpdate(CamelModel):
    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None


# ----- responses -----

class UserSummary(BaseModel):
    id: str
    username: str
    email: str

    class Config:
        from_attributes = True


class HotelSummary(BaseModel):
    id: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None

    class Config:
        from_attributes = True


class ApartmentSummary(BaseModel):
    id: str
    name: str
    apartment_number: str

    class Config:
        from_attributes = True


class RoomSummary(BaseModel):
    id: str
    room_number: str
    room_type: Optional[str] = None
    apartment_id: Optional[str] = None

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: str
    user_id: str
    hotel_id: str
    booking_type: BookingType
    apartment_id: Optional[str] = None
    room_id: Optional[str] = None
    check_in_date: date
    check_out_date: date
    number_of_guests: int
    status: BookingStatus
    payment_amount: Decimal
    payment_currency: str
    payment_method: str
    payment_status: PaymentStatus
    payment_transaction_id: Optional[str] = None
    payment_completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    user: Optional[UserSummary] = None
    hotel: Optional[HotelSummary] = None
    apartment: Optional[ApartmentSummary] = None
    room: Optional[RoomSummary] = None

    class Config:
        from_attributes = True
