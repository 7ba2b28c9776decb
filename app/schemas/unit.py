from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from ..models.room import RoomType
from .booking import CamelModel


class HotelCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class HotelResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApartmentCreate(CamelModel):
    hotel_id: str
    apartment_number: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    total_capacity: int = Field(1, ge=1)
    price_per_night: Decimal = Field(Decimal("0"), ge=0)
    is_available: bool = True
    rooms_bookable_separately: bool = True


class RoomCreate(CamelModel):
    hotel_id: Optional[str] = None
    apartment_id: Optional[str] = None
    room_number: str = Field(..., min_length=1, max_length=20)
    room_type: RoomType = RoomType.DOUBLE
    description: Optional[str] = None
    capacity: int = Field(1, ge=1)
    price_per_night: Decimal = Field(Decimal("0"), ge=0)
    is_available: bool = True
    bookable_individually: bool = True


class RoomResponse(BaseModel):
    id: str
    hotel_id: str
    apartment_id: Optional[str] = None
    room_number: str
    room_type: Optional[str] = None
    description: Optional[str] = None
    capacity: int
    price_per_night: Decimal
    is_available: bool
    bookable_individually: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApartmentResponse(BaseModel):
    id: str
    hotel_id: str
    apartment_number: str
    name: str
    description: Optional[str] = None
    total_capacity: int
    price_per_night: Decimal
    is_available: bool
    rooms_bookable_separately: bool
    rooms: List[RoomResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnitDeleteResult(BaseModel):
    id: str
    removed_bookings: int
