# Models package
from .unit import UnitKind, UnitRef
from .user import User, UserRole
from .hotel import Hotel
from .apartment import Apartment
from .room import Room, RoomType
from .booking import (
    Booking,
    BookingStatus,
    BookingType,
    PaymentStatus,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES
)
from .availability import ApartmentAvailability, RoomAvailability

__all__ = [
    "UnitKind", "UnitRef",
    "User", "UserRole",
    "Hotel", "Apartment", "Room", "RoomType",
    "Booking", "BookingStatus", "BookingType", "PaymentStatus",
    "ACTIVE_STATUSES", "TERMINAL_STATUSES",
    "ApartmentAvailability", "RoomAvailability"
]
