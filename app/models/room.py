import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from ..database import Base
from .unit import UnitKind, UnitRef


class RoomType(str, enum.Enum):
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    TWIN = "TWIN"
    SUITE = "SUITE"
    DELUXE = "DELUXE"
    FAMILY = "FAMILY"


class Room(Base):
    """A room that stands alone in a hotel or belongs to exactly one apartment"""
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False)
    apartment_id = Column(String(36), ForeignKey("apartments.id", ondelete="CASCADE"), nullable=True)
    room_number = Column(String(20), nullable=False)
    room_type = Column(String(20), default=RoomType.DOUBLE.value)
    description = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=False, default=1)
    price_per_night = Column(Numeric(10, 2), default=0)
    is_available = Column(Boolean, default=True, nullable=False)
    bookable_individually = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="rooms")
    apartment = relationship("Apartment", back_populates="rooms")
    bookings = relationship(
        "Booking", back_populates="room",
        cascade="all", passive_deletes=True
    )
    availability = relationship(
        "RoomAvailability", back_populates="room",
        cascade="all", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_room_hotel", "hotel_id"),
        Index("ix_room_apartment", "apartment_id"),
    )

    kind = UnitKind.ROOM

    @property
    def parent_ref(self):
        if self.apartment_id:
            return UnitRef.apartment(self.apartment_id)
        return None

    def __repr__(self):
        return f"<Room {self.room_number}>"
