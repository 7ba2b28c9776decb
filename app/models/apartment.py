import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from ..database import Base
from .unit import UnitKind


class Apartment(Base):
    """
    A self-contained unit that can be booked whole.

    Its rooms may additionally be booked one by one (see Room.bookable_individually);
    a whole-apartment booking locks every contained room.
    """
    __tablename__ = "apartments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False)
    apartment_number = Column(String(20), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    total_capacity = Column(Integer, nullable=False, default=1)
    price_per_night = Column(Numeric(10, 2), default=0)
    is_available = Column(Boolean, default=True, nullable=False)
    rooms_bookable_separately = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="apartments")
    rooms = relationship(
        "Room", back_populates="apartment",
        cascade="all", passive_deletes=True,
        order_by="Room.room_number"
    )
    bookings = relationship(
        "Booking", back_populates="apartment",
        cascade="all", passive_deletes=True
    )
    availability = relationship(
        "ApartmentAvailability", back_populates="apartment",
        cascade="all", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_apartment_hotel", "hotel_id"),
    )

    kind = UnitKind.APARTMENT

    @property
    def capacity(self) -> int:
        return self.total_capacity or 0

    def __repr__(self):
        return f"<Apartment {self.apartment_number} ({self.name})>"
