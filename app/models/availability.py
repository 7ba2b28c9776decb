"""
Availability Override Models

Operator-declared per-day availability for apartments and rooms
(maintenance, owner use, release of a normally closed unit).
Independent of bookings: a row says nothing about reservations, it only
layers a manual open/closed flag underneath them.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Boolean, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class ApartmentAvailability(Base):
    """One entry per apartment per date"""
    __tablename__ = "apartment_availability"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    apartment_id = Column(String(36), ForeignKey("apartments.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    apartment = relationship("Apartment", back_populates="availability")

    __table_args__ = (
        UniqueConstraint("apartment_id", "date", name="uq_apartment_availability_date"),
        Index("ix_apartment_availability_blocked", "apartment_id", "is_available", "date"),
    )

    @property
    def unit_id(self) -> str:
        return self.apartment_id

    def __repr__(self):
        state = "open" if self.is_available else "blocked"
        return f"<ApartmentAvailability {self.apartment_id} {self.date} {state}>"


class RoomAvailability(Base):
    """One entry per room per date"""
    __tablename__ = "room_availability"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="availability")

    __table_args__ = (
        UniqueConstraint("room_id", "date", name="uq_room_availability_date"),
        Index("ix_room_availability_blocked", "room_id", "is_available", "date"),
    )

    @property
    def unit_id(self) -> str:
        return self.room_id

    def __repr__(self):
        state = "open" if self.is_available else "blocked"
        return f"<RoomAvailability {self.room_id} {self.date} {state}>"
