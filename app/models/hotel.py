import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from ..database import Base


class Hotel(Base):
    """Ownership root of the inventory: apartments, rooms and bookings die with it"""
    __tablename__ = "hotels"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(300), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    apartments = relationship(
        "Apartment", back_populates="hotel",
        cascade="all", passive_deletes=True
    )
    rooms = relationship(
        "Room", back_populates="hotel",
        cascade="all", passive_deletes=True
    )
    bookings = relationship(
        "Booking", back_populates="hotel",
        cascade="all", passive_deletes=True
    )

    def __repr__(self):
        return f"<Hotel {self.name}>"
