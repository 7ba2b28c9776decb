import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Date, Numeric, Integer, ForeignKey, DateTime, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from ..database import Base
from .unit import UnitKind, UnitRef
import enum


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# A booking targets exactly one kind of unit
BookingType = UnitKind

# Statuses that still hold the physical space
ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
TERMINAL_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False)

    # Target: booking_type tags which of the two columns is set
    booking_type = Column(String(20), nullable=False)
    apartment_id = Column(String(36), ForeignKey("apartments.id", ondelete="CASCADE"), nullable=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=True)

    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    number_of_guests = Column(Integer, nullable=False)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False)

    # Payment (recorded, not processed)
    payment_amount = Column(Numeric(10, 2), nullable=False)
    payment_currency = Column(String(3), default="USD", nullable=False)
    payment_method = Column(String(50), nullable=False)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    payment_transaction_id = Column(String(255), nullable=True)
    payment_completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="bookings")
    hotel = relationship("Hotel", back_populates="bookings")
    apartment = relationship("Apartment", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")

    __table_args__ = (
        CheckConstraint(
            "(booking_type = 'APARTMENT' AND apartment_id IS NOT NULL AND room_id IS NULL) OR "
            "(booking_type = 'ROOM' AND room_id IS NOT NULL AND apartment_id IS NULL)",
            name="ck_booking_single_target"
        ),
        CheckConstraint("check_in_date < check_out_date", name="ck_booking_date_order"),
        CheckConstraint("number_of_guests > 0", name="ck_booking_guests_positive"),
        Index("ix_booking_apartment_dates", "apartment_id", "check_in_date", "check_out_date"),
        Index("ix_booking_room_dates", "room_id", "check_in_date", "check_out_date"),
        Index("ix_booking_user", "user_id"),
        Index("ix_booking_hotel", "hotel_id"),
        Index("ix_booking_created_at", "created_at"),
    )

    @property
    def target(self) -> UnitRef:
        if self.booking_type == UnitKind.APARTMENT.value:
            return UnitRef.apartment(self.apartment_id)
        return UnitRef.room(self.room_id)

    @target.setter
    def target(self, ref: UnitRef) -> None:
        self.booking_type = ref.kind.value
        if ref.is_apartment:
            self.apartment_id, self.room_id = ref.id, None
        else:
            self.apartment_id, self.room_id = None, ref.id

    def __repr__(self):
        return f"<Booking {self.id} {self.target} {self.check_in_date}..{self.check_out_date} {self.status}>"
