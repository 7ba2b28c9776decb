"""
Booking Ledger

Owns booking records: creation under a per-unit critical section, status
transitions, cancellation and listing. Bookings are never deleted here,
only moved through their lifecycle:

    PENDING -> CONFIRMED -> COMPLETED
       |           |
       +-----------+----> CANCELLED

Concurrency for create():
1. In-process KeyedLock on the target (and, for a room, its parent apartment)
2. On PostgreSQL, SELECT ... FOR UPDATE on the apartment row, then the room row
3. Detector re-run, insert and commit while both are held
4. On PostgreSQL the exclusion constraints reject anything that still slips through
"""

import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..config import settings
from ..exceptions import Conflict, Forbidden, InvalidInput, InvalidState, NotFound, Unavailable
from ..models.apartment import Apartment
from ..models.booking import Booking, BookingStatus, PaymentStatus, TERMINAL_STATUSES
from ..models.room import Room
from ..models.unit import UnitRef
from ..models.user import User
from ..schemas.pagination import paginate_query
from ..utils.db_helpers import acquire_row_lock, unit_lock_keys
from ..utils.locks import KeyedLock, LockTimeout, booking_locks
from ..utils.logging_config import get_logger
from .conflict_detector import (
    AvailabilityCandidate, AvailabilityResult, ConflictDetector, DateRange, Verdict
)
from .inventory_service import InventoryService

logger = get_logger(__name__)

# Moves allowed between distinct statuses
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING.value: {
        BookingStatus.CONFIRMED.value,
        BookingStatus.CANCELLED.value,
        BookingStatus.COMPLETED.value,
    },
    BookingStatus.CONFIRMED.value: {
        BookingStatus.CANCELLED.value,
        BookingStatus.COMPLETED.value,
    },
}


@dataclass
class BookingDraft:
    """Validated request for a new booking"""
    user_id: str
    hotel_id: str
    target: UnitRef
    date_range: DateRange
    number_of_guests: int
    payment_amount: Decimal
    payment_method: str
    payment_currency: Optional[str] = None
    payment_status: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    status: Optional[str] = None


@dataclass
class BookingFilter:
    user_id: Optional[str] = None
    hotel_id: Optional[str] = None
    status: Optional[str] = None
    booking_type: Optional[str] = None


def _coerce(enum_cls, value, field_name: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInput(f"Invalid {field_name} '{value}'; expected one of: {allowed}", field=field_name)


def raise_for_result(result: AvailabilityResult) -> None:
    """Turn a refused availability result into the matching domain error"""
    if result.available:
        return
    if result.verdict == Verdict.NOT_FOUND:
        raise NotFound(result.reason)
    if result.verdict == Verdict.INVALID_INPUT:
        raise InvalidInput(result.reason, field=result.offending_field)
    raise Conflict(result.reason, details={"conflicting_bookings": result.conflicting_bookings})


class BookingLedger:
    def __init__(
        self,
        db: Session,
        locks: KeyedLock = booking_locks,
        clock: Optional[Callable] = None,
        detector: Optional[ConflictDetector] = None
    ):
        self.db = db
        self.locks = locks
        self.inventory = InventoryService(db)
        if detector is not None:
            self.detector = detector
        elif clock is not None:
            self.detector = ConflictDetector(db, clock=clock)
        else:
            self.detector = ConflictDetector(db)

    # ----- reads -----

    def get(self, booking_id: str) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFound("Booking not found")
        return booking

    def list_by_filter(
        self,
        booking_filter: Optional[BookingFilter] = None,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Booking], int]:
        """Bookings matching every given field, newest first"""
        booking_filter = booking_filter or BookingFilter()
        query = self.db.query(Booking)

        if booking_filter.user_id:
            query = query.filter(Booking.user_id == booking_filter.user_id)
        if booking_filter.hotel_id:
            query = query.filter(Booking.hotel_id == booking_filter.hotel_id)
        if booking_filter.status:
            query = query.filter(Booking.status == booking_filter.status)
        if booking_filter.booking_type:
            query = query.filter(Booking.booking_type == booking_filter.booking_type)

        query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
        return paginate_query(query, page, page_size)

    # ----- create -----

    def _lock_rows(self, target: UnitRef, parent: Optional[UnitRef]) -> None:
        # Apartment row before room row, the same order as the in-process keys
        apartment_id = target.id if target.is_apartment else (parent.id if parent else None)
        if apartment_id:
            acquire_row_lock(self.db, Apartment, Apartment.id == apartment_id)
        if target.is_room:
            acquire_row_lock(self.db, Room, Room.id == target.id)

    def create(self, draft: BookingDraft) -> Booking:
        """
        Insert a booking if and only if the unit is free for the range.

        Raises NotFound for a missing user, hotel or unit; InvalidInput for
        bad dates or guest counts; Conflict when the unit is taken or blocked;
        Unavailable when the lock or the database can't be had.
        """
        started = time.perf_counter()

        self.inventory.get_user(draft.user_id)
        hotel = self.inventory.get_hotel(draft.hotel_id)
        unit = self.inventory.get_unit(draft.target.kind, draft.target.id)

        if unit.hotel_id != hotel.id:
            raise InvalidInput(
                f"{draft.target.kind.value.title()} does not belong to hotel {hotel.id}",
                field="hotel_id"
            )
        if draft.number_of_guests is None or draft.number_of_guests <= 0:
            raise InvalidInput("number_of_guests must be at least 1", field="number_of_guests")
        self.detector.validate_date_range(draft.date_range)

        parent = unit.parent_ref if draft.target.is_room else None
        keys = unit_lock_keys(draft.target, parent)

        try:
            with self.locks.hold(keys, timeout=settings.booking_lock_timeout_seconds):
                booking = self._create_locked(draft, parent)
        except LockTimeout as e:
            logger.warning(f"Booking on {draft.target} timed out waiting for {e.key}")
            raise Unavailable(
                "The unit is busy with another booking; please retry",
                details={"lock": e.key}
            )

        logger.booking_created(
            booking.id,
            str(draft.target),
            draft.date_range.check_in,
            draft.date_range.check_out,
            user_id=draft.user_id,
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        return booking

    def _create_locked(self, draft: BookingDraft, parent: Optional[UnitRef]) -> Booking:
        target = draft.target
        try:
            self._lock_rows(target, parent)

            result = self.detector.check_availability(AvailabilityCandidate(
                target=target,
                date_range=draft.date_range,
                number_of_guests=draft.number_of_guests,
            ))
            if not result.available:
                logger.booking_rejected(
                    str(target), result.reason,
                    draft.date_range.check_in, draft.date_range.check_out
                )
                raise_for_result(result)

            booking = Booking(
                user_id=draft.user_id,
                hotel_id=draft.hotel_id,
                check_in_date=draft.date_range.check_in,
                check_out_date=draft.date_range.check_out,
                number_of_guests=draft.number_of_guests,
                status=draft.status or BookingStatus.PENDING.value,
                payment_amount=draft.payment_amount,
                payment_currency=draft.payment_currency or settings.default_currency,
                payment_method=draft.payment_method,
                payment_status=draft.payment_status or PaymentStatus.PENDING.value,
                payment_transaction_id=draft.payment_transaction_id,
            )
            booking.target = target
            if booking.payment_status == PaymentStatus.COMPLETED.value:
                booking.payment_completed_at = datetime.utcnow()

            self.db.add(booking)
            self.db.commit()
            self.db.refresh(booking)
            return booking

        except IntegrityError as e:
            # Exclusion constraint caught an overlap the checks above could not see
            self.db.rollback()
            logger.warning(f"Booking on {target} rejected by database constraint: {e.orig}")
            label = "Apartment" if target.is_apartment else "Room"
            raise Conflict(f"{label} is already booked for the selected dates")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error while booking {target}: {e}")
            raise Unavailable("Could not save the booking; please retry")
        except Exception:
            self.db.rollback()
            raise

    # ----- lifecycle -----

    def transition(
        self,
        booking_id: str,
        new_status: Optional[str] = None,
        payment_status: Optional[str] = None
    ) -> Booking:
        if new_status is None and payment_status is None:
            raise InvalidInput("Please provide status or payment_status to update", field="status")

        booking = self.get(booking_id)
        old_status = booking.status

        if new_status is not None:
            new_status = _coerce(BookingStatus, new_status, "status")
            if old_status in TERMINAL_STATUSES:
                raise InvalidState(f"Booking is already {old_status.lower()}")
            if new_status != old_status and new_status not in ALLOWED_TRANSITIONS[old_status]:
                raise InvalidState(f"Cannot change booking status from {old_status} to {new_status}")
            booking.status = new_status

        if payment_status is not None:
            payment_status = _coerce(PaymentStatus, payment_status, "payment_status")
            if (payment_status == PaymentStatus.COMPLETED.value
                    and booking.payment_status != PaymentStatus.COMPLETED.value):
                booking.payment_completed_at = datetime.utcnow()
            booking.payment_status = payment_status

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update booking {booking_id}: {e}")
            raise Unavailable("Could not update the booking; please retry")
        self.db.refresh(booking)

        if booking.status != old_status:
            logger.booking_status_changed(booking.id, old_status, booking.status)
        return booking

    def cancel(self, booking_id: str, actor: User) -> Booking:
        booking = self.get(booking_id)

        if booking.user_id != actor.id and not actor.is_admin:
            raise Forbidden("You are not allowed to cancel this booking")
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidState("Booking is already cancelled")
        if booking.status == BookingStatus.COMPLETED.value:
            raise InvalidState("Cannot cancel a completed booking")

        old_status = booking.status
        booking.status = BookingStatus.CANCELLED.value
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to cancel booking {booking_id}: {e}")
            raise Unavailable("Could not cancel the booking; please retry")
        self.db.refresh(booking)

        logger.booking_status_changed(booking.id, old_status, booking.status)
        return booking
