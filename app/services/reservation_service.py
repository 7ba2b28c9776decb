"""
Reservation Workflow

Entry points used by the routers. Each booking request goes through:

1. required fields present (first missing one is reported)
2. date range sanity
3. target resolution and eligibility
4. hierarchical conflict check
5. ledger insert under the per-unit lock

The availability probe stops after step 4 and never writes.
"""

import logging
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import Forbidden, InvalidInput
from ..models.booking import Booking
from ..models.unit import UnitKind, UnitRef
from ..models.user import User
from ..utils.locks import KeyedLock, booking_locks
from .booking_ledger import BookingDraft, BookingFilter, BookingLedger, raise_for_result
from .conflict_detector import AvailabilityCandidate, AvailabilityResult, ConflictDetector, DateRange

logger = logging.getLogger(__name__)

_COMMON_HEAD = ("user_id", "hotel_id")
_COMMON_TAIL = ("check_in_date", "check_out_date", "number_of_guests", "payment_amount", "payment_method")

REQUIRED_FIELDS = {
    UnitKind.APARTMENT: _COMMON_HEAD + ("apartment_id",) + _COMMON_TAIL,
    UnitKind.ROOM: _COMMON_HEAD + ("room_id",) + _COMMON_TAIL,
}


def first_missing_field(request, fields) -> Optional[str]:
    for name in fields:
        value = getattr(request, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            return name
    return None


class ReservationWorkflow:
    def __init__(
        self,
        db: Session,
        clock: Optional[Callable] = None,
        locks: KeyedLock = booking_locks
    ):
        self.db = db
        self.detector = ConflictDetector(db, clock=clock) if clock else ConflictDetector(db)
        self.ledger = BookingLedger(db, locks=locks, detector=self.detector)
        self.inventory = self.detector.inventory

    # ----- create -----

    def book_apartment(self, request, actor: Optional[User] = None) -> Booking:
        return self._book(UnitKind.APARTMENT, request, actor)

    def book_room(self, request, actor: Optional[User] = None) -> Booking:
        return self._book(UnitKind.ROOM, request, actor)

    def _book(self, kind: UnitKind, request, actor: Optional[User]) -> Booking:
        missing = first_missing_field(request, REQUIRED_FIELDS[kind])
        if missing:
            raise InvalidInput(f"Please provide all required fields: {missing} is missing", field=missing)

        if actor is not None and not actor.is_admin and request.user_id != actor.id:
            raise Forbidden("You can only create bookings for yourself")

        date_range = self.detector.validate_date_range(
            DateRange(request.check_in_date, request.check_out_date)
        )
        if request.number_of_guests <= 0:
            raise InvalidInput("number_of_guests must be at least 1", field="number_of_guests")

        unit_id = request.apartment_id if kind == UnitKind.APARTMENT else request.room_id
        target = UnitRef(kind, unit_id)

        self.inventory.get_user(request.user_id)
        self.inventory.get_hotel(request.hotel_id)

        # Fail fast outside the lock; the ledger checks again inside it
        result = self.detector.check_availability(AvailabilityCandidate(
            target=target,
            date_range=date_range,
            number_of_guests=request.number_of_guests,
        ))
        raise_for_result(result)

        draft = BookingDraft(
            user_id=request.user_id,
            hotel_id=request.hotel_id,
            target=target,
            date_range=date_range,
            number_of_guests=request.number_of_guests,
            payment_amount=request.payment_amount,
            payment_method=request.payment_method,
            payment_currency=request.payment_currency,
            payment_status=request.payment_status.value if request.payment_status else None,
            payment_transaction_id=request.payment_transaction_id,
            status=request.status.value if request.status else None,
        )
        return self.ledger.create(draft)

    # ----- probe -----

    def probe(self, request) -> AvailabilityResult:
        """Same checks as booking creation, reported as {available, reason}"""
        kind = request.booking_type
        if kind is None:
            if request.apartment_id:
                kind = UnitKind.APARTMENT
            elif request.room_id:
                kind = UnitKind.ROOM
            else:
                raise InvalidInput("Please provide apartment_id or room_id", field="apartment_id")
        kind = UnitKind(kind)

        id_field = "apartment_id" if kind == UnitKind.APARTMENT else "room_id"
        missing = first_missing_field(request, (id_field, "check_in_date", "check_out_date"))
        if missing:
            raise InvalidInput(f"Please provide all required fields: {missing} is missing", field=missing)

        return self.detector.check_availability(AvailabilityCandidate(
            target=UnitRef(kind, getattr(request, id_field)),
            date_range=DateRange(request.check_in_date, request.check_out_date),
            number_of_guests=request.number_of_guests,
        ))

    # ----- ledger pass-through -----

    def _ensure_can_see(self, booking: Booking, actor: Optional[User]) -> None:
        if actor is not None and not actor.is_admin and booking.user_id != actor.id:
            raise Forbidden("You are not allowed to access this booking")

    def get_booking(self, booking_id: str, actor: Optional[User] = None) -> Booking:
        booking = self.ledger.get(booking_id)
        self._ensure_can_see(booking, actor)
        return booking

    def list_bookings(
        self,
        booking_filter: Optional[BookingFilter] = None,
        page: int = 1,
        page_size: Optional[int] = None,
        actor: Optional[User] = None
    ) -> Tuple[List[Booking], int]:
        booking_filter = booking_filter or BookingFilter()
        if actor is not None and not actor.is_admin:
            booking_filter.user_id = actor.id

        page_size = min(page_size or settings.default_page_size, settings.max_page_size)
        return self.ledger.list_by_filter(booking_filter, max(page, 1), page_size)

    def update_status(
        self,
        booking_id: str,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        actor: Optional[User] = None
    ) -> Booking:
        if actor is not None and not actor.is_admin:
            raise Forbidden("Only administrators can update booking status")
        return self.ledger.transition(booking_id, status, payment_status)

    def cancel(self, booking_id: str, actor: User) -> Booking:
        return self.ledger.cancel(booking_id, actor)
