"""
Conflict Detector

Decides whether a unit can be booked for a date range. Shared by booking
creation and the availability probe, so both apply the same rules:

- eligibility: unit exists, is available, may be booked on its own, fits the guests
- date sanity: check_in < check_out, check_in not before today
- overlaps with active (PENDING / CONFIRMED) bookings across the hierarchy:
    * apartment: its own bookings and bookings on any of its rooms
    * room: its own bookings and bookings on its parent apartment
  Sibling rooms never block each other.
- manual blocks from the availability override store

Ranges are half-open [check_in, check_out): a checkout day can be the next
guest's check-in day.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..exceptions import InvalidInput, NotFound
from ..models.booking import Booking, ACTIVE_STATUSES
from ..models.room import Room
from ..models.unit import UnitKind, UnitRef
from .availability_service import AvailabilityOverrideService
from .inventory_service import InventoryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    check_in: date
    check_out: date


def ranges_overlap(a: DateRange, b: DateRange) -> bool:
    """True when the two half-open ranges share at least one night"""
    return a.check_in < b.check_out and a.check_out > b.check_in


class Verdict(str, enum.Enum):
    AVAILABLE = "available"
    NOT_FOUND = "not_found"
    INELIGIBLE = "ineligible"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"


@dataclass
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    verdict: Verdict = Verdict.AVAILABLE
    offending_field: Optional[str] = None
    conflicts: List[Booking] = field(default_factory=list)

    @property
    def conflicting_bookings(self) -> int:
        return len(self.conflicts)

    @classmethod
    def ok(cls) -> "AvailabilityResult":
        return cls(available=True)

    @classmethod
    def refused(cls, verdict: Verdict, reason: str, field: Optional[str] = None,
                conflicts: Optional[List[Booking]] = None) -> "AvailabilityResult":
        return cls(available=False, reason=reason, verdict=verdict, offending_field=field,
                   conflicts=conflicts or [])


@dataclass(frozen=True)
class AvailabilityCandidate:
    target: UnitRef
    date_range: DateRange
    number_of_guests: Optional[int] = None


def _label(kind: UnitKind) -> str:
    return "Apartment" if kind == UnitKind.APARTMENT else "Room"


def _date_field(date_range: DateRange) -> str:
    return "check_out_date" if date_range.check_out <= date_range.check_in else "check_in_date"


class ConflictDetector:
    """Read-only availability checks over bookings, inventory and overrides"""

    def __init__(self, db: Session, clock: Callable[[], date] = date.today):
        self.db = db
        self.clock = clock
        self.inventory = InventoryService(db)
        self.overrides = AvailabilityOverrideService(db)

    # ----- dates -----

    def date_range_problem(self, date_range: DateRange) -> Optional[str]:
        if date_range.check_out <= date_range.check_in:
            return "Check-out date must be after check-in date"
        if date_range.check_in < self.clock():
            return "Check-in date cannot be in the past"
        return None

    def validate_date_range(self, date_range: DateRange) -> DateRange:
        problem = self.date_range_problem(date_range)
        if problem:
            raise InvalidInput(problem, field=_date_field(date_range))
        return date_range

    # ----- overlaps -----

    def _room_ids_of(self, apartment_id: str) -> List[str]:
        return [row.id for row in self.db.query(Room.id).filter(Room.apartment_id == apartment_id).all()]

    def _parent_of(self, room_id: str) -> Optional[str]:
        row = self.db.query(Room.apartment_id).filter(Room.id == room_id).first()
        return row.apartment_id if row else None

    def find_conflicts(self, target: UnitRef, date_range: DateRange) -> List[Booking]:
        """
        Every active booking that would collide with target for date_range.

        Covers the target's own bookings plus the other level of the
        hierarchy: an apartment's rooms, or a room's parent apartment.
        """
        column = Booking.apartment_id if target.is_apartment else Booking.room_id
        conditions = [column == target.id]

        if target.is_apartment:
            room_ids = self._room_ids_of(target.id)
            if room_ids:
                conditions.append(Booking.room_id.in_(room_ids))
        else:
            parent_id = self._parent_of(target.id)
            if parent_id:
                conditions.append(Booking.apartment_id == parent_id)

        return self.db.query(Booking).filter(
            or_(*conditions),
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.check_in_date < date_range.check_out,
            Booking.check_out_date > date_range.check_in
        ).order_by(Booking.check_in_date.asc()).all()

    # ----- full check -----

    def _eligibility(self, candidate: AvailabilityCandidate) -> Optional[AvailabilityResult]:
        target = candidate.target
        label = _label(target.kind)

        try:
            unit = self.inventory.get_unit(target.kind, target.id)
        except NotFound as e:
            return AvailabilityResult.refused(Verdict.NOT_FOUND, e.message)

        if not unit.is_available:
            return AvailabilityResult.refused(Verdict.INELIGIBLE, f"{label} is not available for booking")

        if target.is_room:
            parent_blocks_split = unit.apartment is not None and not unit.apartment.rooms_bookable_separately
            if not unit.bookable_individually or parent_blocks_split:
                return AvailabilityResult.refused(Verdict.INELIGIBLE, "This room cannot be booked individually")

        guests = candidate.number_of_guests
        if guests is not None and guests > unit.capacity:
            return AvailabilityResult.refused(
                Verdict.INVALID_INPUT, f"{label} capacity is {unit.capacity} guests",
                field="number_of_guests"
            )

        problem = self.date_range_problem(candidate.date_range)
        if problem:
            return AvailabilityResult.refused(
                Verdict.INVALID_INPUT, problem, field=_date_field(candidate.date_range)
            )

        return None

    def check_availability(self, candidate: AvailabilityCandidate) -> AvailabilityResult:
        """
        Run every rule for the candidate, stopping at the first failure.

        A refusal is a normal result. Only malformed input (missing dates,
        non-positive guest count) raises InvalidInput.
        """
        date_range = candidate.date_range
        if date_range is None or date_range.check_in is None or date_range.check_out is None:
            raise InvalidInput("check_in_date and check_out_date are required", field="check_in_date")
        if candidate.number_of_guests is not None and candidate.number_of_guests <= 0:
            raise InvalidInput("number_of_guests must be at least 1", field="number_of_guests")

        refusal = self._eligibility(candidate)
        if refusal:
            return refusal

        target = candidate.target
        label = _label(target.kind)

        conflicts = self.find_conflicts(target, date_range)
        if conflicts:
            # The target's own bookings take precedence over the other level for the reason
            if any(booking.target == target for booking in conflicts):
                reason = f"{label} is already booked for the selected dates"
            elif target.is_apartment:
                reason = "Cannot book apartment because some rooms are already booked"
            else:
                reason = "Cannot book room because the entire apartment is already booked"
            return AvailabilityResult.refused(Verdict.CONFLICT, reason, conflicts=conflicts)

        blocked_on = self.overrides.first_blocking_date(target, date_range.check_in, date_range.check_out)
        if blocked_on is not None:
            return AvailabilityResult.refused(
                Verdict.CONFLICT,
                f"{label} is not available for the selected dates (Manually blocked on {blocked_on.isoformat()})"
            )

        logger.debug(f"{target} available for {date_range.check_in}..{date_range.check_out}")
        return AvailabilityResult.ok()
