"""
Conflict Detector Tests

Covers the hierarchy rules:
- apartment blocked by its own bookings and by bookings on any of its rooms
- room blocked by its own bookings and by its parent apartment's bookings
- sibling rooms never block each other
plus eligibility preconditions, manual blocks and cancelled bookings.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.exceptions import InvalidInput
from app.models.apartment import Apartment
from app.models.booking import Booking, BookingStatus
from app.models.room import Room
from app.models.unit import UnitRef
from app.services.availability_service import AvailabilityOverrideService
from app.services.conflict_detector import AvailabilityCandidate, ConflictDetector, DateRange, Verdict

from conftest import TODAY, fixed_clock


def add_booking(db, seed, target: UnitRef, check_in: date, check_out: date, status=BookingStatus.CONFIRMED):
    booking = Booking(
        user_id=seed.user_id,
        hotel_id=seed.hotel_id,
        check_in_date=check_in,
        check_out_date=check_out,
        number_of_guests=1,
        status=status.value,
        payment_amount=Decimal("100.00"),
        payment_method="card",
    )
    booking.target = target
    db.add(booking)
    db.commit()
    return booking


def probe(db, target: UnitRef, check_in: date, check_out: date, guests=None):
    detector = ConflictDetector(db, clock=fixed_clock)
    return detector.check_availability(AvailabilityCandidate(target, DateRange(check_in, check_out), guests))


class TestHierarchy:

    def test_room_blocked_by_whole_apartment_booking(self, db, seed):
        """Apartment booked for June 1-5 blocks R1 on June 2-3"""
        add_booking(db, seed, UnitRef.apartment(seed.apartment_id), date(2025, 6, 1), date(2025, 6, 5))

        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 2), date(2025, 6, 3))

        assert result.available is False
        assert result.verdict == Verdict.CONFLICT
        assert "entire apartment is already booked" in result.reason
        assert result.conflicting_bookings == 1

    def test_apartment_blocked_by_room_booking(self, db, seed):
        add_booking(db, seed, UnitRef.room(seed.r2_id), date(2025, 6, 3), date(2025, 6, 4))

        result = probe(db, UnitRef.apartment(seed.apartment_id), date(2025, 6, 1), date(2025, 6, 5))

        assert result.available is False
        assert result.reason == "Cannot book apartment because some rooms are already booked"

    def test_apartment_blocked_by_own_booking(self, db, seed):
        add_booking(db, seed, UnitRef.apartment(seed.apartment_id), date(2025, 6, 1), date(2025, 6, 5))

        result = probe(db, UnitRef.apartment(seed.apartment_id), date(2025, 6, 4), date(2025, 6, 6))

        assert result.reason == "Apartment is already booked for the selected dates"

    def test_room_blocked_by_own_booking(self, db, seed):
        add_booking(db, seed, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 5))

        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 2))

        assert result.reason == "Room is already booked for the selected dates"

    def test_sibling_rooms_do_not_block_each_other(self, db, seed):
        add_booking(db, seed, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 5))

        result = probe(db, UnitRef.room(seed.r2_id), date(2025, 6, 1), date(2025, 6, 5))

        assert result.available is True

    def test_standalone_room_back_to_back(self, db, seed):
        """Checkout on July 3 leaves July 3 free for the next check-in"""
        add_booking(db, seed, UnitRef.room(seed.standalone_id), date(2025, 7, 1), date(2025, 7, 3))

        result = probe(db, UnitRef.room(seed.standalone_id), date(2025, 7, 3), date(2025, 7, 5))

        assert result.available is True
        assert result.reason is None

    def test_standalone_room_ignores_apartment_bookings(self, db, seed):
        add_booking(db, seed, UnitRef.apartment(seed.apartment_id), date(2025, 7, 1), date(2025, 7, 3))

        assert probe(db, UnitRef.room(seed.standalone_id), date(2025, 7, 1), date(2025, 7, 3)).available

    @pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
    def test_inactive_bookings_do_not_block(self, db, seed, status):
        add_booking(db, seed, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 5), status=status)

        assert probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 5)).available
        assert probe(db, UnitRef.apartment(seed.apartment_id), date(2025, 6, 1), date(2025, 6, 5)).available

    def test_pending_bookings_block(self, db, seed):
        add_booking(db, seed, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 5),
                    status=BookingStatus.PENDING)

        assert not probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 5)).available

    def test_find_conflicts_spans_levels(self, db, seed):
        add_booking(db, seed, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 3))
        add_booking(db, seed, UnitRef.room(seed.r2_id), date(2025, 6, 2), date(2025, 6, 4))
        add_booking(db, seed, UnitRef.room(seed.standalone_id), date(2025, 6, 1), date(2025, 6, 4))

        detector = ConflictDetector(db, clock=fixed_clock)
        conflicts = detector.find_conflicts(
            UnitRef.apartment(seed.apartment_id), DateRange(date(2025, 6, 1), date(2025, 6, 5))
        )

        assert {b.room_id for b in conflicts} == {seed.r1_id, seed.r2_id}

    def test_own_booking_reason_wins_and_all_conflicts_counted(self, db, seed):
        add_booking(db, seed, UnitRef.apartment(seed.apartment_id), date(2025, 6, 1), date(2025, 6, 3))
        add_booking(db, seed, UnitRef.room(seed.r1_id), date(2025, 6, 3), date(2025, 6, 5),
                    status=BookingStatus.PENDING)

        result = probe(db, UnitRef.apartment(seed.apartment_id), date(2025, 6, 2), date(2025, 6, 4))

        assert result.reason == "Apartment is already booked for the selected dates"
        assert result.conflicting_bookings == 2


class TestManualBlocks:

    def test_blocked_day_inside_stay(self, db, seed):
        AvailabilityOverrideService(db).set_override(UnitRef.room(seed.r1_id), date(2025, 8, 10), False)

        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 8, 9), date(2025, 8, 11))

        assert result.available is False
        assert "Manually blocked" in result.reason
        assert "2025-08-10" in result.reason

    def test_blocked_checkout_day_is_ignored(self, db, seed):
        AvailabilityOverrideService(db).set_override(UnitRef.room(seed.r1_id), date(2025, 8, 11), False)

        assert probe(db, UnitRef.room(seed.r1_id), date(2025, 8, 9), date(2025, 8, 11)).available

    def test_apartment_block_applies_to_apartment(self, db, seed):
        AvailabilityOverrideService(db).set_override(
            UnitRef.apartment(seed.apartment_id), date(2025, 8, 10), False
        )

        result = probe(db, UnitRef.apartment(seed.apartment_id), date(2025, 8, 10), date(2025, 8, 11))
        assert result.reason.startswith("Apartment is not available for the selected dates")


class TestPreconditions:

    def test_missing_unit(self, db, seed):
        result = probe(db, UnitRef.room("missing"), date(2025, 6, 1), date(2025, 6, 2))
        assert result.verdict == Verdict.NOT_FOUND
        assert result.reason == "Room not found"

    def test_unit_flagged_unavailable(self, db, seed):
        apartment = db.get(Apartment, seed.apartment_id)
        apartment.is_available = False
        db.commit()

        result = probe(db, UnitRef.apartment(seed.apartment_id), date(2025, 6, 1), date(2025, 6, 2))
        assert result.reason == "Apartment is not available for booking"

    def test_room_not_bookable_individually(self, db, seed):
        room = db.get(Room, seed.r1_id)
        room.bookable_individually = False
        db.commit()

        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 2))
        assert result.verdict == Verdict.INELIGIBLE
        assert result.reason == "This room cannot be booked individually"

    def test_apartment_that_forbids_split_bookings(self, db, seed):
        apartment = db.get(Apartment, seed.apartment_id)
        apartment.rooms_bookable_separately = False
        db.commit()

        result = probe(db, UnitRef.room(seed.r2_id), date(2025, 6, 1), date(2025, 6, 2))
        assert result.reason == "This room cannot be booked individually"

    def test_capacity(self, db, seed):
        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 2), guests=3)
        assert result.verdict == Verdict.INVALID_INPUT
        assert result.reason == "Room capacity is 2 guests"

    def test_unavailable_reported_before_capacity(self, db, seed):
        room = db.get(Room, seed.r1_id)
        room.is_available = False
        db.commit()

        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 2), guests=10)
        assert result.reason == "Room is not available for booking"

    def test_zero_night_stay(self, db, seed):
        result = probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 1))
        assert result.reason == "Check-out date must be after check-in date"

    def test_today_is_accepted(self, db, seed):
        assert probe(db, UnitRef.room(seed.r1_id), TODAY, TODAY + timedelta(days=1)).available

    def test_yesterday_is_rejected(self, db, seed):
        result = probe(db, UnitRef.room(seed.r1_id), TODAY - timedelta(days=1), TODAY + timedelta(days=1))
        assert result.reason == "Check-in date cannot be in the past"

    def test_non_positive_guest_count_raises(self, db, seed):
        with pytest.raises(InvalidInput):
            probe(db, UnitRef.room(seed.r1_id), date(2025, 6, 1), date(2025, 6, 2), guests=0)

    def test_validate_date_range_names_field(self, db, seed):
        detector = ConflictDetector(db, clock=fixed_clock)
        with pytest.raises(InvalidInput) as exc:
            detector.validate_date_range(DateRange(date(2025, 6, 3), date(2025, 6, 2)))
        assert exc.value.field == "check_out_date"
