"""
Availability Override Service

Manages the per-day manual availability flags for apartments and rooms.
One row per (unit, date); setting a day again replaces the previous value.
"""

import logging
from datetime import date, timedelta
from typing import Iterator, List, Optional, Union
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..config import settings
from ..exceptions import InvalidInput, NotFound, Unavailable
from ..models.availability import ApartmentAvailability, RoomAvailability
from ..models.unit import UnitKind, UnitRef
from .inventory_service import InventoryService

logger = logging.getLogger(__name__)

AvailabilityRecord = Union[ApartmentAvailability, RoomAvailability]


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class AvailabilityOverrideService:
    """
    Service for operator-declared availability overrides.

    Key responsibilities:
    - Upsert a single day or a range of days
    - Read a unit's overrides for a window
    - Answer "is any night of this stay manually blocked?"
    """

    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def _model_for(self, kind: UnitKind):
        if kind == UnitKind.APARTMENT:
            return ApartmentAvailability, ApartmentAvailability.apartment_id
        return RoomAvailability, RoomAvailability.room_id

    def _find(self, unit: UnitRef, target_date: date) -> Optional[AvailabilityRecord]:
        model, unit_column = self._model_for(unit.kind)
        return self.db.query(model).filter(
            unit_column == unit.id,
            model.date == target_date
        ).first()

    def _upsert(self, unit: UnitRef, target_date: date, is_available: bool) -> AvailabilityRecord:
        """Write one day and commit it."""
        entry = self._find(unit, target_date)
        if entry is None:
            model, unit_column = self._model_for(unit.kind)
            entry = model(date=target_date, is_available=is_available)
            setattr(entry, unit_column.key, unit.id)
            self.db.add(entry)
        else:
            entry.is_available = is_available

        try:
            self.db.commit()
        except IntegrityError:
            # Another writer inserted the same (unit, date) first: update theirs
            self.db.rollback()
            entry = self._find(unit, target_date)
            if entry is None:
                raise
            entry.is_available = is_available
            self.db.commit()

        self.db.refresh(entry)
        return entry

    def set_override(self, unit: UnitRef, target_date: date, is_available: bool = True) -> AvailabilityRecord:
        """Set the manual flag for one day. Idempotent."""
        self.inventory.get_unit(unit.kind, unit.id)

        try:
            entry = self._upsert(unit, target_date, is_available)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to set availability for {unit} on {target_date}: {e}")
            raise Unavailable("Could not save availability override")

        logger.info(
            f"Availability override {unit} {target_date} -> "
            f"{'available' if is_available else 'blocked'}"
        )
        return entry

    def set_range(self, unit: UnitRef, start_date: date, end_date: date, is_available: bool = True) -> int:
        """
        Set the manual flag for every day in [start_date, end_date].

        Days are written one at a time; if a write fails the days already
        written stay, and the error reports how many succeeded.
        Returns count of days written.
        """
        if start_date > end_date:
            raise InvalidInput("start_date must be on or before end_date", field="end_date")

        total_days = (end_date - start_date).days + 1
        if total_days > settings.max_override_range_days:
            raise InvalidInput(
                f"Range covers {total_days} days; the maximum is {settings.max_override_range_days}",
                field="end_date"
            )

        self.inventory.get_unit(unit.kind, unit.id)

        count = 0
        for day in iter_days(start_date, end_date):
            try:
                self._upsert(unit, day, is_available)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(
                    f"Bulk availability for {unit} stopped at {day} "
                    f"after {count}/{total_days} days: {e}"
                )
                raise Unavailable(
                    f"Availability saved for {count} of {total_days} days before a storage error",
                    details={"count": count, "failed_date": day.isoformat()}
                )
            count += 1

        logger.info(
            f"Availability override {unit} {start_date}..{end_date} -> "
            f"{'available' if is_available else 'blocked'} ({count} days)"
        )
        return count

    def query_overrides(self, unit: UnitRef, start_date: date, end_date: date) -> List[AvailabilityRecord]:
        """Overrides for the unit with start_date <= date <= end_date, oldest first."""
        if start_date > end_date:
            raise InvalidInput("start_date must be on or before end_date", field="end_date")

        model, unit_column = self._model_for(unit.kind)
        return self.db.query(model).filter(
            unit_column == unit.id,
            model.date >= start_date,
            model.date <= end_date
        ).order_by(model.date.asc()).all()

    def _blocking_query(self, unit: UnitRef, check_in: date, check_out: date):
        # Half-open: the checkout morning is not a night of the stay
        model, unit_column = self._model_for(unit.kind)
        return self.db.query(model).filter(
            unit_column == unit.id,
            model.is_available == False,  # noqa: E712
            model.date >= check_in,
            model.date < check_out
        )

    def has_blocking_override(self, unit: UnitRef, check_in: date, check_out: date) -> bool:
        return self._blocking_query(unit, check_in, check_out).first() is not None

    def first_blocking_date(self, unit: UnitRef, check_in: date, check_out: date) -> Optional[date]:
        model, _ = self._model_for(unit.kind)
        entry = self._blocking_query(unit, check_in, check_out).order_by(model.date.asc()).first()
        return entry.date if entry else None

    def delete_override(self, kind: UnitKind, override_id: str) -> None:
        model, _ = self._model_for(kind)
        entry = self.db.query(model).filter(model.id == override_id).first()
        if not entry:
            raise NotFound("Availability record not found")

        self.db.delete(entry)
        self.db.commit()
        logger.info(f"Deleted availability override {override_id} ({kind.value})")
