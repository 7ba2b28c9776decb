"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection
- Row locking for the booking critical section
- Per-unit lock keys shared by the in-process and row-level locks
"""

from typing import Optional, TypeVar, Type, List
from sqlalchemy.orm import Session

from ..models.unit import UnitRef

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    try:
        dialect = db.bind.dialect.name
        return dialect == 'postgresql'
    except AttributeError:
        return False


def acquire_row_lock(db: Session, model: Type[T], filter_condition) -> Optional[T]:
    """
    Load a row under SELECT ... FOR UPDATE on PostgreSQL.

    The lock lives until the session's transaction ends. SQLite has no row
    locks, so there the row is loaded plainly and the in-process KeyedLock
    is the only guard.

    Returns:
        The locked model instance, or None if not found

    Example:
        apartment = acquire_row_lock(db, Apartment, Apartment.id == apartment_id)
    """
    query = db.query(model).filter(filter_condition)

    if is_postgres(db):
        query = query.with_for_update()

    return query.first()


def unit_lock_keys(target: UnitRef, parent: Optional[UnitRef] = None) -> List[str]:
    """
    Keys that serialize booking creation for a target.

    A room booking also takes its parent apartment's key, so it serializes
    with whole-apartment bookings. Sorted to give every caller the same
    acquisition order.
    """
    keys = {target.lock_key}
    if parent is not None:
        keys.add(parent.lock_key)
    return sorted(keys)
