"""
Shared fixtures: a fresh file-backed SQLite database per test, a small
seeded hotel and a TestClient wired to it.

Seeded inventory:
    hotel
    └── apartment A101 (capacity 4)
        ├── room R1 (capacity 2)
        └── room R2 (capacity 2)
    └── room S1 (standalone, capacity 2)
"""

import sys
import os
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import build_engine, create_tables, get_db
from app.main import app
from app.models import Apartment, Hotel, Room, User, UserRole
from app.routers import bookings as bookings_router
from app.schemas.booking import ApartmentBookingCreate, RoomBookingCreate
from app.services.booking_ledger import BookingLedger
from app.services.reservation_service import ReservationWorkflow
from app.utils.locks import KeyedLock
from app.utils.security import create_access_token

# Fixed "today" for every date-sensitive test
TODAY = date(2025, 5, 1)


def fixed_clock():
    return TODAY


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'reservations_test.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    hotel = Hotel(name="Seaside Hotel", city="Lisbon", country="Portugal")
    db.add(hotel)
    db.flush()

    apartment = Apartment(
        hotel_id=hotel.id, apartment_number="A101", name="Family Apartment",
        total_capacity=4, price_per_night=Decimal("200.00")
    )
    db.add(apartment)
    db.flush()

    r1 = Room(hotel_id=hotel.id, apartment_id=apartment.id, room_number="R1", capacity=2)
    r2 = Room(hotel_id=hotel.id, apartment_id=apartment.id, room_number="R2", capacity=2)
    standalone = Room(hotel_id=hotel.id, room_number="S1", capacity=2)

    guest = User(username="guest", email="guest@example.com", role=UserRole.USER.value)
    other = User(username="other", email="other@example.com", role=UserRole.USER.value)
    admin = User(username="admin", email="admin@example.com", role=UserRole.ADMIN.value)

    db.add_all([r1, r2, standalone, guest, other, admin])
    db.commit()

    return SimpleNamespace(
        hotel_id=hotel.id,
        apartment_id=apartment.id,
        r1_id=r1.id,
        r2_id=r2.id,
        standalone_id=standalone.id,
        user=guest,
        user_id=guest.id,
        other_id=other.id,
        other=other,
        admin=admin,
        admin_id=admin.id,
    )


@pytest.fixture
def ledger(db):
    return BookingLedger(db, locks=KeyedLock(), clock=fixed_clock)


@pytest.fixture
def workflow(db):
    return ReservationWorkflow(db, clock=fixed_clock, locks=KeyedLock())


@pytest.fixture
def apartment_request(seed):
    """Build an apartment booking request; keyword overrides win"""
    def build(**overrides):
        values = dict(
            user_id=seed.user_id,
            hotel_id=seed.hotel_id,
            apartment_id=seed.apartment_id,
            check_in_date=date(2025, 8, 10),
            check_out_date=date(2025, 8, 12),
            number_of_guests=2,
            payment_amount=Decimal("400.00"),
            payment_method="card",
        )
        values.update(overrides)
        return ApartmentBookingCreate(**values)
    return build


@pytest.fixture
def room_request(seed):
    def build(**overrides):
        values = dict(
            user_id=seed.user_id,
            hotel_id=seed.hotel_id,
            room_id=seed.r1_id,
            check_in_date=date(2025, 8, 10),
            check_out_date=date(2025, 8, 12),
            number_of_guests=1,
            payment_amount=Decimal("150.00"),
            payment_method="card",
        )
        values.update(overrides)
        return RoomBookingCreate(**values)
    return build


@pytest.fixture
def client(session_factory, seed):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_get_workflow(db: Session = Depends(get_db)):
        return ReservationWorkflow(db, clock=fixed_clock, locks=KeyedLock())

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[bookings_router.get_workflow] = override_get_workflow
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def user_headers(seed):
    return auth_headers(seed.user_id)


@pytest.fixture
def other_headers(seed):
    return auth_headers(seed.other_id)


@pytest.fixture
def admin_headers(seed):
    return auth_headers(seed.admin_id)
