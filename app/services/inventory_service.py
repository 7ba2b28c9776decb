"""
Inventory Service

Read access to hotels, apartments and rooms for the reservation engine,
plus the small amount of CRUD needed to maintain the hierarchy.
Deletes cascade: a removed unit takes its bookings and overrides with it.
"""

import logging
from typing import List, Union
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..exceptions import InvalidInput, NotFound
from ..models.apartment import Apartment
from ..models.booking import Booking
from ..models.hotel import Hotel
from ..models.room import Room
from ..models.unit import UnitKind
from ..models.user import User

logger = logging.getLogger(__name__)

Unit = Union[Apartment, Room]


class InventoryService:
    """Hotel → apartment → room hierarchy"""

    def __init__(self, db: Session):
        self.db = db

    # ----- reads -----

    def get_hotel(self, hotel_id: str) -> Hotel:
        hotel = self.db.query(Hotel).filter(Hotel.id == hotel_id).first()
        if not hotel:
            raise NotFound("Hotel not found")
        return hotel

    def get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    def get_apartment(self, apartment_id: str) -> Apartment:
        apartment = self.db.query(Apartment).filter(Apartment.id == apartment_id).first()
        if not apartment:
            raise NotFound("Apartment not found")
        return apartment

    def get_room(self, room_id: str) -> Room:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise NotFound("Room not found")
        return room

    def get_unit(self, kind: UnitKind, unit_id: str) -> Unit:
        if UnitKind(kind) == UnitKind.APARTMENT:
            return self.get_apartment(unit_id)
        return self.get_room(unit_id)

    def get_rooms_of_apartment(self, apartment_id: str) -> List[Room]:
        self.get_apartment(apartment_id)
        return self.db.query(Room).filter(
            Room.apartment_id == apartment_id
        ).order_by(Room.room_number, Room.id).all()

    # ----- writes -----

    def create_hotel(self, data) -> Hotel:
        hotel = Hotel(**data.model_dump(exclude_unset=True))
        self.db.add(hotel)
        self.db.commit()
        self.db.refresh(hotel)
        logger.info(f"Created hotel {hotel.id} ({hotel.name})")
        return hotel

    def create_apartment(self, data) -> Apartment:
        self.get_hotel(data.hotel_id)
        apartment = Apartment(**data.model_dump(exclude_unset=True))
        self.db.add(apartment)
        self.db.commit()
        self.db.refresh(apartment)
        logger.info(f"Created apartment {apartment.id} in hotel {apartment.hotel_id}")
        return apartment

    def create_room(self, data) -> Room:
        values = data.model_dump(exclude_unset=True)
        apartment_id = values.get("apartment_id")
        hotel_id = values.get("hotel_id")

        if apartment_id:
            apartment = self.get_apartment(apartment_id)
            # A room always lives in its apartment's hotel
            if hotel_id and hotel_id != apartment.hotel_id:
                raise InvalidInput(
                    "Room hotel must match the hotel of its apartment", field="hotel_id"
                )
            values["hotel_id"] = apartment.hotel_id
        elif not hotel_id:
            raise InvalidInput("hotel_id is required for a room outside an apartment", field="hotel_id")
        else:
            self.get_hotel(hotel_id)

        room = Room(**values)
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Created room {room.id} (hotel {room.hotel_id}, apartment {room.apartment_id})")
        return room

    def _count_bookings_for(self, kind: UnitKind, unit_id: str) -> int:
        if kind == UnitKind.ROOM:
            return self.db.query(Booking).filter(Booking.room_id == unit_id).count()

        room_ids = [r.id for r in self.db.query(Room.id).filter(Room.apartment_id == unit_id).all()]
        condition = Booking.apartment_id == unit_id
        if room_ids:
            condition = or_(condition, Booking.room_id.in_(room_ids))
        return self.db.query(Booking).filter(condition).count()

    def delete_unit(self, kind: UnitKind, unit_id: str) -> int:
        """
        Delete an apartment or room together with everything that references it.
        Returns the number of bookings removed with it.
        """
        kind = UnitKind(kind)
        unit = self.get_unit(kind, unit_id)
        removed = self._count_bookings_for(kind, unit_id)

        self.db.delete(unit)
        self.db.commit()

        logger.info(f"Deleted {kind.value.lower()} {unit_id}; cascaded {removed} bookings")
        return removed

    def delete_hotel(self, hotel_id: str) -> int:
        hotel = self.get_hotel(hotel_id)
        removed = self.db.query(Booking).filter(Booking.hotel_id == hotel_id).count()

        self.db.delete(hotel)
        self.db.commit()

        logger.info(f"Deleted hotel {hotel_id}; cascaded {removed} bookings")
        return removed
