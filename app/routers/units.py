from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.unit import UnitKind
from ..models.user import User
from ..schemas.response import ApiResponse, ok
from ..schemas.unit import (
    HotelCreate, HotelResponse, ApartmentCreate, ApartmentResponse,
    RoomCreate, RoomResponse, UnitDeleteResult
)
from ..services.inventory_service import InventoryService
from ..utils.dependencies import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/units", tags=["Inventory"])


def get_inventory(db: Session = Depends(get_db)) -> InventoryService:
    return InventoryService(db)


def to_unit_response(unit):
    if unit.kind == UnitKind.APARTMENT:
        return ApartmentResponse.model_validate(unit)
    return RoomResponse.model_validate(unit)


# ----- hotels -----

@router.post("/hotels", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def create_hotel(
    payload: HotelCreate,
    inventory: InventoryService = Depends(get_inventory),
    current_user: User = Depends(require_admin)
):
    hotel = inventory.create_hotel(payload)
    return ok(HotelResponse.model_validate(hotel), "Hotel created successfully", status.HTTP_201_CREATED)


@router.get("/hotels/{hotel_id}", response_model=ApiResponse)
def get_hotel(hotel_id: str, inventory: InventoryService = Depends(get_inventory)):
    return ok(HotelResponse.model_validate(inventory.get_hotel(hotel_id)), "Hotel fetched successfully")


@router.delete("/hotels/{hotel_id}", response_model=ApiResponse)
def delete_hotel(
    hotel_id: str,
    inventory: InventoryService = Depends(get_inventory),
    current_user: User = Depends(require_admin)
):
    """Removes the hotel with its apartments, rooms, bookings and overrides"""
    removed = inventory.delete_hotel(hotel_id)
    return ok(UnitDeleteResult(id=hotel_id, removed_bookings=removed), "Hotel deleted successfully")


# ----- apartments / rooms -----

@router.post("/apartments", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def create_apartment(
    payload: ApartmentCreate,
    inventory: InventoryService = Depends(get_inventory),
    current_user: User = Depends(require_admin)
):
    apartment = inventory.create_apartment(payload)
    return ok(ApartmentResponse.model_validate(apartment), "Apartment created successfully", status.HTTP_201_CREATED)


@router.post("/rooms", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    inventory: InventoryService = Depends(get_inventory),
    current_user: User = Depends(require_admin)
):
    room = inventory.create_room(payload)
    return ok(RoomResponse.model_validate(room), "Room created successfully", status.HTTP_201_CREATED)


@router.get("/apartments/{apartment_id}/rooms", response_model=ApiResponse)
def get_apartment_rooms(apartment_id: str, inventory: InventoryService = Depends(get_inventory)):
    rooms = inventory.get_rooms_of_apartment(apartment_id)
    return ok([RoomResponse.model_validate(r) for r in rooms], "Rooms fetched successfully")


@router.get("/{kind}/{unit_id}", response_model=ApiResponse)
def get_unit(kind: UnitKind, unit_id: str, inventory: InventoryService = Depends(get_inventory)):
    return ok(to_unit_response(inventory.get_unit(kind, unit_id)), "Unit fetched successfully")


@router.delete("/{kind}/{unit_id}", response_model=ApiResponse)
def delete_unit(
    kind: UnitKind,
    unit_id: str,
    inventory: InventoryService = Depends(get_inventory),
    current_user: User = Depends(require_admin)
):
    """Removes the unit and every booking and override that references it"""
    removed = inventory.delete_unit(kind, unit_id)
    return ok(UnitDeleteResult(id=unit_id, removed_bookings=removed), "Unit deleted successfully")
