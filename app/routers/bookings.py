from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..config import settings
from ..database import get_db
from ..models.booking import Booking, BookingStatus, BookingType
from ..models.user import User
from ..schemas.booking import (
    ApartmentBookingCreate, RoomBookingCreate, AvailabilityCheckRequest,
    AvailabilityCheckResponse, BookingResponse, BookingStatusUpdate
)
from ..schemas.pagination import PaginatedResponse
from ..schemas.response import ApiResponse, ok
from ..services.booking_ledger import BookingFilter
from ..services.reservation_service import ReservationWorkflow
from ..utils.dependencies import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_workflow(db: Session = Depends(get_db)) -> ReservationWorkflow:
    return ReservationWorkflow(db)


def to_booking_response(booking: Booking) -> BookingResponse:
    """Booking with its user, hotel and unit summaries"""
    return BookingResponse.model_validate(booking)


@router.post("/apartment", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def book_apartment(
    request: ApartmentBookingCreate,
    workflow: ReservationWorkflow = Depends(get_workflow),
    current_user: User = Depends(get_current_user)
):
    booking = workflow.book_apartment(request, actor=current_user)
    return ok(to_booking_response(booking), "Apartment booked successfully", status.HTTP_201_CREATED)


@router.post("/room", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def book_room(
    request: RoomBookingCreate,
    workflow: ReservationWorkflow = Depends(get_workflow),
    current_user: User = Depends(get_current_user)
):
    booking = workflow.book_room(request, actor=current_user)
    return ok(to_booking_response(booking), "Room booked successfully", status.HTTP_201_CREATED)


@router.post("/check-availability", response_model=ApiResponse)
def check_availability(
    request: AvailabilityCheckRequest,
    workflow: ReservationWorkflow = Depends(get_workflow)
):
    """Probe without booking. An unavailable unit is still a 200."""
    result = workflow.probe(request)
    payload = AvailabilityCheckResponse(
        available=result.available,
        reason=result.reason,
        conflicting_bookings=result.conflicting_bookings
    )
    message = "Unit is available" if result.available else "Unit is not available"
    return ok(payload, message)


@router.get("", response_model=ApiResponse)
@router.get("/", response_model=ApiResponse)
def list_bookings(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    user_id: Optional[str] = None,
    hotel_id: Optional[str] = None,
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    booking_type: Optional[BookingType] = None,
    workflow: ReservationWorkflow = Depends(get_workflow),
    current_user: User = Depends(get_current_user)
):
    """Non-admins only ever see their own bookings"""
    booking_filter = BookingFilter(
        user_id=user_id,
        hotel_id=hotel_id,
        status=booking_status.value if booking_status else None,
        booking_type=booking_type.value if booking_type else None,
    )
    bookings, total = workflow.list_bookings(booking_filter, page, page_size, actor=current_user)
    effective_size = min(page_size or settings.default_page_size, settings.max_page_size)
    payload = PaginatedResponse[BookingResponse].create(
        items=[to_booking_response(b) for b in bookings],
        total=total,
        page=page,
        page_size=effective_size
    )
    return ok(payload, "Bookings fetched successfully")


@router.get("/{booking_id}", response_model=ApiResponse)
def get_booking(
    booking_id: str,
    workflow: ReservationWorkflow = Depends(get_workflow),
    current_user: User = Depends(get_current_user)
):
    booking = workflow.get_booking(booking_id, actor=current_user)
    return ok(to_booking_response(booking), "Booking fetched successfully")


@router.patch("/{booking_id}/status", response_model=ApiResponse)
def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate,
    workflow: ReservationWorkflow = Depends(get_workflow),
    current_user: User = Depends(require_admin)
):
    booking = workflow.update_status(
        booking_id,
        status=update.status.value if update.status else None,
        payment_status=update.payment_status.value if update.payment_status else None,
        actor=current_user
    )
    return ok(to_booking_response(booking), "Booking status updated successfully")


@router.delete("/{booking_id}", response_model=ApiResponse)
def cancel_booking(
    booking_id: str,
    workflow: ReservationWorkflow = Depends(get_workflow),
    current_user: User = Depends(get_current_user)
):
    booking = workflow.cancel(booking_id, actor=current_user)
    return ok(to_booking_response(booking), "Booking cancelled successfully")
