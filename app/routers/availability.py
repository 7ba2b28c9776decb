from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
import logging

from ..database import get_db
from ..models.unit import UnitKind, UnitRef
from ..models.user import User
from ..schemas.availability import (
    AvailabilityOverrideSet, AvailabilityRangeSet,
    AvailabilityOverrideResponse, AvailabilityRangeResult
)
from ..schemas.response import ApiResponse, ok
from ..services.availability_service import AvailabilityOverrideService
from ..utils.dependencies import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/availability", tags=["Availability"])


def get_override_service(db: Session = Depends(get_db)) -> AvailabilityOverrideService:
    return AvailabilityOverrideService(db)


@router.post("/{kind}", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def set_availability(
    kind: UnitKind,
    payload: AvailabilityOverrideSet,
    service: AvailabilityOverrideService = Depends(get_override_service),
    current_user: User = Depends(require_admin)
):
    """Set one day's manual availability (replaces any previous value)"""
    entry = service.set_override(UnitRef(kind, payload.unit_id), payload.date, payload.is_available)
    return ok(
        AvailabilityOverrideResponse.model_validate(entry),
        "Availability saved",
        status.HTTP_201_CREATED
    )


@router.post("/{kind}/bulk", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def set_availability_range(
    kind: UnitKind,
    payload: AvailabilityRangeSet,
    service: AvailabilityOverrideService = Depends(get_override_service),
    current_user: User = Depends(require_admin)
):
    """Set every day from start_date to end_date inclusive"""
    count = service.set_range(
        UnitRef(kind, payload.unit_id), payload.start_date, payload.end_date, payload.is_available
    )
    result = AvailabilityRangeResult(count=count, start_date=payload.start_date, end_date=payload.end_date)
    return ok(result, f"Availability saved for {count} days", status.HTTP_201_CREATED)


@router.get("/{kind}/{unit_id}", response_model=ApiResponse)
def get_availability(
    kind: UnitKind,
    unit_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    service: AvailabilityOverrideService = Depends(get_override_service)
):
    entries = service.query_overrides(UnitRef(kind, unit_id), start_date, end_date)
    return ok(
        [AvailabilityOverrideResponse.model_validate(e) for e in entries],
        "Availability fetched successfully"
    )


@router.delete("/{kind}/{override_id}", response_model=ApiResponse)
def delete_availability(
    kind: UnitKind,
    override_id: str,
    service: AvailabilityOverrideService = Depends(get_override_service),
    current_user: User = Depends(require_admin)
):
    service.delete_override(kind, override_id)
    return ok({"id": override_id}, "Availability record deleted")
