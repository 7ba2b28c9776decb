from pydantic import BaseModel
from typing import Optional
from datetime import datetime, date

from .booking import CamelModel


class AvailabilityOverrideSet(CamelModel):
    unit_id: str
    date: date
    is_available: bool = True


class AvailabilityRangeSet(CamelModel):
    unit_id: str
    start_date: date
    end_date: date
    is_available: bool = True


class AvailabilityOverrideResponse(BaseModel):
    id: str
    unit_id: str
    date: date
    is_available: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailabilityRangeResult(BaseModel):
    count: int
    start_date: date
    end_date: date
