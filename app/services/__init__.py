# Services package
from .inventory_service import InventoryService
from .availability_service import AvailabilityOverrideService, iter_days
from .conflict_detector import (
    AvailabilityCandidate,
    AvailabilityResult,
    ConflictDetector,
    DateRange,
    Verdict,
    ranges_overlap,
)
from .booking_ledger import BookingDraft, BookingFilter, BookingLedger, raise_for_result
from .reservation_service import ReservationWorkflow

__all__ = [
    "InventoryService",
    "AvailabilityOverrideService", "iter_days",
    "AvailabilityCandidate", "AvailabilityResult", "ConflictDetector",
    "DateRange", "Verdict", "ranges_overlap",
    "BookingDraft", "BookingFilter", "BookingLedger", "raise_for_result",
    "ReservationWorkflow",
]
