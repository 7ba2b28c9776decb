"""
Domain errors for the reservation engine.

Services raise these; main.py maps every subclass onto the response envelope
with its status_code. Storage failures are wrapped in Unavailable so driver
messages never reach clients.
"""

from typing import Optional, Any, Dict


class ReservationError(Exception):
    status_code: int = 400
    error_code: str = "reservation_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class InvalidInput(ReservationError):
    """Missing or malformed fields, bad date ordering, past check-in"""
    status_code = 400
    error_code = "invalid_input"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field
        if field:
            self.details.setdefault("field", field)


class NotFound(ReservationError):
    status_code = 404
    error_code = "not_found"


class Conflict(ReservationError):
    """Overlap with an active booking or a manual block; message is the reason"""
    status_code = 409
    error_code = "conflict"


class Forbidden(ReservationError):
    status_code = 403
    error_code = "forbidden"


class InvalidState(ReservationError):
    """Illegal lifecycle transition"""
    status_code = 400
    error_code = "invalid_state"


class Unavailable(ReservationError):
    """Storage or lock infrastructure could not serve the request; caller may retry"""
    status_code = 503
    error_code = "unavailable"
