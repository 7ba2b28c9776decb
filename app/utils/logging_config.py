"""
Structured logging for the reservation service.

Every record is one JSON object carrying the request id of the HTTP call
that produced it. Booking lifecycle events go through StructuredLogger so
the unit, dates and booking id land in their own keys instead of being
buried in the message.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        event = getattr(record, "event", None)
        if event:
            entry["event"] = event
            entry.update(getattr(record, "fields", {}))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Adapter with one helper per reservation event"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs.setdefault("extra", {}).update(self.extra)
        return msg, kwargs

    def event(self, level: int, name: str, msg: str, **fields):
        self.log(level, msg, extra={"event": name, "fields": fields})

    def booking_created(self, booking_id: str, target: str, check_in, check_out,
                        user_id: Optional[str] = None, duration_ms: Optional[float] = None):
        self.event(
            logging.INFO, "booking_created", f"Booking {booking_id} created on {target}",
            booking_id=booking_id, unit=target, check_in=check_in, check_out=check_out,
            user_id=user_id, duration_ms=duration_ms
        )

    def booking_rejected(self, target: str, reason: str, check_in, check_out):
        self.event(
            logging.INFO, "booking_rejected", f"Booking on {target} rejected: {reason}",
            unit=target, reason=reason, check_in=check_in, check_out=check_out
        )

    def booking_status_changed(self, booking_id: str, old_status: str, new_status: str):
        self.event(
            logging.INFO, "booking_status_changed",
            f"Booking {booking_id}: {old_status} -> {new_status}",
            booking_id=booking_id, old_status=old_status, new_status=new_status
        )

    def api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        self.event(
            logging.INFO, "api_request", f"{method} {path} - {status_code}",
            method=method, path=path, status_code=status_code, duration_ms=duration_ms
        )


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Route the root logger (and uvicorn's) to stdout at the given level."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [handler]

    # SQL echo only when explicitly asked for
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str) -> None:
    request_id_var.set(request_id)


def clear_request_context() -> None:
    request_id_var.set('')
