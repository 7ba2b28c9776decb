"""
Structured logging tests: event fields and request id end up as JSON keys.
"""

import json
import logging
from datetime import date

from app.utils.logging_config import (
    JSONFormatter, clear_request_context, get_logger, set_request_context
)


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def capture(name: str):
    handler = RecordingHandler()
    base = logging.getLogger(name)
    base.addHandler(handler)
    base.setLevel(logging.INFO)
    return get_logger(name), handler


class TestJSONFormatter:

    def test_booking_created_fields(self):
        logger, handler = capture("tests.logging.created")
        set_request_context("req-42")
        try:
            logger.booking_created(
                "b-1", "room:r1", date(2025, 6, 1), date(2025, 6, 3), user_id="u-1", duration_ms=3.5
            )
            entry = json.loads(JSONFormatter().format(handler.records[0]))
        finally:
            clear_request_context()

        assert entry["event"] == "booking_created"
        assert entry["request_id"] == "req-42"
        assert entry["unit"] == "room:r1"
        assert entry["check_in"] == "2025-06-01"
        assert entry["user_id"] == "u-1"
        assert entry["duration_ms"] == 3.5

    def test_plain_message_has_no_event(self):
        logger, handler = capture("tests.logging.plain")
        logger.info("hello")

        entry = json.loads(JSONFormatter().format(handler.records[0]))

        assert entry["message"] == "hello"
        assert "event" not in entry
        assert "request_id" not in entry
