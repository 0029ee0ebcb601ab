"""
Unit tests - structured log output.
Testing: event data passed in ``extra`` reaches the formatted line.
"""

import io
import json
import logging
import sys
from decimal import Decimal

from shiftledger.core.logging import StructuredFormatter
from shiftledger.domain.value_objects import ShiftStatus


def format_record(logger_name: str, message: str, **extra) -> dict:
    logger = logging.getLogger(logger_name)
    record = logger.makeRecord(logger_name, logging.INFO, __file__, 1, message, (), None, extra=extra)
    return json.loads(StructuredFormatter().format(record))


class TestStructuredFormatter:

    def test_extra_fields_are_emitted(self):
        payload = format_record(
            "shiftledger.domain.services",
            "shift_closed",
            shift_id="abc",
            legs=8,
            difference=Decimal("10.5"),
        )
        assert payload["message"] == "shift_closed"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "shiftledger.domain.services"
        assert payload["shift_id"] == "abc"
        assert payload["legs"] == 8
        assert payload["difference"] == "10.5"

    def test_enum_and_list_values(self):
        payload = format_record("x", "flow_config_updated", missing=["cash_account"], status=ShiftStatus.OPEN)
        assert payload["missing"] == ["cash_account"]
        assert payload["status"] == "open"

    def test_stdlib_attributes_are_not_duplicated(self):
        payload = format_record("x", "event")
        assert "lineno" not in payload
        assert "args" not in payload

    def test_exception_details(self):
        logger = logging.getLogger("x")
        try:
            raise ValueError("boom")
        except ValueError:
            record = logger.makeRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["exc_type"] == "ValueError"
        assert payload["exc_message"] == "boom"
        assert "Traceback" in payload["traceback"]


def test_shift_close_log_line_carries_shift_id(shifts, accounting_date):
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("shiftledger.domain.services")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        shift = shifts.start_shift(Decimal("100"), accounting_date=accounting_date)
        shifts.close_shift(Decimal("90"), closed_by="Master Chef")
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    closed = next(line for line in lines if line["message"] == "shift_closed")
    assert closed["shift_id"] == shift.id
    assert closed["closed_by"] == "Master Chef"
    assert Decimal(closed["difference"]) == Decimal("-10")
