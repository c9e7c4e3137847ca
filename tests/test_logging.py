"""
Tests for structured logging.

Covers:
- JSON record layout and extra fields
- LogContext binding, nesting and restoration
- Exception fields from typed kernel errors
"""

import json
import logging
import sys
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import LoanNotApprovedError
from payroll_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def _format(record: logging.LogRecord) -> dict:
    return json.loads(StructuredFormatter().format(record))


def _record(msg: str = "loan_created", **extra) -> logging.LogRecord:
    record = logging.LogRecord("payroll_kernel.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:

    def test_basic_layout(self):
        payload = _format(_record())

        assert payload["message"] == "loan_created"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "payroll_kernel.test"
        assert "ts" in payload

    def test_extras_serialized(self):
        loan_id = uuid4()

        payload = _format(_record(loan_id=loan_id, amount=Decimal("60000.00")))

        assert payload["loan_id"] == str(loan_id)
        assert payload["amount"] == "60000.00"

    def test_context_wins_over_extra(self):
        with LogContext.bind(run_id="run-1"):
            payload = _format(_record(run_id="other"))

        assert payload["run_id"] == "run-1"

    def test_kernel_error_fields(self):
        try:
            raise LoanNotApprovedError("loan-7", "PENDING")
        except LoanNotApprovedError:
            record = logging.LogRecord(
                "payroll_kernel.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        payload = _format(record)

        assert payload["exc_type"] == "LoanNotApprovedError"
        assert payload["exc_code"] == "LOAN_NOT_APPROVED"
        assert payload["exc_loan_id"] == "loan-7"
        assert payload["exc_status"] == "PENDING"
        assert "traceback" in payload


class TestLogContext:

    def test_bind_restores_previous(self):
        with LogContext.bind(run_id="outer", period="2024-01"):
            with LogContext.bind(staff_id="s-1"):
                assert LogContext.get_all() == {
                    "run_id": "outer",
                    "period": "2024-01",
                    "staff_id": "s-1",
                }
            assert "staff_id" not in LogContext.get_all()

        assert LogContext.get_all() == {}

    def test_none_values_ignored(self):
        LogContext.set(run_id="r", actor_id=None)

        assert LogContext.get_all() == {"run_id": "r"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            LogContext.set(tenant="acme")

    def test_context_on_emitted_records(self, captured_logs):
        with LogContext.bind(run_id="run-9", period="2024-02"):
            get_logger("test").info("payroll_probe", extra={"count": 3})

        record = next(r for r in captured_logs() if r["message"] == "payroll_probe")
        assert record["run_id"] == "run-9"
        assert record["period"] == "2024-02"
        assert record["count"] == 3
