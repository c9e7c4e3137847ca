"""
Configuration schema for the payroll engine.

Every field has a default in ``defaults.yaml``; the dataclass is frozen so
a run holds one immutable view of its configuration.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PayrollEngineConfig:
    """Validated runtime configuration."""

    database_url: str
    min_year: int
    max_year: int
    salary_deduction_method: str
    repayment_note_template: str
    manual_repayment_method: str
    money_decimal_places: int
    log_level: str
    pool_size: int
    echo_sql: bool
    checksum: str = ""

    def repayment_note(self, month: int, year: int) -> str:
        """Note stored on repayments created by a payroll run."""
        return self.repayment_note_template.format(month=month, year=year)
