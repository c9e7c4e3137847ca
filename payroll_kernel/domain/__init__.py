"""
Pure domain layer.

Immutable DTOs and the injectable clock.  No dependencies on the ORM,
the database or I/O.
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.dtos import (
    CompensationInfo,
    ComputationWarning,
    LoanDeduction,
    LoanInfo,
    LoanPortfolioSummary,
    LoanRepaymentInfo,
    LoanStatement,
    LoanStatementEntry,
    LoanStatus,
    NamedAmount,
    PayLine,
    PayrollPeriod,
    PayrollScheduleInfo,
    StaffInfo,
    StatementEntryType,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CompensationInfo",
    "ComputationWarning",
    "LoanDeduction",
    "LoanInfo",
    "LoanPortfolioSummary",
    "LoanRepaymentInfo",
    "LoanStatement",
    "LoanStatementEntry",
    "LoanStatus",
    "NamedAmount",
    "PayLine",
    "PayrollPeriod",
    "PayrollScheduleInfo",
    "StaffInfo",
    "StatementEntryType",
]
