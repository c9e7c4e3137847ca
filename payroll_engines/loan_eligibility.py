"""
Loan eligibility for a payroll period -- pure.

A loan is deducted in a period when all of the following hold:

    - status is APPROVED
    - it is not paused
    - outstanding_balance > 0
    - its effective start date (start_date, else the day it was recorded)
      is on or before the first day of the period

Loans without any usable start date are not deducted.
"""

from __future__ import annotations

from collections.abc import Iterable

from payroll_kernel.domain.dtos import LoanInfo, LoanStatus, PayrollPeriod


def is_loan_eligible(loan: LoanInfo, period: PayrollPeriod) -> bool:
    if loan.status != LoanStatus.APPROVED:
        return False
    if loan.is_paused:
        return False
    if loan.outstanding_balance <= 0:
        return False
    start = loan.effective_start_date
    if start is None:
        return False
    return start <= period.first_day


def filter_eligible_loans(loans: Iterable[LoanInfo], period: PayrollPeriod) -> list[LoanInfo]:
    """Eligible loans, ordered by loan_sequence (insertion order)."""
    eligible = [loan for loan in loans if is_loan_eligible(loan, period)]
    return sorted(eligible, key=lambda loan: loan.loan_sequence)
