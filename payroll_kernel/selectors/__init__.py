"""Read-only query selectors returning domain DTOs."""

from payroll_kernel.selectors.base import BaseSelector
from payroll_kernel.selectors.compensation_selector import CompensationSelector
from payroll_kernel.selectors.loan_selector import LoanSelector
from payroll_kernel.selectors.schedule_selector import PayrollScheduleSelector
from payroll_kernel.selectors.staff_selector import StaffSelector

__all__ = [
    "BaseSelector",
    "CompensationSelector",
    "LoanSelector",
    "PayrollScheduleSelector",
    "StaffSelector",
]
