"""ORM models for the payroll kernel."""

from payroll_kernel.models.compensation import CompensationStructure
from payroll_kernel.models.loan import Loan, LoanRepayment
from payroll_kernel.models.payroll_schedule import PayrollSchedule
from payroll_kernel.models.staff import StaffMember

__all__ = [
    "CompensationStructure",
    "Loan",
    "LoanRepayment",
    "PayrollSchedule",
    "StaffMember",
]
