"""Write-side kernel services.  Flush-only; callers own the transaction."""

from payroll_kernel.services.base import BaseService
from payroll_kernel.services.compensation_service import CompensationService
from payroll_kernel.services.loan_ledger_service import LoanLedgerService
from payroll_kernel.services.loan_service import LoanService

__all__ = [
    "BaseService",
    "CompensationService",
    "LoanLedgerService",
    "LoanService",
]
