"""
Loan ledger arithmetic -- pure.

Responsibility:
    Given a loan snapshot and a repayment amount, compute the loan's next
    state.  Used for payroll deductions and manual repayments alike, so both
    paths obey the same rules.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - 0 < amount <= outstanding balance; the balance never goes negative.
    - installments_paid increases by exactly one per repayment.
    - A balance that reaches zero moves the loan to COMPLETED.

Failure modes:
    - LoanNotApprovedError when the loan is not APPROVED.
    - InvalidRepaymentAmountError for a zero or negative amount.
    - LoanDeductionExceedsBalanceError when amount > outstanding balance.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from payroll_kernel.domain.dtos import LoanInfo, LoanStatus
from payroll_kernel.exceptions import (
    InvalidRepaymentAmountError,
    LoanDeductionExceedsBalanceError,
    LoanNotApprovedError,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class LoanLedgerUpdate:
    """Next state of a loan after one repayment."""

    loan_id: UUID
    amount: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    new_installments: int
    new_status: LoanStatus

    @property
    def completes_loan(self) -> bool:
        return self.new_status == LoanStatus.COMPLETED


def compute_repayment(loan: LoanInfo, amount: Decimal) -> LoanLedgerUpdate:
    """
    Apply ``amount`` to ``loan`` and return the resulting state.

    Preconditions: loan is APPROVED; 0 < amount <= loan.outstanding_balance.
    Postconditions: new_balance = outstanding - amount, never below zero;
        new_status is COMPLETED iff new_balance is zero.
    """
    if loan.status != LoanStatus.APPROVED:
        raise LoanNotApprovedError(str(loan.loan_id), loan.status.value)
    if amount <= 0:
        raise InvalidRepaymentAmountError(str(loan.loan_id), str(amount))
    if amount > loan.outstanding_balance:
        raise LoanDeductionExceedsBalanceError(
            str(loan.loan_id), str(amount), str(loan.outstanding_balance)
        )

    new_balance = loan.outstanding_balance - amount
    new_status = LoanStatus.APPROVED
    if new_balance <= 0:
        new_balance = ZERO
        new_status = LoanStatus.COMPLETED

    return LoanLedgerUpdate(
        loan_id=loan.loan_id,
        amount=amount,
        previous_balance=loan.outstanding_balance,
        new_balance=new_balance,
        new_installments=loan.installments_paid + 1,
        new_status=new_status,
    )
