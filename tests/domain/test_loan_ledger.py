"""
Tests for the pure loan ledger arithmetic.

Covers:
- Partial repayment
- Repayment that clears the loan (COMPLETED, zero balance)
- Rejection of non-approved loans, bad amounts, over-repayment
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.domain.dtos import LoanInfo, LoanStatus
from payroll_kernel.domain.loan_ledger import compute_repayment
from payroll_kernel.exceptions import (
    InvalidRepaymentAmountError,
    LoanDeductionExceedsBalanceError,
    LoanNotApprovedError,
)


def _loan(outstanding: str = "150000", installments: int = 0, status=LoanStatus.APPROVED):
    return LoanInfo(
        loan_id=uuid4(),
        staff_id=uuid4(),
        loan_sequence=1,
        principal_amount=Decimal("150000"),
        monthly_deduction=Decimal("60000"),
        outstanding_balance=Decimal(outstanding),
        installments_paid=installments,
        repayment_term_months=3,
        status=status,
    )


class TestComputeRepayment:

    def test_partial_repayment(self):
        loan = _loan()

        update = compute_repayment(loan, Decimal("60000"))

        assert update.loan_id == loan.loan_id
        assert update.previous_balance == Decimal("150000")
        assert update.new_balance == Decimal("90000")
        assert update.new_installments == 1
        assert update.new_status == LoanStatus.APPROVED
        assert update.completes_loan is False

    def test_final_repayment_completes_loan(self):
        loan = _loan(outstanding="30000", installments=2)

        update = compute_repayment(loan, Decimal("30000"))

        assert update.new_balance == Decimal("0")
        assert update.new_installments == 3
        assert update.new_status == LoanStatus.COMPLETED
        assert update.completes_loan is True

    def test_sequence_of_repayments_conserves_principal(self):
        loan = _loan()
        repaid = Decimal("0")
        for amount in (Decimal("60000"), Decimal("60000"), Decimal("30000")):
            update = compute_repayment(loan, amount)
            repaid += amount
            assert update.new_balance == loan.principal_amount - repaid
            loan = replace(
                loan,
                outstanding_balance=update.new_balance,
                installments_paid=update.new_installments,
                status=update.new_status,
            )

        assert loan.status == LoanStatus.COMPLETED
        assert loan.installments_paid == 3


class TestComputeRepaymentRejections:

    @pytest.mark.parametrize(
        "status", [LoanStatus.PENDING, LoanStatus.REJECTED, LoanStatus.COMPLETED]
    )
    def test_non_approved_loan(self, status):
        with pytest.raises(LoanNotApprovedError) as exc_info:
            compute_repayment(_loan(status=status), Decimal("100"))
        assert exc_info.value.status == status.value

    @pytest.mark.parametrize("amount", ["0", "-1"])
    def test_non_positive_amount(self, amount):
        with pytest.raises(InvalidRepaymentAmountError):
            compute_repayment(_loan(), Decimal(amount))

    def test_amount_above_balance(self):
        with pytest.raises(LoanDeductionExceedsBalanceError) as exc_info:
            compute_repayment(_loan(outstanding="100"), Decimal("100.01"))
        assert exc_info.value.code == "LOAN_DEDUCTION_EXCEEDS_BALANCE"
