"""
Module: payroll_kernel.services.loan_ledger_service
Responsibility: Persist loan balance changes and append repayment records.
    This is the only code path that writes Loan.outstanding_balance,
    Loan.installments_paid or LoanRepayment rows.
Architecture position: Kernel > Services.  Flush-only.

Invariants enforced:
    - Every balance change is paired with exactly one LoanRepayment whose
      installment_number equals the loan's new installments_paid.
    - Rules for the new state come from domain.loan_ledger.compute_repayment.

Failure modes:
    - LoanNotFoundError if the loan does not exist (e.g. removed mid-run).
    - LoanNotApprovedError / InvalidRepaymentAmountError /
      LoanDeductionExceedsBalanceError from compute_repayment.
    - IntegrityError on a duplicate installment number (concurrent writer).

Audit relevance:
    Emits ``loan_deduction_applied`` for every repayment and
    ``loan_completed`` when a loan is paid off.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from payroll_kernel.domain.dtos import LoanInfo, LoanStatus
from payroll_kernel.domain.loan_ledger import LoanLedgerUpdate, compute_repayment
from payroll_kernel.exceptions import LoanNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.loan import Loan, LoanRepayment
from payroll_kernel.services.base import BaseService

logger = get_logger("services.loan_ledger")


class LoanLedgerService(BaseService):
    """
    Loan ledger writer.

    Contract:
        ``update_loan`` and ``append_repayment`` are the raw primitives;
        ``apply_repayment`` combines them with the ledger rules and is what
        callers normally use.
    """

    def _load(self, loan_id: UUID, for_update: bool = False) -> Loan:
        loan = self.session.get(Loan, loan_id, with_for_update=for_update)
        if loan is None:
            raise LoanNotFoundError(str(loan_id))
        return loan

    def update_loan(
        self,
        loan_id: UUID,
        new_balance: Decimal,
        new_installments: int,
        new_status: LoanStatus,
        actor_id: UUID,
    ) -> LoanInfo:
        """Write the loan's new balance, installment count and status."""
        loan = self._load(loan_id)
        loan.outstanding_balance = new_balance
        loan.installments_paid = new_installments
        loan.status = new_status.value
        loan.updated_by_id = actor_id
        self.session.flush()

        if new_status == LoanStatus.COMPLETED:
            logger.info(
                "loan_completed",
                extra={
                    "loan_id": str(loan_id),
                    "staff_id": str(loan.staff_id),
                    "installments_paid": new_installments,
                },
            )
        return loan.to_dto()

    def append_repayment(
        self,
        loan_id: UUID,
        amount: Decimal,
        payment_method: str,
        note: str | None,
        actor_id: UUID,
        paid_at: datetime | None = None,
    ) -> UUID:
        """
        Append a repayment record for the loan's latest installment.

        Preconditions: update_loan() has already advanced installments_paid.
        """
        loan = self._load(loan_id)
        repayment = LoanRepayment(
            loan_id=loan_id,
            installment_number=loan.installments_paid,
            amount=amount,
            payment_method=payment_method,
            note=note,
            paid_at=paid_at or self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(repayment)
        self.session.flush()
        return repayment.id

    def apply_repayment(
        self,
        loan_id: UUID,
        amount: Decimal,
        payment_method: str,
        note: str | None,
        actor_id: UUID,
    ) -> LoanLedgerUpdate:
        """
        Apply one repayment to a loan.

        Preconditions: The loan exists and is APPROVED;
            0 < amount <= outstanding balance.
        Postconditions: Balance reduced by amount, installments + 1,
            COMPLETED when the balance reaches zero, one LoanRepayment
            appended.  Flushed, not committed.

        Raises:
            LoanNotFoundError, LoanNotApprovedError,
            InvalidRepaymentAmountError, LoanDeductionExceedsBalanceError.
        """
        loan = self._load(loan_id, for_update=True)
        update = compute_repayment(loan.to_dto(), amount)

        self.update_loan(
            loan_id,
            update.new_balance,
            update.new_installments,
            update.new_status,
            actor_id,
        )
        repayment_id = self.append_repayment(
            loan_id, amount, payment_method, note, actor_id
        )

        logger.info(
            "loan_deduction_applied",
            extra={
                "loan_id": str(loan_id),
                "repayment_id": str(repayment_id),
                "amount": str(amount),
                "previous_balance": str(update.previous_balance),
                "new_balance": str(update.new_balance),
                "payment_method": payment_method,
            },
        )
        return update
