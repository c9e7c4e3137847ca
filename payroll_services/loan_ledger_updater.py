"""
Module: payroll_services.loan_ledger_updater
Responsibility: Apply the loan deductions of computed pay lines back onto the
    loan ledger: new balance, installment count, completion, and one
    repayment record per deduction.
Architecture position: Services.  Writes only through PayrollRepository.

Invariants enforced:
    - Only included lines are applied; externally paid staff never touch
      the ledger.
    - Each deduction is re-checked against the current loan state with
      compute_repayment, so a loan is never taken below zero.
    - Not idempotent.  Exactly-once per period comes from the schedule
      uniqueness constraint checked in the same unit of work.

Failure modes:
    - LoanNotFoundError, LoanNotApprovedError,
      LoanDeductionExceedsBalanceError propagate to the orchestrator,
      which rolls the run back.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from payroll_kernel.domain.dtos import PayLine, PayrollPeriod
from payroll_kernel.domain.loan_ledger import LoanLedgerUpdate, compute_repayment
from payroll_kernel.logging_config import get_logger
from payroll_services.repositories import PayrollRepository

logger = get_logger("services.loan_ledger_updater")

DEFAULT_DEDUCTION_METHOD = "SALARY_DEDUCTION"
DEFAULT_NOTE_TEMPLATE = "Payroll deduction for {month}/{year}"


@dataclass(frozen=True)
class AppliedDeduction:
    """A ledger update together with the repayment row it produced."""

    staff_id: UUID
    update: LoanLedgerUpdate
    repayment_id: UUID


class LoanLedgerUpdater:
    """Writes pay line loan deductions to the ledger."""

    def __init__(
        self,
        repository: PayrollRepository,
        payment_method: str = DEFAULT_DEDUCTION_METHOD,
        note_template: str = DEFAULT_NOTE_TEMPLATE,
    ):
        self._repository = repository
        self._payment_method = payment_method
        self._note_template = note_template

    def note_for(self, period: PayrollPeriod) -> str:
        return self._note_template.format(month=period.month, year=period.year)

    def apply(
        self,
        lines: Sequence[PayLine],
        period: PayrollPeriod,
        actor_id: UUID,
    ) -> list[AppliedDeduction]:
        """
        Apply every positive loan deduction on the included lines.

        Returns the applied deductions in line order, then loan order.
        """
        note = self.note_for(period)
        applied: list[AppliedDeduction] = []

        for line in lines:
            if not line.included:
                continue
            for deduction in line.loan_deductions:
                if deduction.amount <= 0:
                    continue
                loan = self._repository.get_loan(deduction.loan_id)
                update = compute_repayment(loan, deduction.amount)
                self._repository.update_loan(
                    update.loan_id,
                    update.new_balance,
                    update.new_installments,
                    update.new_status,
                    actor_id,
                )
                repayment_id = self._repository.append_repayment(
                    update.loan_id,
                    update.amount,
                    self._payment_method,
                    note,
                    actor_id,
                )
                logger.info(
                    "loan_deduction_applied",
                    extra={
                        "loan_id": str(update.loan_id),
                        "staff_id": str(line.staff_id),
                        "repayment_id": str(repayment_id),
                        "amount": str(update.amount),
                        "previous_balance": str(update.previous_balance),
                        "new_balance": str(update.new_balance),
                        "installments_paid": update.new_installments,
                        "payment_method": self._payment_method,
                    },
                )
                applied.append(
                    AppliedDeduction(
                        staff_id=line.staff_id,
                        update=update,
                        repayment_id=repayment_id,
                    )
                )

        return applied
