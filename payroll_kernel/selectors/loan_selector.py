"""
Module: payroll_kernel.selectors.loan_selector
Responsibility: Read-side queries over loans and repayments: the candidate
    loans for a payroll deduction, per-loan statements with a running
    balance, and portfolio-wide summary figures.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Deduction candidates are returned in loan_sequence order so that
      multiple loans of one staff member are always deducted in the order
      they were taken out.
    - Statement running balance starts at the principal and decreases by
      each repayment in installment order.

Failure modes:
    - LoanNotFoundError for an unknown loan id.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from payroll_kernel.domain.dtos import (
    LoanInfo,
    LoanPortfolioSummary,
    LoanRepaymentInfo,
    LoanStatement,
    LoanStatementEntry,
    LoanStatus,
    StatementEntryType,
)
from payroll_kernel.exceptions import LoanNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.loan import Loan, LoanRepayment
from payroll_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.loan")

ZERO = Decimal("0")


def _as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class LoanSelector(BaseSelector):
    """Loan and repayment queries."""

    def list_deductible_loans(
        self,
        staff_id: UUID,
        for_update: bool = False,
    ) -> list[LoanInfo]:
        """
        Approved, unpaused loans with a positive balance, in loan_sequence order.

        The start-date rule is applied by the caller via the pure
        eligibility predicate, since it depends on the payroll period.

        Args:
            staff_id: Staff member whose loans are wanted.
            for_update: Lock the rows (SELECT ... FOR UPDATE) for the rest
                of the caller's transaction.
        """
        stmt = (
            select(Loan)
            .where(
                Loan.staff_id == staff_id,
                Loan.status == LoanStatus.APPROVED.value,
                Loan.is_paused.is_(False),
                Loan.outstanding_balance > 0,
            )
            .order_by(Loan.loan_sequence)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get(self, loan_id: UUID) -> LoanInfo:
        loan = self.session.get(Loan, loan_id)
        if loan is None:
            raise LoanNotFoundError(str(loan_id))
        return loan.to_dto()

    def list_loans(
        self,
        staff_id: UUID | None = None,
        status: LoanStatus | None = None,
    ) -> list[LoanInfo]:
        """Loans filtered by staff and/or status, most recently created first."""
        stmt = select(Loan)
        if staff_id is not None:
            stmt = stmt.where(Loan.staff_id == staff_id)
        if status is not None:
            stmt = stmt.where(Loan.status == status.value)
        stmt = stmt.order_by(Loan.created_at.desc(), Loan.loan_sequence.desc())
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def list_repayments(self, loan_id: UUID) -> list[LoanRepaymentInfo]:
        """Repayments in the order they were applied."""
        stmt = (
            select(LoanRepayment)
            .where(LoanRepayment.loan_id == loan_id)
            .order_by(LoanRepayment.installment_number)
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def next_loan_sequence(self, staff_id: UUID) -> int:
        stmt = select(func.max(Loan.loan_sequence)).where(Loan.staff_id == staff_id)
        current = self.session.scalar(stmt)
        return int(current or 0) + 1

    def get_statement(self, loan_id: UUID) -> LoanStatement:
        """
        Disbursement followed by every repayment, with a running balance.

        Postconditions:
            The last entry's balance equals principal minus total repaid.
        """
        loan = self.get(loan_id)
        repayments = self.list_repayments(loan_id)

        balance = loan.principal_amount
        entries = [
            LoanStatementEntry(
                entry_type=StatementEntryType.DISBURSEMENT,
                entry_date=loan.approved_at or loan.created_at,
                description="Loan disbursement",
                debit=loan.principal_amount,
                credit=ZERO,
                balance=balance,
                reference_id=loan.loan_id,
            )
        ]

        total_repaid = ZERO
        for repayment in repayments:
            balance -= repayment.amount
            total_repaid += repayment.amount
            entries.append(
                LoanStatementEntry(
                    entry_type=StatementEntryType.REPAYMENT,
                    entry_date=repayment.paid_at,
                    description=repayment.note or repayment.payment_method,
                    debit=ZERO,
                    credit=repayment.amount,
                    balance=balance,
                    reference_id=repayment.repayment_id,
                    payment_method=repayment.payment_method,
                )
            )

        if balance != loan.outstanding_balance:
            logger.warning(
                "loan_statement_balance_mismatch",
                extra={
                    "loan_id": str(loan_id),
                    "statement_balance": str(balance),
                    "recorded_balance": str(loan.outstanding_balance),
                },
            )

        return LoanStatement(
            loan=loan,
            entries=tuple(entries),
            principal_amount=loan.principal_amount,
            total_repaid=total_repaid,
            outstanding_balance=loan.outstanding_balance,
            installments_paid=loan.installments_paid,
            total_installments=loan.repayment_term_months,
        )

    def get_portfolio_summary(self) -> LoanPortfolioSummary:
        """Counts per status and the headline amounts across all loans."""
        counts = {status: 0 for status in LoanStatus}
        disbursed = ZERO
        outstanding = ZERO

        stmt = select(
            Loan.status,
            func.count(Loan.id),
            func.sum(Loan.principal_amount),
            func.sum(Loan.outstanding_balance),
        ).group_by(Loan.status)

        for status, count, principal_sum, balance_sum in self.session.execute(stmt):
            loan_status = LoanStatus(status)
            counts[loan_status] = int(count)
            if loan_status in (LoanStatus.APPROVED, LoanStatus.COMPLETED):
                disbursed += _as_decimal(principal_sum)
            if loan_status == LoanStatus.APPROVED:
                outstanding += _as_decimal(balance_sum)

        total_repaid = _as_decimal(
            self.session.scalar(select(func.sum(LoanRepayment.amount)))
        )

        return LoanPortfolioSummary(
            total_loans=sum(counts.values()),
            status_counts=counts,
            total_disbursed=disbursed,
            total_outstanding=outstanding,
            total_repaid=total_repaid,
        )
