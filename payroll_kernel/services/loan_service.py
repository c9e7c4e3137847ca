"""
Module: payroll_kernel.services.loan_service
Responsibility: Loan lifecycle outside of payroll runs: creation, approval or
    rejection, pause/resume, and manual repayments.
Architecture position: Kernel > Services.  Flush-only.  Balance changes are
    delegated to LoanLedgerService so manual repayments and payroll
    deductions follow identical rules.

Invariants enforced:
    - Status transitions follow LOAN_STATUS_TRANSITIONS; COMPLETED is only
      reached through a repayment that clears the balance.
    - A new loan starts with outstanding_balance = principal_amount and the
      next loan_sequence of its staff member.
    - Pausing requires a reason.

Failure modes:
    - StaffNotFoundError / LoanNotFoundError for unknown ids.
    - PayrollValidationError for invalid amounts, terms or missing reasons.
    - InvalidLoanTransitionError for disallowed status changes.
    - LoanNotApprovedError / InvalidRepaymentAmountError on repayments.
"""

from datetime import date
from decimal import ROUND_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_kernel.db.types import round_money, to_money
from payroll_kernel.domain.clock import Clock
from payroll_kernel.domain.dtos import LoanInfo, LoanStatus
from payroll_kernel.domain.loan_ledger import LoanLedgerUpdate
from payroll_kernel.exceptions import (
    InvalidLoanTransitionError,
    InvalidRepaymentAmountError,
    LoanNotApprovedError,
    LoanNotFoundError,
    PayrollValidationError,
    StaffNotFoundError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.loan import Loan
from payroll_kernel.models.staff import StaffMember
from payroll_kernel.selectors.loan_selector import LoanSelector
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.loan_ledger_service import LoanLedgerService

logger = get_logger("services.loan")

LOAN_STATUS_TRANSITIONS: dict[LoanStatus, frozenset[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED}),
    LoanStatus.APPROVED: frozenset(),
    LoanStatus.REJECTED: frozenset(),
    LoanStatus.COMPLETED: frozenset(),
}

DEFAULT_MANUAL_METHOD = "MANUAL_PAYMENT"


def first_day_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


class LoanService(BaseService):
    """
    Loan lifecycle management.

    Contract:
        All writes are flushed into the caller's transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        manual_repayment_method: str = DEFAULT_MANUAL_METHOD,
        money_decimal_places: int = 2,
    ):
        super().__init__(session, clock)
        self._ledger = LoanLedgerService(session, self._clock)
        self._selector = LoanSelector(session)
        self._manual_method = manual_repayment_method
        self._decimal_places = money_decimal_places

    def _load(self, loan_id: UUID) -> Loan:
        loan = self.session.get(Loan, loan_id)
        if loan is None:
            raise LoanNotFoundError(str(loan_id))
        return loan

    def create_loan(
        self,
        staff_id: UUID,
        principal_amount: Decimal | int | str,
        repayment_term_months: int,
        actor_id: UUID,
        reason: str | None = None,
        monthly_deduction: Decimal | int | str | None = None,
        start_date: date | None = None,
    ) -> LoanInfo:
        """
        Record a new PENDING loan.

        The monthly deduction defaults to principal / term rounded up to the
        cent, so the loan is cleared within its term.
        """
        if self.session.get(StaffMember, staff_id) is None:
            raise StaffNotFoundError(str(staff_id))

        principal = to_money(principal_amount)
        if principal <= 0:
            raise PayrollValidationError("principal_amount must be positive", field="principal_amount")
        if isinstance(repayment_term_months, bool) or not isinstance(repayment_term_months, int) \
                or repayment_term_months < 1:
            raise PayrollValidationError(
                "repayment_term_months must be a positive integer",
                field="repayment_term_months",
            )

        if monthly_deduction is None:
            deduction = round_money(
                principal / repayment_term_months,
                decimal_places=self._decimal_places,
                rounding=ROUND_UP,
            )
        else:
            deduction = to_money(monthly_deduction)
            if deduction <= 0:
                raise PayrollValidationError(
                    "monthly_deduction must be positive", field="monthly_deduction"
                )

        loan = Loan(
            staff_id=staff_id,
            loan_sequence=self._selector.next_loan_sequence(staff_id),
            principal_amount=principal,
            reason=reason,
            repayment_term_months=repayment_term_months,
            monthly_deduction=deduction,
            outstanding_balance=principal,
            installments_paid=0,
            status=LoanStatus.PENDING.value,
            start_date=start_date,
            is_paused=False,
            created_by_id=actor_id,
        )
        self.session.add(loan)
        self.session.flush()

        logger.info(
            "loan_created",
            extra={
                "loan_id": str(loan.id),
                "staff_id": str(staff_id),
                "principal_amount": str(principal),
                "monthly_deduction": str(deduction),
                "loan_sequence": loan.loan_sequence,
            },
        )
        return loan.to_dto()

    def update_status(
        self,
        loan_id: UUID,
        status: LoanStatus,
        actor_id: UUID,
        comments: str | None = None,
        start_date: date | None = None,
    ) -> LoanInfo:
        """
        Approve or reject a pending loan.

        On approval, approved_at is stamped from the clock and start_date is
        the given date, else the loan's own start_date, else the first day
        of the month after approval.

        Raises:
            InvalidLoanTransitionError: transition not in LOAN_STATUS_TRANSITIONS.
        """
        loan = self._load(loan_id)
        current = loan.loan_status
        if status not in LOAN_STATUS_TRANSITIONS[current]:
            raise InvalidLoanTransitionError(str(loan_id), current.value, status.value)

        loan.status = status.value
        loan.status_comments = comments
        loan.updated_by_id = actor_id

        if status == LoanStatus.APPROVED:
            now = self._clock.now()
            loan.approved_at = now
            loan.approved_by_id = actor_id
            loan.start_date = start_date or loan.start_date or first_day_of_next_month(now.date())

        self.session.flush()

        logger.info(
            "loan_status_changed",
            extra={
                "loan_id": str(loan_id),
                "from_status": current.value,
                "to_status": status.value,
                "start_date": loan.start_date,
            },
        )
        return loan.to_dto()

    def set_paused(
        self,
        loan_id: UUID,
        paused: bool,
        actor_id: UUID,
        reason: str | None = None,
    ) -> LoanInfo:
        """
        Pause or resume deductions for a loan.

        Raises:
            PayrollValidationError: pausing without a reason, or no change.
            InvalidLoanTransitionError: loan is REJECTED or COMPLETED.
        """
        loan = self._load(loan_id)
        if loan.loan_status in (LoanStatus.REJECTED, LoanStatus.COMPLETED):
            raise InvalidLoanTransitionError(
                str(loan_id), loan.status, "PAUSED" if paused else "RESUMED"
            )
        if loan.is_paused == paused:
            state = "paused" if paused else "active"
            raise PayrollValidationError(f"Loan {loan_id} is already {state}", field="paused")

        if paused:
            if not reason or not reason.strip():
                raise PayrollValidationError("A reason is required to pause a loan", field="reason")
            loan.is_paused = True
            loan.pause_reason = reason.strip()
            loan.paused_at = self._clock.now()
        else:
            loan.is_paused = False
            loan.pause_reason = None
            loan.paused_at = None
        loan.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "loan_paused" if paused else "loan_resumed",
            extra={"loan_id": str(loan_id), "reason": loan.pause_reason},
        )
        return loan.to_dto()

    def record_manual_repayment(
        self,
        loan_id: UUID,
        amount: Decimal | int | str,
        actor_id: UUID,
        payment_method: str | None = None,
        note: str | None = None,
    ) -> LoanLedgerUpdate:
        """
        Record a repayment made outside payroll.

        The amount is capped at the outstanding balance.

        Raises:
            InvalidRepaymentAmountError: amount is zero or negative.
            LoanNotApprovedError: loan is not APPROVED.
        """
        loan = self._load(loan_id)
        requested = to_money(amount)
        if requested <= 0:
            raise InvalidRepaymentAmountError(str(loan_id), str(requested))
        if loan.loan_status != LoanStatus.APPROVED:
            raise LoanNotApprovedError(str(loan_id), loan.status)

        applied = min(requested, loan.outstanding_balance)
        return self._ledger.apply_repayment(
            loan_id,
            applied,
            payment_method or self._manual_method,
            note,
            actor_id,
        )
