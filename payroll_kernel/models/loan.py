"""
Module: payroll_kernel.models.loan
Responsibility: ORM persistence for staff loans and their append-only
    repayment history.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - outstanding_balance >= 0 and installments_paid >= 0 (CHECK constraints).
    - outstanding_balance never increases and installments_paid never
      decreases (db/immutability.py).
    - (staff_id, loan_sequence) is unique; loan_sequence is the per-staff
      insertion order used when deducting several loans in one period.
    - LoanRepayment rows are immutable from creation and
      (loan_id, installment_number) is unique.

Failure modes:
    - IntegrityError on a negative balance or duplicate installment number.
    - ImmutabilityViolationError on balance increase or repayment edit.

Audit relevance:
    The repayment history reconstructs the balance of any loan at any time:
    principal minus the sum of repayments equals outstanding_balance.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase, UUIDString
from payroll_kernel.domain.dtos import LoanInfo, LoanRepaymentInfo, LoanStatus


class Loan(TrackedBase):
    """
    A loan granted to a staff member and repaid by monthly deduction.

    Contract:
        Only APPROVED, unpaused loans with a positive balance whose effective
        start date is on or before the period start are deducted.

    Guarantees:
        - Reaching a zero balance moves the loan to COMPLETED.
    """

    __tablename__ = "loans"

    __table_args__ = (
        UniqueConstraint("staff_id", "loan_sequence", name="uq_loan_staff_sequence"),
        CheckConstraint("outstanding_balance >= 0", name="ck_loan_balance_non_negative"),
        CheckConstraint("installments_paid >= 0", name="ck_loan_installments_non_negative"),
        CheckConstraint("principal_amount > 0", name="ck_loan_principal_positive"),
        CheckConstraint("monthly_deduction > 0", name="ck_loan_deduction_positive"),
        Index("idx_loan_staff_status", "staff_id", "status"),
    )

    staff_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("staff_members.id"),
        nullable=False,
    )

    loan_sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    principal_amount: Mapped[Decimal] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    repayment_term_months: Mapped[int] = mapped_column(Integer, nullable=False)

    monthly_deduction: Mapped[Decimal] = mapped_column(nullable=False)

    outstanding_balance: Mapped[Decimal] = mapped_column(nullable=False)

    installments_paid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=LoanStatus.PENDING.value,
        nullable=False,
    )

    # First period the loan may be deducted in; falls back to created_at
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    status_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_paused: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    pause_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Loan {self.id} staff={self.staff_id} {self.status} balance={self.outstanding_balance}>"

    @property
    def loan_status(self) -> LoanStatus:
        return LoanStatus(self.status)

    def to_dto(self) -> LoanInfo:
        return LoanInfo(
            loan_id=self.id,
            staff_id=self.staff_id,
            loan_sequence=self.loan_sequence,
            principal_amount=self.principal_amount,
            monthly_deduction=self.monthly_deduction,
            outstanding_balance=self.outstanding_balance,
            installments_paid=self.installments_paid,
            repayment_term_months=self.repayment_term_months,
            status=self.loan_status,
            is_paused=self.is_paused,
            start_date=self.start_date,
            created_at=self.created_at,
            approved_at=self.approved_at,
            reason=self.reason,
            pause_reason=self.pause_reason,
            status_comments=self.status_comments,
        )


class LoanRepayment(TrackedBase):
    """
    One repayment against a loan.  Append-only.

    Guarantees:
        - installment_number equals the loan's installments_paid right
          after this repayment was applied.
    """

    __tablename__ = "loan_repayments"

    __table_args__ = (
        UniqueConstraint("loan_id", "installment_number", name="uq_repayment_installment"),
        CheckConstraint("amount > 0", name="ck_repayment_amount_positive"),
        Index("idx_repayment_loan", "loan_id", "paid_at"),
    )

    loan_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("loans.id"),
        nullable=False,
    )

    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # SALARY_DEDUCTION for payroll runs, MANUAL_PAYMENT etc. otherwise
    payment_method: Mapped[str] = mapped_column(String(40), nullable=False)

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<LoanRepayment loan={self.loan_id} #{self.installment_number} {self.amount}>"

    def to_dto(self) -> LoanRepaymentInfo:
        return LoanRepaymentInfo(
            repayment_id=self.id,
            loan_id=self.loan_id,
            amount=self.amount,
            payment_method=self.payment_method,
            note=self.note,
            paid_at=self.paid_at,
            recorded_by_id=self.created_by_id,
        )
