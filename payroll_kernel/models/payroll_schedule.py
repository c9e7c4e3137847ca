"""
Module: payroll_kernel.models.payroll_schedule
Responsibility: ORM persistence for the immutable per-period payroll snapshot.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - At most one schedule per (month, year): uq_payroll_schedule_period.
      This constraint is the arbiter between concurrent runs.
    - month is 1..12 (CHECK constraint).
    - Immutable from creation (db/immutability.py).

Failure modes:
    - IntegrityError on a second schedule for the same period; the
      orchestrator maps it to PayrollScheduleConflictError.

Audit relevance:
    ``lines`` is a frozen copy of every pay line, including staff identity
    and itemized deductions, so later changes to staff, compensation or
    loans never alter what was paid.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase, UUIDString
from payroll_kernel.domain.dtos import PayLine, PayrollScheduleInfo

PERIOD_CONSTRAINT_NAME = "uq_payroll_schedule_period"


class PayrollSchedule(TrackedBase):
    """
    Payroll snapshot for one calendar month.

    Guarantees:
        - payable_total equals the sum of net_pay over included lines.
        - line_count / included_staff_count / warning_count describe ``lines``.
    """

    __tablename__ = "payroll_schedules"

    __table_args__ = (
        UniqueConstraint("month", "year", name=PERIOD_CONSTRAINT_NAME),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_payroll_schedule_month"),
    )

    month: Mapped[int] = mapped_column(Integer, nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    generated_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    lines: Mapped[list] = mapped_column(JSON, nullable=False)

    payable_total: Mapped[Decimal] = mapped_column(nullable=False)

    line_count: Mapped[int] = mapped_column(Integer, nullable=False)

    included_staff_count: Mapped[int] = mapped_column(Integer, nullable=False)

    warning_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<PayrollSchedule {self.month}/{self.year} total={self.payable_total}>"

    def to_dto(self, include_lines: bool = True) -> PayrollScheduleInfo:
        lines: tuple[PayLine, ...] = ()
        if include_lines:
            lines = tuple(PayLine.from_dict(raw) for raw in self.lines)
        return PayrollScheduleInfo(
            schedule_id=self.id,
            month=self.month,
            year=self.year,
            generated_at=self.generated_at,
            generated_by_id=self.generated_by_id,
            payable_total=self.payable_total,
            line_count=self.line_count,
            included_staff_count=self.included_staff_count,
            warning_count=self.warning_count,
            lines=lines,
        )
