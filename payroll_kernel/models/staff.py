"""
Module: payroll_kernel.models.staff
Responsibility: ORM persistence for staff members as seen by payroll.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - employee_code is unique (uq_staff_employee_code).

Audit relevance:
    Read-only to the payroll engine.  The identity fields are copied into
    every pay line so a snapshot stays readable after staff records change.
"""

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.dtos import StaffInfo


class StaffMember(TrackedBase):
    """
    A member of staff eligible for payroll.

    Contract:
        Only active staff are considered by a payroll run.  Externally paid
        staff get a display-only pay line that is excluded from the payable
        total and never touches the loan ledger.
    """

    __tablename__ = "staff_members"

    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_staff_employee_code"),
        Index("idx_staff_active", "is_active"),
    )

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    job_title: Mapped[str | None] = mapped_column(String(100), nullable=True)

    department: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Bank / payment account details as free text
    account_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Paid through an external payroll provider
    is_externally_paid: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StaffMember {self.employee_code}: {self.full_name}>"

    def to_dto(self) -> StaffInfo:
        return StaffInfo(
            staff_id=self.id,
            employee_code=self.employee_code,
            full_name=self.full_name,
            job_title=self.job_title,
            department=self.department,
            account_details=self.account_details,
            is_active=self.is_active,
            is_externally_paid=self.is_externally_paid,
        )
