"""
Module: payroll_kernel.models.compensation
Responsibility: ORM persistence for compensation structures (basic pay,
    fixed allowances, fixed deductions and ad-hoc named items).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - Amount fields are immutable after insert (db/immutability.py).  A pay
      change is a new structure; the previous one is deactivated.
    - Intended state is at most one active structure per staff member.  The
      database does not force it, so readers select deterministically.

Failure modes:
    - ImmutabilityViolationError when an amount field is updated.

Audit relevance:
    Pay lines record the compensation_id they were computed from.  Because
    structures are never edited, that id reproduces the inputs of any past
    snapshot.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase, UUIDString
from payroll_kernel.domain.dtos import CompensationInfo, NamedAmount

# Columns that may change after insert
MUTABLE_COMPENSATION_FIELDS = frozenset({"is_active", "updated_at", "updated_by_id"})


class CompensationStructure(TrackedBase):
    """
    A staff member's pay structure effective from a given date.

    Guarantees:
        - other_allowances / other_deductions are JSON lists of
          ``{"name": str, "amount": str}``.
        - to_dto() returns Decimal amounts and NamedAmount tuples.
    """

    __tablename__ = "compensation_structures"

    __table_args__ = (
        Index("idx_compensation_staff_active", "staff_id", "is_active"),
    )

    staff_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("staff_members.id"),
        nullable=False,
    )

    basic_amount: Mapped[Decimal] = mapped_column(nullable=False)

    housing_allowance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    transport_allowance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    medical_allowance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    other_allowances: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    tax_deduction: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    pension_deduction: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    other_deductions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<CompensationStructure {self.staff_id} from {self.effective_date} ({state})>"

    def to_dto(self) -> CompensationInfo:
        return CompensationInfo(
            compensation_id=self.id,
            staff_id=self.staff_id,
            basic_amount=self.basic_amount,
            housing_allowance=self.housing_allowance,
            transport_allowance=self.transport_allowance,
            medical_allowance=self.medical_allowance,
            other_allowances=tuple(NamedAmount.from_dict(i) for i in self.other_allowances or []),
            tax_deduction=self.tax_deduction,
            pension_deduction=self.pension_deduction,
            other_deductions=tuple(NamedAmount.from_dict(i) for i in self.other_deductions or []),
            effective_date=self.effective_date,
            is_active=self.is_active,
            created_at=self.created_at,
        )
