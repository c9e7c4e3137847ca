"""
Module: payroll_kernel.services.compensation_service
Responsibility: Create compensation structures.  A new structure replaces
    the staff member's active one(s); existing structures are deactivated,
    never edited.
Architecture position: Kernel > Services.  Flush-only.

Invariants enforced:
    - basic_amount > 0; named allowances and deductions >= 0; ad-hoc items
      need a name and a positive amount.
    - After create_structure() exactly one structure of the staff member is
      active.

Failure modes:
    - StaffNotFoundError for an unknown staff member.
    - PayrollValidationError for invalid amounts or items.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from payroll_kernel.db.types import to_money
from payroll_kernel.domain.dtos import CompensationInfo, NamedAmount
from payroll_kernel.exceptions import (
    CompensationNotFoundError,
    PayrollValidationError,
    StaffNotFoundError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.compensation import CompensationStructure
from payroll_kernel.models.staff import StaffMember
from payroll_kernel.services.base import BaseService

logger = get_logger("services.compensation")

AmountLike = Decimal | int | str
ItemLike = NamedAmount | Mapping[str, object]


def _non_negative(field: str, value: AmountLike) -> Decimal:
    amount = to_money(value)
    if amount < 0:
        raise PayrollValidationError(f"{field} cannot be negative", field=field)
    return amount


def _named_items(field: str, items: Iterable[ItemLike]) -> list[dict[str, str]]:
    result = []
    for item in items:
        if isinstance(item, NamedAmount):
            name, amount = item.name, item.amount
        else:
            name, amount = str(item.get("name") or ""), to_money(item.get("amount", 0))
        if not name.strip():
            raise PayrollValidationError(f"{field} items need a name", field=field)
        if amount <= 0:
            raise PayrollValidationError(
                f"{field} item '{name}' must have a positive amount", field=field
            )
        result.append(NamedAmount(name=name.strip(), amount=amount).to_dict())
    return result


class CompensationService(BaseService):
    """Write side of compensation structures."""

    def create_structure(
        self,
        staff_id: UUID,
        basic_amount: AmountLike,
        actor_id: UUID,
        housing_allowance: AmountLike = 0,
        transport_allowance: AmountLike = 0,
        medical_allowance: AmountLike = 0,
        other_allowances: Iterable[ItemLike] = (),
        tax_deduction: AmountLike = 0,
        pension_deduction: AmountLike = 0,
        other_deductions: Iterable[ItemLike] = (),
        effective_date: date | None = None,
    ) -> CompensationInfo:
        """
        Create the staff member's new active compensation structure.

        Postconditions: Previously active structures of the staff member
            have is_active=False; the new structure is active.

        Raises:
            StaffNotFoundError: Unknown staff member.
            PayrollValidationError: Invalid amounts or items.
        """
        if self.session.get(StaffMember, staff_id) is None:
            raise StaffNotFoundError(str(staff_id))

        basic = to_money(basic_amount)
        if basic <= 0:
            raise PayrollValidationError("basic_amount must be positive", field="basic_amount")

        structure = CompensationStructure(
            staff_id=staff_id,
            basic_amount=basic,
            housing_allowance=_non_negative("housing_allowance", housing_allowance),
            transport_allowance=_non_negative("transport_allowance", transport_allowance),
            medical_allowance=_non_negative("medical_allowance", medical_allowance),
            other_allowances=_named_items("other_allowances", other_allowances),
            tax_deduction=_non_negative("tax_deduction", tax_deduction),
            pension_deduction=_non_negative("pension_deduction", pension_deduction),
            other_deductions=_named_items("other_deductions", other_deductions),
            effective_date=effective_date or self._clock.today(),
            is_active=True,
            created_by_id=actor_id,
        )

        deactivated = self._deactivate_active(staff_id, actor_id)

        self.session.add(structure)
        self.session.flush()

        logger.info(
            "compensation_structure_created",
            extra={
                "compensation_id": str(structure.id),
                "staff_id": str(staff_id),
                "basic_amount": str(basic),
                "effective_date": structure.effective_date,
                "deactivated_count": deactivated,
            },
        )
        return structure.to_dto()

    def deactivate_structure(self, compensation_id: UUID, actor_id: UUID) -> CompensationInfo:
        row = self.session.get(CompensationStructure, compensation_id)
        if row is None:
            raise CompensationNotFoundError(str(compensation_id))
        row.is_active = False
        row.updated_by_id = actor_id
        self.session.flush()
        logger.info(
            "compensation_structure_deactivated",
            extra={"compensation_id": str(compensation_id), "staff_id": str(row.staff_id)},
        )
        return row.to_dto()

    def _deactivate_active(self, staff_id: UUID, actor_id: UUID) -> int:
        stmt = select(CompensationStructure).where(
            CompensationStructure.staff_id == staff_id,
            CompensationStructure.is_active.is_(True),
        )
        count = 0
        for row in self.session.scalars(stmt):
            row.is_active = False
            row.updated_by_id = actor_id
            count += 1
        return count
