"""Read access to compensation structures."""

from uuid import UUID

from sqlalchemy import select

from payroll_kernel.domain.dtos import CompensationInfo
from payroll_kernel.exceptions import CompensationNotFoundError
from payroll_kernel.models.compensation import CompensationStructure
from payroll_kernel.selectors.base import BaseSelector


class CompensationSelector(BaseSelector):
    """
    Compensation structure queries.

    Non-goals:
        Does not pick "the" active structure when several are active; that
        tie-break is a pure function in payroll_engines.compensation.
    """

    def list_active_structures(self, staff_id: UUID) -> list[CompensationInfo]:
        stmt = select(CompensationStructure).where(
            CompensationStructure.staff_id == staff_id,
            CompensationStructure.is_active.is_(True),
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def list_history(self, staff_id: UUID) -> list[CompensationInfo]:
        """Every structure for the staff member, newest effective date first."""
        stmt = (
            select(CompensationStructure)
            .where(CompensationStructure.staff_id == staff_id)
            .order_by(
                CompensationStructure.effective_date.desc(),
                CompensationStructure.created_at.desc(),
            )
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get(self, compensation_id: UUID) -> CompensationInfo:
        row = self.session.get(CompensationStructure, compensation_id)
        if row is None:
            raise CompensationNotFoundError(str(compensation_id))
        return row.to_dto()
