"""Read access to staff members."""

from uuid import UUID

from sqlalchemy import select

from payroll_kernel.domain.dtos import StaffInfo
from payroll_kernel.exceptions import StaffNotFoundError
from payroll_kernel.models.staff import StaffMember
from payroll_kernel.selectors.base import BaseSelector


class StaffSelector(BaseSelector):
    """Staff lookups for payroll runs and services."""

    def list_active_staff(self) -> list[StaffInfo]:
        """All active staff, externally paid included, ordered by employee code."""
        stmt = (
            select(StaffMember)
            .where(StaffMember.is_active.is_(True))
            .order_by(StaffMember.employee_code)
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get(self, staff_id: UUID) -> StaffInfo:
        staff = self.session.get(StaffMember, staff_id)
        if staff is None:
            raise StaffNotFoundError(str(staff_id))
        return staff.to_dto()

    def exists(self, staff_id: UUID) -> bool:
        return self.session.get(StaffMember, staff_id) is not None
