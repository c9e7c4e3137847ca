"""Read access to generated payroll schedules."""

from uuid import UUID

from sqlalchemy import select

from payroll_kernel.domain.dtos import PayrollScheduleInfo
from payroll_kernel.exceptions import PayrollScheduleNotFoundError
from payroll_kernel.models.payroll_schedule import PayrollSchedule
from payroll_kernel.selectors.base import BaseSelector


class PayrollScheduleSelector(BaseSelector):
    """Schedule lookups.  Lines are decoded back into PayLine objects."""

    def exists(self, month: int, year: int) -> bool:
        stmt = select(PayrollSchedule.id).where(
            PayrollSchedule.month == month,
            PayrollSchedule.year == year,
        )
        return self.session.scalar(stmt) is not None

    def find_by_period(self, month: int, year: int) -> PayrollScheduleInfo | None:
        stmt = select(PayrollSchedule).where(
            PayrollSchedule.month == month,
            PayrollSchedule.year == year,
        )
        row = self.session.scalars(stmt).first()
        return row.to_dto() if row is not None else None

    def get_schedule(self, schedule_id: UUID) -> PayrollScheduleInfo:
        row = self.session.get(PayrollSchedule, schedule_id)
        if row is None:
            raise PayrollScheduleNotFoundError(str(schedule_id))
        return row.to_dto()

    def list_schedules(
        self,
        year: int | None = None,
        month: int | None = None,
    ) -> list[PayrollScheduleInfo]:
        """Schedule headers (no lines), newest period first."""
        stmt = select(PayrollSchedule)
        if year is not None:
            stmt = stmt.where(PayrollSchedule.year == year)
        if month is not None:
            stmt = stmt.where(PayrollSchedule.month == month)
        stmt = stmt.order_by(PayrollSchedule.year.desc(), PayrollSchedule.month.desc())
        return [row.to_dto(include_lines=False) for row in self.session.scalars(stmt)]
