"""Tests for PayrollScheduleSelector."""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import PayrollScheduleNotFoundError
from payroll_kernel.selectors.schedule_selector import PayrollScheduleSelector
from payroll_services.payroll_orchestrator import PayrollPeriodOrchestrator
from payroll_services.repositories import SqlAlchemyPayrollRepository


@pytest.fixture
def selector(session):
    return PayrollScheduleSelector(session)


@pytest.fixture
def generate(session, deterministic_clock, test_actor_id):
    orchestrator = PayrollPeriodOrchestrator(
        SqlAlchemyPayrollRepository(session, deterministic_clock),
        deterministic_clock,
    )

    def _generate(month: int, year: int):
        result = orchestrator.generate(month, year, test_actor_id)
        assert result.is_success
        return result

    return _generate


class TestScheduleLookups:

    def test_list_newest_first_without_lines(self, selector, generate, create_staff,
                                             create_compensation):
        create_compensation(create_staff(), basic_amount="1000")
        generate(11, 2023)
        generate(1, 2024)
        generate(12, 2023)

        schedules = selector.list_schedules()

        assert [(s.year, s.month) for s in schedules] == [(2024, 1), (2023, 12), (2023, 11)]
        assert all(s.lines == () for s in schedules)
        assert [s.month for s in selector.list_schedules(year=2023)] == [12, 11]

    def test_get_decodes_lines(self, selector, generate, create_staff, create_compensation):
        staff = create_staff(full_name="Ngozi Okafor")
        create_compensation(
            staff,
            basic_amount="1000.50",
            other_allowances=[{"name": "Hazard", "amount": "99.50"}],
        )
        result = generate(6, 2024)

        schedule = selector.get_schedule(result.schedule_id)

        assert schedule.period.month == 6
        assert len(schedule.lines) == 1
        line = schedule.lines[0]
        assert line.full_name == "Ngozi Okafor"
        assert line.gross_pay == Decimal("1100")
        assert line.other_allowances[0].name == "Hazard"

    def test_find_by_period(self, selector, generate):
        generate(2, 2024)

        assert selector.find_by_period(2, 2024) is not None
        assert selector.find_by_period(3, 2024) is None

    def test_get_unknown(self, selector):
        with pytest.raises(PayrollScheduleNotFoundError):
            selector.get_schedule(uuid4())
