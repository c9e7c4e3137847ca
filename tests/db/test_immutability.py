"""
ORM immutability tests.

Verifies the before_update / before_delete listeners:
- Payroll schedules cannot be edited or deleted
- Repayments cannot be edited or deleted
- Compensation amounts are frozen while is_active may change
- Loan balances never increase and installment counts never decrease
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from payroll_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from payroll_kernel.exceptions import ImmutabilityViolationError
from payroll_kernel.models.loan import Loan, LoanRepayment
from payroll_kernel.models.payroll_schedule import PayrollSchedule
from payroll_kernel.services.loan_ledger_service import LoanLedgerService
from payroll_services.repositories import SqlAlchemyPayrollRepository


@pytest.fixture
def schedule(session, deterministic_clock, test_actor_id) -> PayrollSchedule:
    repository = SqlAlchemyPayrollRepository(session, deterministic_clock)
    schedule_id = repository.create_payroll_schedule(1, 2024, [], Decimal("0"), test_actor_id)
    session.commit()
    return session.get(PayrollSchedule, schedule_id)


@pytest.fixture
def repayment(session, deterministic_clock, create_staff, create_loan, test_actor_id):
    loan = create_loan(create_staff(), principal_amount="1000", monthly_deduction="100")
    LoanLedgerService(session, deterministic_clock).apply_repayment(
        loan.id, Decimal("100"), "SALARY_DEDUCTION", None, test_actor_id
    )
    session.commit()
    return session.scalars(select(LoanRepayment).where(LoanRepayment.loan_id == loan.id)).one()


class TestPayrollScheduleImmutability:

    def test_update_blocked(self, session, schedule):
        schedule.payable_total = Decimal("1")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "PayrollSchedule"
        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"

    def test_delete_blocked(self, session, schedule):
        session.delete(schedule)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_audit_fields_may_change(self, session, schedule, test_actor_id):
        schedule.updated_by_id = test_actor_id

        session.flush()


class TestRepaymentImmutability:

    def test_update_blocked(self, session, repayment):
        repayment.note = "edited"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "LoanRepayment"

    def test_delete_blocked(self, session, repayment):
        session.delete(repayment)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestCompensationImmutability:

    def test_amount_frozen(self, session, create_staff, create_compensation):
        structure = create_compensation(create_staff())
        structure.tax_deduction = Decimal("10")

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_deactivation_allowed(self, session, create_staff, create_compensation):
        structure = create_compensation(create_staff())
        structure.is_active = False

        session.flush()

        assert structure.is_active is False


class TestLoanImmutability:

    def test_balance_cannot_increase(self, session, create_staff, create_loan):
        loan = create_loan(create_staff(), outstanding_balance="100000")
        loan.outstanding_balance = Decimal("120000")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "Loan"

    def test_installments_cannot_decrease(self, session, create_staff, create_loan):
        loan = create_loan(create_staff(), outstanding_balance="90000", installments_paid=1)
        loan.installments_paid = 0

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_loan_with_repayments_cannot_be_deleted(self, session, repayment):
        loan = session.get(Loan, repayment.loan_id)
        session.delete(loan)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_pause_flag_may_change(self, session, create_staff, create_loan):
        loan = create_loan(create_staff())
        loan.is_paused = True
        loan.pause_reason = "Leave"

        session.flush()


class TestListenerRegistration:

    def test_unregistered_listeners_allow_edits(self, session, schedule):
        unregister_immutability_listeners()
        try:
            schedule.warning_count = 5
            session.flush()
        finally:
            register_immutability_listeners()

        assert schedule.warning_count == 5
