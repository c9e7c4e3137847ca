"""
Tests for LoanLedgerUpdater.

Covers:
- Only included lines with positive deductions touch the ledger
- Applied deductions are returned in line order, then loan order
- Repayments carry the configured method and period note
"""

from decimal import Decimal

import pytest

from payroll_kernel.domain.dtos import LoanDeduction, LoanStatus, PayLine, PayrollPeriod
from payroll_kernel.selectors.loan_selector import LoanSelector
from payroll_services.loan_ledger_updater import LoanLedgerUpdater
from payroll_services.repositories import SqlAlchemyPayrollRepository

ZERO = Decimal("0")
JANUARY = PayrollPeriod(month=1, year=2024)


def _line(staff, deductions, included=True) -> PayLine:
    loan_total = sum((d.amount for d in deductions), ZERO)
    return PayLine(
        staff_id=staff.id,
        employee_code=staff.employee_code,
        full_name=staff.full_name,
        basic_amount=Decimal("100000"),
        housing_allowance=ZERO,
        transport_allowance=ZERO,
        medical_allowance=ZERO,
        other_allowances=(),
        gross_pay=Decimal("100000"),
        tax_deduction=ZERO,
        pension_deduction=ZERO,
        other_deductions=(),
        loan_deductions=tuple(deductions),
        total_loan_deduction=loan_total,
        total_deductions=loan_total,
        net_pay=Decimal("100000") - loan_total,
        included=included,
    )


def _deduction(loan, amount) -> LoanDeduction:
    return LoanDeduction(
        loan_id=loan.id,
        amount=Decimal(amount),
        outstanding_before=loan.outstanding_balance,
    )


@pytest.fixture
def updater(session, deterministic_clock):
    repository = SqlAlchemyPayrollRepository(session, deterministic_clock)
    return LoanLedgerUpdater(repository, "PAYROLL", "Salary {month}/{year}")


class TestApply:

    def test_included_line_updates_ledger(self, updater, session, create_staff, create_loan,
                                          test_actor_id):
        staff = create_staff()
        loan = create_loan(staff, principal_amount="150000", monthly_deduction="60000")

        applied = updater.apply([_line(staff, [_deduction(loan, "60000")])], JANUARY,
                                test_actor_id)

        assert len(applied) == 1
        assert applied[0].staff_id == staff.id
        assert applied[0].update.new_balance == Decimal("90000")
        assert applied[0].update.new_installments == 1

        repayments = LoanSelector(session).list_repayments(loan.id)
        assert [r.repayment_id for r in repayments] == [applied[0].repayment_id]
        assert repayments[0].payment_method == "PAYROLL"
        assert repayments[0].note == "Salary 1/2024"

    def test_excluded_line_skipped(self, updater, session, create_staff, create_loan,
                                   test_actor_id):
        staff = create_staff(is_externally_paid=True)
        loan = create_loan(staff)

        applied = updater.apply(
            [_line(staff, [_deduction(loan, "60000")], included=False)], JANUARY, test_actor_id
        )

        assert applied == []
        assert LoanSelector(session).get(loan.id).outstanding_balance == Decimal("150000")
        assert LoanSelector(session).list_repayments(loan.id) == []

    def test_zero_deduction_skipped(self, updater, session, create_staff, create_loan,
                                    test_actor_id):
        staff = create_staff()
        loan = create_loan(staff)

        applied = updater.apply([_line(staff, [_deduction(loan, "0")])], JANUARY, test_actor_id)

        assert applied == []
        assert LoanSelector(session).get(loan.id).installments_paid == 0

    def test_order_and_completion(self, updater, create_staff, create_loan, test_actor_id):
        first_staff = create_staff()
        second_staff = create_staff()
        small = create_loan(first_staff, principal_amount="5000", monthly_deduction="5000")
        large = create_loan(first_staff, principal_amount="20000", monthly_deduction="4000")
        other = create_loan(second_staff, principal_amount="9000", monthly_deduction="3000")

        applied = updater.apply(
            [
                _line(first_staff, [_deduction(small, "5000"), _deduction(large, "4000")]),
                _line(second_staff, [_deduction(other, "3000")]),
            ],
            JANUARY,
            test_actor_id,
        )

        assert [a.update.loan_id for a in applied] == [small.id, large.id, other.id]
        assert applied[0].update.new_status == LoanStatus.COMPLETED
        assert applied[1].update.new_status == LoanStatus.APPROVED


class TestNote:

    def test_note_for_period(self, updater):
        assert updater.note_for(PayrollPeriod(month=11, year=2025)) == "Salary 11/2025"
