"""
Property-based tests for the pay line calculator.

For any compensation and set of loans:
- net = gross - total deductions
- every loan deduction is within (0, outstanding]
- the line is deterministic
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from payroll_engines.pay_line import NEGATIVE_NET_PAY, PayLineCalculator
from payroll_kernel.domain.dtos import (
    CompensationInfo,
    LoanInfo,
    LoanStatus,
    PayrollPeriod,
    StaffInfo,
)

PERIOD = PayrollPeriod(month=6, year=2024)

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
positive_amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def pay_inputs(draw):
    staff = StaffInfo(staff_id=uuid4(), employee_code="EMP", full_name="Prop Test")
    compensation = CompensationInfo(
        compensation_id=uuid4(),
        staff_id=staff.staff_id,
        basic_amount=draw(positive_amounts),
        housing_allowance=draw(amounts),
        transport_allowance=draw(amounts),
        medical_allowance=draw(amounts),
        tax_deduction=draw(amounts),
        pension_deduction=draw(amounts),
    )
    loan_count = draw(st.integers(min_value=0, max_value=4))
    loans = [
        LoanInfo(
            loan_id=uuid4(),
            staff_id=staff.staff_id,
            loan_sequence=i + 1,
            principal_amount=Decimal("1000000"),
            monthly_deduction=draw(positive_amounts),
            outstanding_balance=draw(positive_amounts),
            installments_paid=0,
            repayment_term_months=12,
            status=LoanStatus.APPROVED,
            start_date=date(2024, 1, 1),
        )
        for i in range(loan_count)
    ]
    return staff, compensation, loans


class TestPayLineProperties:

    @settings(
        max_examples=200,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(pay_inputs())
    def test_net_equals_gross_minus_deductions(self, inputs):
        staff, compensation, loans = inputs
        line = PayLineCalculator().calculate(
            staff=staff, compensation=compensation, loans=loans, period=PERIOD
        )

        assert line.net_pay == line.gross_pay - line.total_deductions
        assert line.total_deductions == (
            line.tax_deduction + line.pension_deduction + line.total_loan_deduction
        )
        assert line.total_loan_deduction == sum(
            (d.amount for d in line.loan_deductions), Decimal("0")
        )

    @settings(
        max_examples=200,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(pay_inputs())
    def test_loan_deductions_never_exceed_balance(self, inputs):
        staff, compensation, loans = inputs
        line = PayLineCalculator().calculate(
            staff=staff, compensation=compensation, loans=loans, period=PERIOD
        )

        by_id = {loan.loan_id: loan for loan in loans}
        assert len(line.loan_deductions) == len(loans)
        for deduction in line.loan_deductions:
            loan = by_id[deduction.loan_id]
            assert Decimal("0") < deduction.amount <= loan.outstanding_balance
            assert deduction.amount <= loan.monthly_deduction
            assert deduction.outstanding_after >= 0

    @settings(
        max_examples=100,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(pay_inputs())
    def test_warning_iff_negative(self, inputs):
        staff, compensation, loans = inputs
        line = PayLineCalculator().calculate(
            staff=staff, compensation=compensation, loans=loans, period=PERIOD
        )

        flagged = any(w.code == NEGATIVE_NET_PAY for w in line.warnings)
        assert flagged == (line.net_pay < 0)

    @settings(
        max_examples=50,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(pay_inputs())
    def test_deterministic(self, inputs):
        staff, compensation, loans = inputs
        calculator = PayLineCalculator()

        first = calculator.calculate(
            staff=staff, compensation=compensation, loans=loans, period=PERIOD
        )
        second = calculator.calculate(
            staff=staff, compensation=compensation, loans=loans, period=PERIOD
        )

        assert first == second
