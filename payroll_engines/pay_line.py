"""
Pay line calculation -- pure.

Responsibility:
    Turn a staff member's compensation structure and eligible loans into one
    PayLine: gross pay, itemized deductions (including one deduction per
    loan) and net pay.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Imports only
    payroll_kernel.domain and the tracer.

Invariants enforced:
    - gross_pay = basic + housing + transport + medical + sum(other allowances)
    - deduction per loan = min(monthly_deduction, outstanding_balance), so a
      loan is never deducted past zero
    - total_deductions = tax + pension + loan deductions + sum(other deductions)
    - net_pay = gross_pay - total_deductions, NOT clamped.  A negative net
      pay is kept and flagged with a NEGATIVE_NET_PAY warning.
    - Externally paid staff: no loan deductions, included=False.
    - Decimal-only arithmetic.

Failure modes:
    - ValueError when the compensation belongs to a different staff member
      or a loan belongs to a different staff member.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.dtos import (
    CompensationInfo,
    ComputationWarning,
    LoanDeduction,
    LoanInfo,
    PayLine,
    PayrollPeriod,
    StaffInfo,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.pay_line")

ZERO = Decimal("0")

NEGATIVE_NET_PAY = "NEGATIVE_NET_PAY"


def loan_deduction_amount(loan: LoanInfo) -> Decimal:
    """min(monthly_deduction, outstanding_balance), never below zero."""
    return max(ZERO, min(loan.monthly_deduction, loan.outstanding_balance))


class PayLineCalculator:
    """
    Pure calculator for a single staff member's pay line.

    Contract:
        No I/O, no database access, fully deterministic.  The caller passes
        only the loans that are eligible for the period.
    Non-goals:
        - No statutory tax computation; tax and pension are fixed amounts
          from the compensation structure.
        - No rounding; inputs are already money amounts.
    """

    @traced_engine("pay_line", "1.0", fingerprint_fields=("staff", "compensation", "loans", "period"))
    def calculate(
        self,
        *,
        staff: StaffInfo,
        compensation: CompensationInfo,
        loans: Sequence[LoanInfo],
        period: PayrollPeriod,
    ) -> PayLine:
        """
        Compute the pay line.

        Args:
            staff: Staff identity and flags.
            compensation: The staff member's active structure.
            loans: Eligible loans in deduction order.  Ignored for
                externally paid staff.
            period: The payroll period (used for messages only).

        Returns:
            PayLine with all totals and any warnings.
        """
        if compensation.staff_id != staff.staff_id:
            raise ValueError(
                f"Compensation {compensation.compensation_id} does not belong "
                f"to staff {staff.staff_id}"
            )

        included = not staff.is_externally_paid

        other_allowance_total = sum((a.amount for a in compensation.other_allowances), ZERO)
        gross = (
            compensation.basic_amount
            + compensation.housing_allowance
            + compensation.transport_allowance
            + compensation.medical_allowance
            + other_allowance_total
        )

        loan_deductions: list[LoanDeduction] = []
        if included:
            for loan in loans:
                if loan.staff_id != staff.staff_id:
                    raise ValueError(f"Loan {loan.loan_id} does not belong to staff {staff.staff_id}")
                amount = loan_deduction_amount(loan)
                if amount > 0:
                    loan_deductions.append(
                        LoanDeduction(
                            loan_id=loan.loan_id,
                            amount=amount,
                            outstanding_before=loan.outstanding_balance,
                        )
                    )

        total_loan = sum((d.amount for d in loan_deductions), ZERO)
        other_deduction_total = sum((d.amount for d in compensation.other_deductions), ZERO)
        total_deductions = (
            compensation.tax_deduction
            + compensation.pension_deduction
            + total_loan
            + other_deduction_total
        )
        net = gross - total_deductions

        warnings: list[ComputationWarning] = []
        if net < 0:
            warnings.append(
                ComputationWarning(
                    code=NEGATIVE_NET_PAY,
                    message=(
                        f"Net pay {net} for {staff.employee_code} in {period.label} "
                        f"is negative (deductions {total_deductions} exceed gross {gross})"
                    ),
                    staff_id=staff.staff_id,
                )
            )
            logger.warning(
                "negative_net_pay",
                extra={
                    "staff_id": str(staff.staff_id),
                    "gross_pay": str(gross),
                    "total_deductions": str(total_deductions),
                    "net_pay": str(net),
                },
            )

        return PayLine(
            staff_id=staff.staff_id,
            employee_code=staff.employee_code,
            full_name=staff.full_name,
            job_title=staff.job_title,
            department=staff.department,
            account_details=staff.account_details,
            compensation_id=compensation.compensation_id,
            basic_amount=compensation.basic_amount,
            housing_allowance=compensation.housing_allowance,
            transport_allowance=compensation.transport_allowance,
            medical_allowance=compensation.medical_allowance,
            other_allowances=compensation.other_allowances,
            gross_pay=gross,
            tax_deduction=compensation.tax_deduction,
            pension_deduction=compensation.pension_deduction,
            other_deductions=compensation.other_deductions,
            loan_deductions=tuple(loan_deductions),
            total_loan_deduction=total_loan,
            total_deductions=total_deductions,
            net_pay=net,
            included=included,
            warnings=tuple(warnings),
        )
