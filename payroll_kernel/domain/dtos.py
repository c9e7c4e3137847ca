"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow between selectors, the
    pure payroll engines, the ledger services and the orchestrator:
    StaffInfo, CompensationInfo and LoanInfo (inputs), PayLine (engine
    output and snapshot content), LoanDeduction, ComputationWarning, and the
    read-side views (PayrollScheduleInfo, LoanStatement, LoanPortfolioSummary).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  ORM classes convert themselves with to_dto();
    domain code never touches ORM entities.

Invariants enforced:
    - Every monetary field is a Decimal.
    - PayLine.to_dict() serializes Decimals as strings, so a stored snapshot
      decodes back to the exact same amounts with PayLine.from_dict().

Failure modes:
    - KeyError / decimal.InvalidOperation from PayLine.from_dict() on a
      malformed stored snapshot.

Data flow:
    StaffInfo + CompensationInfo + LoanInfo[] -> PayLine -> PayrollSchedule.lines
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

ZERO = Decimal("0")


class LoanStatus(str, Enum):
    """Lifecycle status of a staff loan.

    Contract: PENDING -> APPROVED | REJECTED; APPROVED -> COMPLETED only
    when the outstanding balance reaches zero.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class StatementEntryType(str, Enum):
    """Kind of line on a loan statement."""

    DISBURSEMENT = "DISBURSEMENT"
    REPAYMENT = "REPAYMENT"


@dataclass(frozen=True)
class PayrollPeriod:
    """A calendar month identified by (month, year)."""

    month: int
    year: int

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def label(self) -> str:
        return f"{self.month}/{self.year}"

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class NamedAmount:
    """An ad-hoc allowance or deduction item."""

    name: str
    amount: Decimal

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "amount": str(self.amount)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NamedAmount:
        return cls(name=str(data["name"]), amount=Decimal(str(data["amount"])))


@dataclass(frozen=True)
class StaffInfo:
    """Staff identity and payroll flags."""

    staff_id: UUID
    employee_code: str
    full_name: str
    job_title: str | None = None
    department: str | None = None
    account_details: str | None = None
    is_active: bool = True
    is_externally_paid: bool = False


@dataclass(frozen=True)
class CompensationInfo:
    """A compensation structure: basic pay, allowances and fixed deductions."""

    compensation_id: UUID
    staff_id: UUID
    basic_amount: Decimal
    housing_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    medical_allowance: Decimal = ZERO
    other_allowances: tuple[NamedAmount, ...] = ()
    tax_deduction: Decimal = ZERO
    pension_deduction: Decimal = ZERO
    other_deductions: tuple[NamedAmount, ...] = ()
    effective_date: date | None = None
    is_active: bool = True
    created_at: datetime | None = None


@dataclass(frozen=True)
class LoanInfo:
    """Read view of a staff loan."""

    loan_id: UUID
    staff_id: UUID
    loan_sequence: int
    principal_amount: Decimal
    monthly_deduction: Decimal
    outstanding_balance: Decimal
    installments_paid: int
    repayment_term_months: int
    status: LoanStatus
    is_paused: bool = False
    start_date: date | None = None
    created_at: datetime | None = None
    approved_at: datetime | None = None
    reason: str | None = None
    pause_reason: str | None = None
    status_comments: str | None = None

    @property
    def effective_start_date(self) -> date | None:
        """start_date when set, otherwise the day the loan was recorded."""
        if self.start_date is not None:
            return self.start_date
        if self.created_at is not None:
            return self.created_at.date()
        return None


@dataclass(frozen=True)
class LoanRepaymentInfo:
    """One entry of a loan's append-only repayment history."""

    repayment_id: UUID
    loan_id: UUID
    amount: Decimal
    payment_method: str
    note: str | None
    paid_at: datetime
    recorded_by_id: UUID | None = None


@dataclass(frozen=True)
class ComputationWarning:
    """Non-fatal finding attached to a pay line (e.g. negative net pay)."""

    code: str
    message: str
    staff_id: UUID | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "code": self.code,
            "message": self.message,
            "staff_id": str(self.staff_id) if self.staff_id else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComputationWarning:
        staff_id = data.get("staff_id")
        return cls(
            code=data["code"],
            message=data["message"],
            staff_id=UUID(staff_id) if staff_id else None,
        )


@dataclass(frozen=True)
class LoanDeduction:
    """Amount taken from one loan on one pay line."""

    loan_id: UUID
    amount: Decimal
    outstanding_before: Decimal

    @property
    def outstanding_after(self) -> Decimal:
        return self.outstanding_before - self.amount

    def to_dict(self) -> dict[str, str]:
        return {
            "loan_id": str(self.loan_id),
            "amount": str(self.amount),
            "outstanding_before": str(self.outstanding_before),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoanDeduction:
        return cls(
            loan_id=UUID(data["loan_id"]),
            amount=Decimal(data["amount"]),
            outstanding_before=Decimal(data["outstanding_before"]),
        )


@dataclass(frozen=True)
class PayLine:
    """
    One staff member's computed pay for a period.

    Guarantees:
        - gross_pay = basic + housing + transport + medical + other allowances
        - total_deductions = tax + pension + total_loan_deduction + other deductions
        - net_pay = gross_pay - total_deductions (may be negative)
        - included is False for externally paid staff; their net pay is
          not part of the payable total.
    """

    staff_id: UUID
    employee_code: str
    full_name: str
    basic_amount: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    medical_allowance: Decimal
    other_allowances: tuple[NamedAmount, ...]
    gross_pay: Decimal
    tax_deduction: Decimal
    pension_deduction: Decimal
    other_deductions: tuple[NamedAmount, ...]
    loan_deductions: tuple[LoanDeduction, ...]
    total_loan_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    included: bool = True
    compensation_id: UUID | None = None
    job_title: str | None = None
    department: str | None = None
    account_details: str | None = None
    warnings: tuple[ComputationWarning, ...] = field(default_factory=tuple)

    @property
    def total_allowances(self) -> Decimal:
        return self.gross_pay - self.basic_amount

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation stored in the payroll snapshot."""
        return {
            "staff_id": str(self.staff_id),
            "employee_code": self.employee_code,
            "full_name": self.full_name,
            "job_title": self.job_title,
            "department": self.department,
            "account_details": self.account_details,
            "compensation_id": str(self.compensation_id) if self.compensation_id else None,
            "basic_amount": str(self.basic_amount),
            "allowances": {
                "housing": str(self.housing_allowance),
                "transport": str(self.transport_allowance),
                "medical": str(self.medical_allowance),
                "other": [a.to_dict() for a in self.other_allowances],
            },
            "gross_pay": str(self.gross_pay),
            "deductions": {
                "tax": str(self.tax_deduction),
                "pension": str(self.pension_deduction),
                "loans": [d.to_dict() for d in self.loan_deductions],
                "other": [d.to_dict() for d in self.other_deductions],
            },
            "total_loan_deduction": str(self.total_loan_deduction),
            "total_deductions": str(self.total_deductions),
            "net_pay": str(self.net_pay),
            "included": self.included,
            "warnings": [w.to_dict() for w in self.warnings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PayLine:
        allowances = data["allowances"]
        deductions = data["deductions"]
        compensation_id = data.get("compensation_id")
        return cls(
            staff_id=UUID(data["staff_id"]),
            employee_code=data["employee_code"],
            full_name=data["full_name"],
            job_title=data.get("job_title"),
            department=data.get("department"),
            account_details=data.get("account_details"),
            compensation_id=UUID(compensation_id) if compensation_id else None,
            basic_amount=Decimal(data["basic_amount"]),
            housing_allowance=Decimal(allowances["housing"]),
            transport_allowance=Decimal(allowances["transport"]),
            medical_allowance=Decimal(allowances["medical"]),
            other_allowances=tuple(NamedAmount.from_dict(a) for a in allowances["other"]),
            gross_pay=Decimal(data["gross_pay"]),
            tax_deduction=Decimal(deductions["tax"]),
            pension_deduction=Decimal(deductions["pension"]),
            loan_deductions=tuple(LoanDeduction.from_dict(d) for d in deductions["loans"]),
            other_deductions=tuple(NamedAmount.from_dict(d) for d in deductions["other"]),
            total_loan_deduction=Decimal(data["total_loan_deduction"]),
            total_deductions=Decimal(data["total_deductions"]),
            net_pay=Decimal(data["net_pay"]),
            included=bool(data["included"]),
            warnings=tuple(ComputationWarning.from_dict(w) for w in data.get("warnings", [])),
        )


@dataclass(frozen=True)
class PayrollScheduleInfo:
    """Read view of a generated payroll schedule."""

    schedule_id: UUID
    month: int
    year: int
    generated_at: datetime
    generated_by_id: UUID
    payable_total: Decimal
    line_count: int
    included_staff_count: int
    warning_count: int
    lines: tuple[PayLine, ...] = ()

    @property
    def period(self) -> PayrollPeriod:
        return PayrollPeriod(month=self.month, year=self.year)


@dataclass(frozen=True)
class LoanStatementEntry:
    """One row of a loan statement with its running balance."""

    entry_type: StatementEntryType
    entry_date: datetime | date | None
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    reference_id: UUID | None = None
    payment_method: str | None = None


@dataclass(frozen=True)
class LoanStatement:
    """Disbursement plus repayments of a single loan, in payment order."""

    loan: LoanInfo
    entries: tuple[LoanStatementEntry, ...]
    principal_amount: Decimal
    total_repaid: Decimal
    outstanding_balance: Decimal
    installments_paid: int
    total_installments: int


@dataclass(frozen=True)
class LoanPortfolioSummary:
    """Aggregate figures across all loans."""

    total_loans: int
    status_counts: dict[LoanStatus, int]
    total_disbursed: Decimal
    total_outstanding: Decimal
    total_repaid: Decimal
