"""
Payroll Period Orchestrator - Generates the payroll for one month.

The Orchestrator ties together:
- Repository: staff, compensation and loan reads; ledger and schedule writes
- PayLineCalculator: pure per-staff pay computation
- LoanLedgerUpdater: loan balance updates and repayment records
- PayrollRun: the run state machine

One run is one unit of work.  Either every loan mutation and the schedule
row are committed together, or nothing is.  A period can be generated at
most once; regeneration returns CONFLICT and leaves the ledger untouched.
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID
from uuid import uuid4 as _uuid4

from sqlalchemy.orm import Session

from payroll_engines.pay_line import PayLineCalculator
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import ComputationWarning, PayLine, PayrollPeriod
from payroll_kernel.exceptions import (
    ConflictError,
    InvalidPeriodError,
    NotFoundError,
    PayrollKernelError,
    PayrollScheduleConflictError,
    PayrollValidationError,
    PersistenceError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.loan_ledger_updater import (
    DEFAULT_DEDUCTION_METHOD,
    DEFAULT_NOTE_TEMPLATE,
    LoanLedgerUpdater,
)
from payroll_services.repositories import PayrollRepository, SqlAlchemyPayrollRepository
from payroll_services.run_state import PayrollRun, PayrollRunState

if TYPE_CHECKING:
    from payroll_config import PayrollEngineConfig

logger = get_logger("services.payroll_orchestrator")

ZERO = Decimal("0")

DEFAULT_MIN_YEAR = 2000
DEFAULT_MAX_YEAR = 2100


class PayrollRunStatus(str, Enum):
    """Outcome of a payroll generation request."""

    GENERATED = "generated"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    PERSISTENCE_FAILED = "persistence_failed"
    FAILED = "failed"


@dataclass(frozen=True)
class PayrollRunResult:
    """Result of a payroll generation request."""

    status: PayrollRunStatus
    run_id: UUID
    month: int
    year: int
    final_state: PayrollRunState
    schedule_id: UUID | None = None
    included_staff_count: int = 0
    line_count: int = 0
    skipped_staff_count: int = 0
    deductions_applied: int = 0
    payable_total: Decimal = ZERO
    warnings: tuple[ComputationWarning, ...] = ()
    lines: tuple[PayLine, ...] = ()
    error_code: str | None = None
    message: str | None = None
    retryable: bool = False

    @property
    def is_success(self) -> bool:
        return self.status == PayrollRunStatus.GENERATED


@dataclass(frozen=True)
class _ComputedPayroll:
    lines: tuple[PayLine, ...]
    payable_total: Decimal
    skipped_staff_count: int


def _status_for(exc: PayrollKernelError) -> PayrollRunStatus:
    if isinstance(exc, PayrollValidationError):
        return PayrollRunStatus.VALIDATION_FAILED
    if isinstance(exc, ConflictError):
        return PayrollRunStatus.CONFLICT
    if isinstance(exc, NotFoundError):
        return PayrollRunStatus.NOT_FOUND
    if isinstance(exc, PersistenceError):
        return PayrollRunStatus.PERSISTENCE_FAILED
    return PayrollRunStatus.FAILED


class PayrollPeriodOrchestrator:
    """
    Orchestrates payroll generation for a single (month, year).

    The Orchestrator manages:
    1. VALIDATING  - period range and one-schedule-per-period check
    2. COMPUTING   - one pay line per active staff member with a structure
    3. PERSISTING  - loan ledger updates, then the schedule row
    4. DONE        - commit and report

    Typed kernel errors are returned as a failed PayrollRunResult.  Any
    other exception is re-raised after the unit of work has been rolled
    back.
    """

    def __init__(
        self,
        repository: PayrollRepository,
        clock: Clock | None = None,
        min_year: int = DEFAULT_MIN_YEAR,
        max_year: int = DEFAULT_MAX_YEAR,
        deduction_method: str = DEFAULT_DEDUCTION_METHOD,
        note_template: str = DEFAULT_NOTE_TEMPLATE,
        calculator: PayLineCalculator | None = None,
    ):
        """
        Args:
            repository: Storage contract for the run.
            clock: Clock for timestamps. Defaults to SystemClock.
            min_year: Earliest year accepted.
            max_year: Latest year accepted.
            deduction_method: payment_method stored on payroll repayments.
            note_template: Repayment note; may use {month} and {year}.
            calculator: Pay line calculator. Defaults to PayLineCalculator().
        """
        self._repository = repository
        self._clock = clock or SystemClock()
        self._min_year = min_year
        self._max_year = max_year
        self._calculator = calculator or PayLineCalculator()
        self._ledger_updater = LoanLedgerUpdater(repository, deduction_method, note_template)

    def generate(self, month: int, year: int, operator_id: UUID) -> PayrollRunResult:
        """
        Generate and persist the payroll for ``month``/``year``.

        Args:
            month: 1..12.
            year: Within the configured [min_year, max_year].
            operator_id: Who triggered the run; stored on the schedule and
                on every repayment.

        Returns:
            PayrollRunResult.  ``is_success`` is True only when the schedule
            and all loan updates were committed.
        """
        run = PayrollRun(PayrollPeriod(month=month, year=year), operator_id)

        with LogContext.bind(
            correlation_id=str(_uuid4()),
            run_id=str(run.run_id),
            actor_id=str(operator_id),
            period=f"{year:04d}-{month:02d}" if 1 <= month <= 12 else f"{year}-{month}",
        ):
            logger.info(
                "payroll_run_started",
                extra={"month": month, "year": year, "started_at": self._clock.now().isoformat()},
            )
            t0 = time.monotonic()
            try:
                with self._repository.atomic():
                    result = self._run(run)
            except PayrollKernelError as exc:
                run.fail()
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                status = _status_for(exc)
                logger.warning(
                    "payroll_run_failed",
                    extra={
                        "status": status.value,
                        "error_code": exc.code,
                        "retryable": exc.retryable,
                        "duration_ms": duration_ms,
                    },
                )
                return PayrollRunResult(
                    status=status,
                    run_id=run.run_id,
                    month=month,
                    year=year,
                    final_state=run.state,
                    error_code=exc.code,
                    message=str(exc),
                    retryable=exc.retryable,
                )
            except Exception:
                run.fail()
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.error(
                    "payroll_run_failed",
                    extra={"status": PayrollRunStatus.FAILED.value, "duration_ms": duration_ms},
                    exc_info=True,
                )
                raise

            run.transition(PayrollRunState.DONE)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                "payroll_run_completed",
                extra={
                    "schedule_id": str(result.schedule_id),
                    "included_staff_count": result.included_staff_count,
                    "line_count": result.line_count,
                    "skipped_staff_count": result.skipped_staff_count,
                    "deductions_applied": result.deductions_applied,
                    "payable_total": str(result.payable_total),
                    "warning_count": len(result.warnings),
                    "duration_ms": duration_ms,
                },
            )
            return PayrollRunResult(
                status=result.status,
                run_id=result.run_id,
                month=month,
                year=year,
                final_state=run.state,
                schedule_id=result.schedule_id,
                included_staff_count=result.included_staff_count,
                line_count=result.line_count,
                skipped_staff_count=result.skipped_staff_count,
                deductions_applied=result.deductions_applied,
                payable_total=result.payable_total,
                warnings=result.warnings,
                lines=result.lines,
            )

    def _run(self, run: PayrollRun) -> PayrollRunResult:
        """Run the state machine up to PERSISTING (without transaction management)."""
        period = run.period

        run.transition(PayrollRunState.VALIDATING)
        self._validate(period)

        run.transition(PayrollRunState.COMPUTING)
        computed = self._compute(period)

        run.transition(PayrollRunState.PERSISTING)
        applied = self._ledger_updater.apply(computed.lines, period, run.operator_id)
        schedule_id = self._repository.create_payroll_schedule(
            period.month,
            period.year,
            computed.lines,
            computed.payable_total,
            run.operator_id,
        )

        warnings = tuple(w for line in computed.lines for w in line.warnings)
        return PayrollRunResult(
            status=PayrollRunStatus.GENERATED,
            run_id=run.run_id,
            month=period.month,
            year=period.year,
            final_state=run.state,
            schedule_id=schedule_id,
            included_staff_count=sum(1 for line in computed.lines if line.included),
            line_count=len(computed.lines),
            skipped_staff_count=computed.skipped_staff_count,
            deductions_applied=len(applied),
            payable_total=computed.payable_total,
            warnings=warnings,
            lines=computed.lines,
        )

    def _validate(self, period: PayrollPeriod) -> None:
        if not 1 <= period.month <= 12:
            raise InvalidPeriodError(period.month, period.year, "month must be between 1 and 12")
        if not self._min_year <= period.year <= self._max_year:
            raise InvalidPeriodError(
                period.month,
                period.year,
                f"year must be between {self._min_year} and {self._max_year}",
            )
        if self._repository.schedule_exists(period.month, period.year):
            raise PayrollScheduleConflictError(period.month, period.year)

    def _compute(self, period: PayrollPeriod) -> _ComputedPayroll:
        lines: list[PayLine] = []
        skipped = 0
        payable_total = ZERO

        for staff in self._repository.list_active_staff():
            with LogContext.bind(staff_id=str(staff.staff_id)):
                compensation = self._repository.get_active_compensation(staff.staff_id)
                if compensation is None:
                    skipped += 1
                    logger.info(
                        "staff_skipped_no_compensation",
                        extra={"employee_code": staff.employee_code},
                    )
                    continue

                loans = []
                if not staff.is_externally_paid:
                    loans = self._repository.list_eligible_loans(staff.staff_id, period)

                line = self._calculator.calculate(
                    staff=staff,
                    compensation=compensation,
                    loans=loans,
                    period=period,
                )
                lines.append(line)
                if line.included:
                    payable_total += line.net_pay

        return _ComputedPayroll(
            lines=tuple(lines),
            payable_total=payable_total,
            skipped_staff_count=skipped,
        )


def build_payroll_orchestrator(
    session: Session,
    config: "PayrollEngineConfig | None" = None,
    clock: Clock | None = None,
) -> PayrollPeriodOrchestrator:
    """Build a PayrollPeriodOrchestrator from config (single entrypoint for production).

    Args:
        session: SQLAlchemy session owned by the caller.
        config: Effective configuration; loaded via get_active_config() when
            omitted.
        clock: Optional clock; default SystemClock.

    Returns:
        PayrollPeriodOrchestrator over a SqlAlchemyPayrollRepository, with
        the year range, deduction method and note template from config.
    """
    from payroll_config import get_active_config

    config = config or get_active_config()
    clock = clock or SystemClock()
    return PayrollPeriodOrchestrator(
        repository=SqlAlchemyPayrollRepository(session, clock),
        clock=clock,
        min_year=config.min_year,
        max_year=config.max_year,
        deduction_method=config.salary_deduction_method,
        note_template=config.repayment_note_template,
    )
