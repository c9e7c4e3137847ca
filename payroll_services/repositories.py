"""
Module: payroll_services.repositories
Responsibility: The storage contract a payroll run depends on, and its
    SQLAlchemy implementation over the kernel selectors and services.
Architecture position: Services.  Imports payroll_kernel and payroll_engines.

Invariants enforced:
    - Every write of a run goes through one Session and is committed or
      rolled back as one unit by ``atomic()``.
    - Eligible loans are read with SELECT ... FOR UPDATE, so on PostgreSQL a
      concurrent manual repayment waits for the run to finish.
    - A duplicate (month, year) schedule insert surfaces as
      PayrollScheduleConflictError, never as a raw IntegrityError.

Failure modes:
    - PayrollScheduleConflictError on the period uniqueness constraint.
    - PersistenceError for any other SQLAlchemyError during the unit of work.
    - LoanNotFoundError when a loan disappears between read and update.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from payroll_engines.compensation import select_active_compensation
from payroll_engines.loan_eligibility import filter_eligible_loans
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import (
    CompensationInfo,
    LoanInfo,
    LoanStatus,
    PayLine,
    PayrollPeriod,
    StaffInfo,
)
from payroll_kernel.exceptions import PayrollScheduleConflictError, PersistenceError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.payroll_schedule import PERIOD_CONSTRAINT_NAME, PayrollSchedule
from payroll_kernel.selectors.compensation_selector import CompensationSelector
from payroll_kernel.selectors.loan_selector import LoanSelector
from payroll_kernel.selectors.schedule_selector import PayrollScheduleSelector
from payroll_kernel.selectors.staff_selector import StaffSelector
from payroll_kernel.services.loan_ledger_service import LoanLedgerService

logger = get_logger("services.payroll_repository")


class PayrollRepository(Protocol):
    """Storage operations used by a payroll run."""

    def list_active_staff(self) -> list[StaffInfo]: ...

    def get_active_compensation(self, staff_id: UUID) -> CompensationInfo | None: ...

    def list_eligible_loans(self, staff_id: UUID, period: PayrollPeriod) -> list[LoanInfo]: ...

    def get_loan(self, loan_id: UUID) -> LoanInfo: ...

    def schedule_exists(self, month: int, year: int) -> bool: ...

    def update_loan(
        self,
        loan_id: UUID,
        new_balance: Decimal,
        new_installments: int,
        new_status: LoanStatus,
        actor_id: UUID,
    ) -> None: ...

    def append_repayment(
        self,
        loan_id: UUID,
        amount: Decimal,
        method: str,
        note: str | None,
        actor_id: UUID,
    ) -> UUID: ...

    def create_payroll_schedule(
        self,
        month: int,
        year: int,
        lines: Sequence[PayLine],
        total: Decimal,
        operator_id: UUID,
    ) -> UUID: ...

    def atomic(self) -> AbstractContextManager[None]: ...


def is_period_conflict(exc: IntegrityError) -> bool:
    """True when the IntegrityError comes from the schedule period constraint."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return (
        PERIOD_CONSTRAINT_NAME in message
        or "payroll_schedules.month" in message
    )


class SqlAlchemyPayrollRepository:
    """
    PayrollRepository backed by a SQLAlchemy Session.

    Contract:
        Reads and writes share the caller's Session.  Writes are flushed;
        only ``atomic()`` commits.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._staff = StaffSelector(session)
        self._compensation = CompensationSelector(session)
        self._loans = LoanSelector(session)
        self._schedules = PayrollScheduleSelector(session)
        self._ledger = LoanLedgerService(session, self._clock)
        self._pending_period: tuple[int, int] | None = None

    @property
    def session(self) -> Session:
        return self._session

    # -- reads ---------------------------------------------------------------

    def list_active_staff(self) -> list[StaffInfo]:
        return self._staff.list_active_staff()

    def get_active_compensation(self, staff_id: UUID) -> CompensationInfo | None:
        return select_active_compensation(self._compensation.list_active_structures(staff_id))

    def list_eligible_loans(self, staff_id: UUID, period: PayrollPeriod) -> list[LoanInfo]:
        candidates = self._loans.list_deductible_loans(staff_id, for_update=True)
        return filter_eligible_loans(candidates, period)

    def get_loan(self, loan_id: UUID) -> LoanInfo:
        return self._loans.get(loan_id)

    def schedule_exists(self, month: int, year: int) -> bool:
        return self._schedules.exists(month, year)

    # -- writes --------------------------------------------------------------

    def update_loan(
        self,
        loan_id: UUID,
        new_balance: Decimal,
        new_installments: int,
        new_status: LoanStatus,
        actor_id: UUID,
    ) -> None:
        """Raises LoanNotFoundError; flush failures surface from ``atomic()``."""
        self._ledger.update_loan(loan_id, new_balance, new_installments, new_status, actor_id)

    def append_repayment(
        self,
        loan_id: UUID,
        amount: Decimal,
        method: str,
        note: str | None,
        actor_id: UUID,
    ) -> UUID:
        return self._ledger.append_repayment(loan_id, amount, method, note, actor_id)

    def create_payroll_schedule(
        self,
        month: int,
        year: int,
        lines: Sequence[PayLine],
        total: Decimal,
        operator_id: UUID,
    ) -> UUID:
        """
        Insert the immutable snapshot for the period.

        Raises:
            PayrollScheduleConflictError: the period already has a schedule
                (including one committed by a concurrent run).
            PersistenceError: any other storage failure.
        """
        schedule = PayrollSchedule(
            month=month,
            year=year,
            generated_at=self._clock.now(),
            generated_by_id=operator_id,
            lines=[line.to_dict() for line in lines],
            payable_total=total,
            line_count=len(lines),
            included_staff_count=sum(1 for line in lines if line.included),
            warning_count=sum(len(line.warnings) for line in lines),
            created_by_id=operator_id,
        )
        self._session.add(schedule)
        self._pending_period = (month, year)
        try:
            self._session.flush()
        except IntegrityError as exc:
            if is_period_conflict(exc):
                logger.warning(
                    "payroll_schedule_conflict_on_insert",
                    extra={"month": month, "year": year},
                )
                raise PayrollScheduleConflictError(month, year) from exc
            raise PersistenceError("create_payroll_schedule", str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError("create_payroll_schedule", str(exc)) from exc
        return schedule.id

    # -- unit of work --------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Commit on success, roll back on any exception.

        Storage errors raised inside the block or by the commit are
        translated into PersistenceError (or PayrollScheduleConflictError).
        """
        self._pending_period = None
        try:
            yield
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.info("payroll_unit_of_work_rolled_back")
            if isinstance(exc, IntegrityError):
                if is_period_conflict(exc):
                    month, year = self._pending_period or (0, 0)
                    raise PayrollScheduleConflictError(month, year) from exc
                raise PersistenceError("unit_of_work", str(exc.orig)) from exc
            raise PersistenceError("unit_of_work", str(exc)) from exc
        except BaseException:
            self._session.rollback()
            logger.info("payroll_unit_of_work_rolled_back")
            raise

        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            if is_period_conflict(exc):
                month, year = self._pending_period or (0, 0)
                raise PayrollScheduleConflictError(month, year) from exc
            raise PersistenceError("commit", str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError("commit", str(exc)) from exc
