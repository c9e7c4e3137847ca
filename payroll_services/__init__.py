"""
Payroll services: repositories, run state machine, ledger updater and the
period orchestrator.  Owns the transaction boundary of a payroll run.
"""

from payroll_services.bootstrap import (
    build_compensation_service,
    build_loan_service,
    init_payroll_database,
)
from payroll_services.loan_ledger_updater import AppliedDeduction, LoanLedgerUpdater
from payroll_services.payroll_orchestrator import (
    PayrollPeriodOrchestrator,
    PayrollRunResult,
    PayrollRunStatus,
    build_payroll_orchestrator,
)
from payroll_services.repositories import PayrollRepository, SqlAlchemyPayrollRepository
from payroll_services.run_state import RUN_TRANSITIONS, PayrollRun, PayrollRunState

__all__ = [
    "AppliedDeduction",
    "LoanLedgerUpdater",
    "PayrollPeriodOrchestrator",
    "PayrollRepository",
    "PayrollRun",
    "PayrollRunResult",
    "PayrollRunState",
    "PayrollRunStatus",
    "RUN_TRANSITIONS",
    "SqlAlchemyPayrollRepository",
    "build_compensation_service",
    "build_loan_service",
    "build_payroll_orchestrator",
    "init_payroll_database",
]
