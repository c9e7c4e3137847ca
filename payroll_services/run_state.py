"""
Payroll run state machine (``payroll_services.run_state``).

Responsibility
--------------
Tracks the lifecycle of a single payroll generation run.
``RUN_TRANSITIONS`` defines the only valid state changes; ``PayrollRun``
enforces them and records the history for the run result.

Invariants enforced
-------------------
* NOT_STARTED -> VALIDATING -> COMPUTING -> PERSISTING -> DONE.
* FAILED is reachable from every non-terminal state.
* DONE and FAILED are terminal: no outgoing edges.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID, uuid4

from payroll_kernel.domain.dtos import PayrollPeriod
from payroll_kernel.exceptions import InvalidRunTransitionError
from payroll_kernel.logging_config import get_logger

logger = get_logger("services.payroll_run")


class PayrollRunState(str, Enum):
    """Payroll run lifecycle states."""

    NOT_STARTED = "not_started"
    VALIDATING = "validating"
    COMPUTING = "computing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


RUN_TRANSITIONS: dict[PayrollRunState, frozenset[PayrollRunState]] = {
    PayrollRunState.NOT_STARTED: frozenset({
        PayrollRunState.VALIDATING,
        PayrollRunState.FAILED,
    }),
    PayrollRunState.VALIDATING: frozenset({
        PayrollRunState.COMPUTING,
        PayrollRunState.FAILED,
    }),
    PayrollRunState.COMPUTING: frozenset({
        PayrollRunState.PERSISTING,
        PayrollRunState.FAILED,
    }),
    PayrollRunState.PERSISTING: frozenset({
        PayrollRunState.DONE,
        PayrollRunState.FAILED,
    }),
    PayrollRunState.DONE: frozenset(),
    PayrollRunState.FAILED: frozenset(),
}

TERMINAL_RUN_STATES: frozenset[PayrollRunState] = frozenset({
    PayrollRunState.DONE,
    PayrollRunState.FAILED,
})


class PayrollRun:
    """Mutable state holder for one run.  Not shared between runs."""

    def __init__(self, period: PayrollPeriod, operator_id: UUID, run_id: UUID | None = None):
        self.run_id = run_id or uuid4()
        self.period = period
        self.operator_id = operator_id
        self.state = PayrollRunState.NOT_STARTED
        self.history: list[PayrollRunState] = [PayrollRunState.NOT_STARTED]

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_RUN_STATES

    def can_transition(self, target: PayrollRunState) -> bool:
        return target in RUN_TRANSITIONS[self.state]

    def transition(self, target: PayrollRunState) -> None:
        """Move to ``target`` or raise InvalidRunTransitionError."""
        if not self.can_transition(target):
            raise InvalidRunTransitionError(self.state.value, target.value)
        logger.debug(
            "payroll_run_state_changed",
            extra={
                "run_id": str(self.run_id),
                "from_state": self.state.value,
                "to_state": target.value,
            },
        )
        self.state = target
        self.history.append(target)

    def fail(self) -> None:
        """Move to FAILED unless the run already ended."""
        if not self.is_terminal:
            self.transition(PayrollRunState.FAILED)
