"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A payroll run either produces a complete, consistent snapshot or nothing.
Callers must be able to tell the failure classes apart without parsing
messages:
  - a bad period request is the caller's mistake (do not retry)
  - an existing schedule is a conflict (do not retry, show the schedule)
  - a row vanishing mid-run or a storage failure may be retried

Every exception therefore carries:
  1. A TYPED class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. A RETRYABLE class attribute (safe to re-trigger the same request?)
  4. Structured DATA attributes (not just a message string)

Example:
    try:
        loan_service.record_manual_repayment(loan_id, amount, actor_id=actor)
    except LoanNotApprovedError as e:
        api_response(code=e.code, loan_id=e.loan_id, status=e.status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- PayrollValidationError
    |   +-- InvalidPeriodError
    |
    +-- ConflictError
    |   +-- PayrollScheduleConflictError
    |
    +-- NotFoundError
    |   +-- StaffNotFoundError
    |   +-- CompensationNotFoundError
    |   +-- LoanNotFoundError
    |   +-- PayrollScheduleNotFoundError
    |
    +-- PersistenceError
    |
    +-- LoanError
    |   +-- InvalidLoanTransitionError
    |   +-- LoanNotApprovedError
    |   +-- LoanDeductionExceedsBalanceError
    |   +-- InvalidRepaymentAmountError
    |
    +-- ImmutabilityViolationError
    |
    +-- InvalidRunTransitionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | Retryable | When Raised
--------------|-------------------------------|-----------|---------------------------
Validation    | VALIDATION_ERROR              | no        | Malformed input
              | INVALID_PERIOD                | no        | Month/year out of range
Conflict      | CONFLICT                      | no        | Uniqueness violated
              | PAYROLL_SCHEDULE_EXISTS       | no        | Period already generated
Not found     | STAFF_NOT_FOUND               | yes       | Staff id unknown
              | COMPENSATION_NOT_FOUND        | yes       | Structure id unknown
              | LOAN_NOT_FOUND                | yes       | Loan vanished / unknown
              | PAYROLL_SCHEDULE_NOT_FOUND    | no        | Schedule id unknown
Persistence   | PERSISTENCE_ERROR             | yes       | Storage failure
Loan          | INVALID_LOAN_TRANSITION       | no        | e.g. REJECTED -> APPROVED
              | LOAN_NOT_APPROVED             | no        | Repaying a non-active loan
              | LOAN_DEDUCTION_EXCEEDS_BALANCE| no        | Deduction > outstanding
              | INVALID_REPAYMENT_AMOUNT      | no        | Zero/negative repayment
Immutability  | IMMUTABILITY_VIOLATION        | no        | Editing a frozen record
Run           | INVALID_RUN_TRANSITION        | no        | Illegal run state change

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Domain exceptions should be catchable as a group.  Inheriting from
   built-in types mixes domain errors with programming errors.

2. WHY code AND retryable AS CLASS ATTRIBUTES?
   They are static per exception type, so the orchestrator can build a
   run outcome from any kernel error without a lookup table.

===============================================================================
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"
    retryable: bool = False


# Validation


class PayrollValidationError(PayrollKernelError):
    """Input failed validation before any state was touched."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidPeriodError(PayrollValidationError):
    """Requested payroll period is outside the accepted range."""

    code: str = "INVALID_PERIOD"

    def __init__(self, month: int, year: int, reason: str):
        self.month = month
        self.year = year
        self.reason = reason
        super().__init__(f"Invalid payroll period {month}/{year}: {reason}")


# Conflicts


class ConflictError(PayrollKernelError):
    """Base exception for uniqueness conflicts."""

    code: str = "CONFLICT"


class PayrollScheduleConflictError(ConflictError):
    """A payroll schedule already exists for the period."""

    code: str = "PAYROLL_SCHEDULE_EXISTS"

    def __init__(self, month: int, year: int, schedule_id: str | None = None):
        self.month = month
        self.year = year
        self.schedule_id = schedule_id
        super().__init__(f"Payroll already generated for {month}/{year}")


# Not found


class NotFoundError(PayrollKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    retryable: bool = True


class StaffNotFoundError(NotFoundError):
    """Staff member with given ID was not found."""

    code: str = "STAFF_NOT_FOUND"

    def __init__(self, staff_id: str):
        self.staff_id = staff_id
        super().__init__(f"Staff member not found: {staff_id}")


class CompensationNotFoundError(NotFoundError):
    """Compensation structure with given ID was not found."""

    code: str = "COMPENSATION_NOT_FOUND"

    def __init__(self, compensation_id: str):
        self.compensation_id = compensation_id
        super().__init__(f"Compensation structure not found: {compensation_id}")


class LoanNotFoundError(NotFoundError):
    """Loan with given ID was not found (or vanished during a run)."""

    code: str = "LOAN_NOT_FOUND"

    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(f"Loan not found: {loan_id}")


class PayrollScheduleNotFoundError(NotFoundError):
    """Payroll schedule with given ID was not found."""

    code: str = "PAYROLL_SCHEDULE_NOT_FOUND"
    retryable: bool = False

    def __init__(self, schedule_id: str):
        self.schedule_id = schedule_id
        super().__init__(f"Payroll schedule not found: {schedule_id}")


# Persistence


class PersistenceError(PayrollKernelError):
    """Storage failed while writing the unit of work."""

    code: str = "PERSISTENCE_ERROR"
    retryable: bool = True

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence failure during {operation}: {detail}")


# Loans


class LoanError(PayrollKernelError):
    """Base exception for loan lifecycle errors."""

    code: str = "LOAN_ERROR"


class InvalidLoanTransitionError(LoanError):
    """Requested loan status change is not allowed."""

    code: str = "INVALID_LOAN_TRANSITION"

    def __init__(self, loan_id: str, current_status: str, requested_status: str):
        self.loan_id = loan_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Loan {loan_id} cannot move from {current_status} to {requested_status}"
        )


class LoanNotApprovedError(LoanError):
    """Repayment attempted against a loan that is not APPROVED."""

    code: str = "LOAN_NOT_APPROVED"

    def __init__(self, loan_id: str, status: str):
        self.loan_id = loan_id
        self.status = status
        super().__init__(f"Loan {loan_id} is {status}, repayments need an approved loan")


class LoanDeductionExceedsBalanceError(LoanError):
    """A ledger deduction would drive the outstanding balance below zero."""

    code: str = "LOAN_DEDUCTION_EXCEEDS_BALANCE"

    def __init__(self, loan_id: str, amount: str, outstanding: str):
        self.loan_id = loan_id
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Deduction {amount} exceeds outstanding balance {outstanding} "
            f"on loan {loan_id}"
        )


class InvalidRepaymentAmountError(LoanError):
    """Repayment amount is zero or negative."""

    code: str = "INVALID_REPAYMENT_AMOUNT"

    def __init__(self, loan_id: str, amount: str):
        self.loan_id = loan_id
        self.amount = amount
        super().__init__(f"Invalid repayment amount {amount} for loan {loan_id}")


# Immutability


class ImmutabilityViolationError(PayrollKernelError):
    """
    Attempted to modify or delete an immutable record.

    Payroll schedules and loan repayments are immutable from creation;
    compensation amounts are immutable once inserted.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Run lifecycle


class InvalidRunTransitionError(PayrollKernelError):
    """Payroll run state machine received an illegal transition."""

    code: str = "INVALID_RUN_TRANSITION"

    def __init__(self, current_state: str, requested_state: str):
        self.current_state = current_state
        self.requested_state = requested_state
        super().__init__(
            f"Payroll run cannot move from {current_state} to {requested_state}"
        )
