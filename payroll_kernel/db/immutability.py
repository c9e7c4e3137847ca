"""
ORM-Level Immutability Enforcement for payroll records.

===============================================================================
WHY THIS EXISTS
===============================================================================

A generated payroll schedule is what was paid.  A repayment record is money
that moved.  Neither may be edited or removed afterwards; a mistake is
corrected by a new record.  Loan balances only ever go down, and
compensation amounts are replaced by a new structure instead of edited, so
every past snapshot can be re-derived from its inputs.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
The listeners below check the rules and raise ImmutabilityViolationError,
aborting the flush before any SQL is sent:

    session.flush()
         |
         v
    [before_update] --> _check_*() --> ImmutabilityViolationError
    [before_delete] --> _check_*() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | Rule
-----------------------|-------------------------------------------------------
PayrollSchedule        | No update, no delete (from creation)
LoanRepayment          | No update, no delete (from creation)
CompensationStructure  | Amount/date/staff fields frozen; is_active may change
Loan                   | Balance never increases, never negative;
                       | installments never decrease; no delete once repaid

updated_at / updated_by_id are audit metadata and may always change.

===============================================================================
USAGE
===============================================================================

    from payroll_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()

===============================================================================
"""

from decimal import Decimal

from sqlalchemy import event, inspect

from payroll_kernel.exceptions import ImmutabilityViolationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _changed_fields(target, allowed: frozenset[str]) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.attrs
        if attr.key not in allowed and attr.history.has_changes()
    ]


def _old_and_new(target, key: str):
    hist = inspect(target).attrs[key].history
    if not hist.deleted or not hist.added:
        return None, None
    return hist.deleted[0], hist.added[0]


def _check_payroll_schedule_update(mapper, connection, target):
    """Payroll schedules are frozen from creation."""
    changed = _changed_fields(target, _AUDIT_FIELDS)
    if changed:
        _block(
            "PayrollSchedule",
            target,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on a generated payroll schedule",
            field=changed[0],
        )


def _check_payroll_schedule_delete(mapper, connection, target):
    _block("PayrollSchedule", target, "DELETE", "Generated payroll schedules cannot be deleted")


def _check_loan_repayment_update(mapper, connection, target):
    """Repayments are append-only."""
    changed = _changed_fields(target, _AUDIT_FIELDS)
    if changed:
        _block(
            "LoanRepayment",
            target,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on a loan repayment",
            field=changed[0],
        )


def _check_loan_repayment_delete(mapper, connection, target):
    _block("LoanRepayment", target, "DELETE", "Loan repayments cannot be deleted")


def _check_compensation_update(mapper, connection, target):
    """Only activation state may change on a compensation structure."""
    from payroll_kernel.models.compensation import MUTABLE_COMPENSATION_FIELDS

    changed = _changed_fields(target, MUTABLE_COMPENSATION_FIELDS)
    if changed:
        _block(
            "CompensationStructure",
            target,
            "UPDATE",
            f"Cannot modify field '{changed[0]}'; create a new structure instead",
            field=changed[0],
        )


def _check_loan_update(mapper, connection, target):
    """Balance only goes down; installment count only goes up."""
    old_balance, new_balance = _old_and_new(target, "outstanding_balance")
    if new_balance is not None:
        if Decimal(new_balance) < 0:
            _block(
                "Loan",
                target,
                "UPDATE",
                f"Outstanding balance cannot be negative ({new_balance})",
                field="outstanding_balance",
            )
        if old_balance is not None and Decimal(new_balance) > Decimal(old_balance):
            _block(
                "Loan",
                target,
                "UPDATE",
                f"Outstanding balance cannot increase ({old_balance} -> {new_balance})",
                field="outstanding_balance",
            )

    old_count, new_count = _old_and_new(target, "installments_paid")
    if new_count is not None and old_count is not None and new_count < old_count:
        _block(
            "Loan",
            target,
            "UPDATE",
            f"Installments paid cannot decrease ({old_count} -> {new_count})",
            field="installments_paid",
        )


def _check_loan_delete(mapper, connection, target):
    if target.installments_paid:
        _block("Loan", target, "DELETE", "Loans with repayments cannot be deleted")


def _listeners():
    from payroll_kernel.models.compensation import CompensationStructure
    from payroll_kernel.models.loan import Loan, LoanRepayment
    from payroll_kernel.models.payroll_schedule import PayrollSchedule

    return (
        (PayrollSchedule, "before_update", _check_payroll_schedule_update),
        (PayrollSchedule, "before_delete", _check_payroll_schedule_delete),
        (LoanRepayment, "before_update", _check_loan_repayment_update),
        (LoanRepayment, "before_delete", _check_loan_repayment_delete),
        (CompensationStructure, "before_update", _check_compensation_update),
        (Loan, "before_update", _check_loan_update),
        (Loan, "before_delete", _check_loan_delete),
    )


def register_immutability_listeners() -> None:
    """Register all immutability event listeners (idempotent)."""
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability event listeners.

    WARNING: Only use this in tests that deliberately violate the rules.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
