"""
Module: payroll_engines
Responsibility:
    Package entrypoint re-exporting the pure payroll calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel.domain and payroll_kernel.logging_config.
    MUST NOT import payroll_services or payroll_config.

Invariants enforced:
    - Purity: engines never read the clock; dates come in as parameters.
    - Decimal-only arithmetic.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Pay line calculations are traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE records.
"""

from payroll_engines.compensation import select_active_compensation
from payroll_engines.loan_eligibility import filter_eligible_loans, is_loan_eligible
from payroll_engines.pay_line import (
    NEGATIVE_NET_PAY,
    PayLineCalculator,
    loan_deduction_amount,
)
from payroll_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "NEGATIVE_NET_PAY",
    "PayLineCalculator",
    "compute_input_fingerprint",
    "filter_eligible_loans",
    "is_loan_eligible",
    "loan_deduction_amount",
    "select_active_compensation",
    "traced_engine",
]
