"""
Payroll Kernel

A period-based payroll and loan-amortization core with:
- One immutable payroll snapshot per (month, year)
- Atomic snapshot + loan ledger updates
- Append-only repayment history
- Deterministic active-compensation resolution
"""

__version__ = "0.1.0"
