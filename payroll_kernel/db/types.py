"""
Module: payroll_kernel.db.types
Responsibility: Money helpers shared by the kernel and the engines.

Invariants enforced:
    - round_money() is the only sanctioned rounding function for payroll
      amounts (ROUND_HALF_UP by default).
    - Values are always Decimal; float inputs are rejected by to_money().
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def money_from_str(value: str) -> Decimal:
    """
    Create a money value from its string form.

    Raises:
        ValueError: If value is not a valid decimal number.
    """
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Not a valid money amount: {value!r}") from exc


def to_money(value: Decimal | int | str) -> Decimal:
    """Coerce an int, str or Decimal into Decimal. Floats are refused."""
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Money must not be built from {type(value).__name__}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return money_from_str(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
