"""
Monetary helpers.

Amounts cross the engine boundary as integer cents and rates as integer
basis points. Inside the engine everything is a Decimal evaluated under
MONEY_CONTEXT, and results are rounded half-up back to whole cents.
"""

from decimal import Context, Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP, localcontext
from typing import Union

from portfolio.calculations.errors import InvalidInputError

MONEY_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)

BASIS_POINTS = Decimal(10000)
CENTS_PER_DOLLAR = Decimal(100)
_ONE = Decimal(1)

DecimalValue = Union[Decimal, int, float, str]


def money_context():
    """Evaluate the enclosed block under MONEY_CONTEXT."""
    return localcontext(MONEY_CONTEXT)


def to_decimal(value: DecimalValue) -> Decimal:
    """
    Convert a number or numeric string to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        InvalidInputError: If the value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"Not a numeric value: {value!r}")


def round_cents(value: DecimalValue) -> int:
    """Round a cents-denominated amount half-up to a whole number of cents."""
    return int(to_decimal(value).quantize(_ONE, rounding=ROUND_HALF_UP))


def floor_cents(value: DecimalValue) -> int:
    """Round a cents-denominated amount down to a whole number of cents."""
    return int(to_decimal(value).quantize(_ONE, rounding=ROUND_FLOOR))


def to_cents(value: DecimalValue) -> int:
    """Convert a dollar amount to integer cents, rounding half-up."""
    with money_context():
        return round_cents(to_decimal(value) * CENTS_PER_DOLLAR)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to an exact dollar Decimal."""
    with money_context():
        return to_decimal(cents) / CENTS_PER_DOLLAR


def bp_to_rate(basis_points: DecimalValue) -> Decimal:
    """
    Convert basis points to a decimal rate.

    Example: 550 basis points = 0.055 (5.5%)
    """
    with money_context():
        return to_decimal(basis_points) / BASIS_POINTS


def format_currency(value: DecimalValue) -> str:
    """Format a dollar amount with two decimal places."""
    return str(to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
