"""
Decimal helpers shared by the calculation engine.

All money flows through ``decimal.Decimal``; floats are converted via ``str``
so that 0.1 stays 0.1.
"""

import functools
from decimal import Context, Decimal, ROUND_FLOOR, ROUND_HALF_UP, localcontext
from typing import Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CURRENCY_UNIT = Decimal("0.01")

# Out-of-band value for ratios whose denominator is zero (e.g. cost per hour
# of a month with no operating hours).
UNDEFINED = Decimal("Infinity")

# Arithmetic context for every engine calculation: 28 significant digits,
# half-up, whatever the calling thread's context happens to be.
MONEY_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)


def in_money_context(func):
    """Run ``func`` with MONEY_CONTEXT as the current decimal context."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext(MONEY_CONTEXT):
            return func(*args, **kwargs)

    return wrapper


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without going through binary floats."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    """Round to the currency unit, half up. Undefined values pass through."""
    if not value.is_finite():
        return value
    return value.quantize(CURRENCY_UNIT, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    return value.quantize(CURRENCY_UNIT, rounding=ROUND_FLOOR)
