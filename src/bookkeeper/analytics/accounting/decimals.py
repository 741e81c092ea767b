"""Decimal helpers shared by the accounting code."""

from decimal import ROUND_HALF_EVEN, Decimal
import re

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

_WHITESPACE = re.compile(r"\s+")


def to_decimal(value) -> Decimal | None:
    """Convert a number or a formatted string ("123 456.78") to Decimal.

    Blank strings and None map to None. Raises decimal.InvalidOperation on
    garbage.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through repr to keep 0.1 as 0.1
        return Decimal(repr(value))
    text = _WHITESPACE.sub("", str(value))
    if not text:
        return None
    return Decimal(text)


def round_money(value: Decimal | None, scale: int) -> Decimal | None:
    """Round half-even to ``scale`` places, None stays None."""
    if value is None:
        return None
    return value.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_EVEN)


def safe_sum(values) -> Decimal:
    """Sum of the non-None values."""
    return sum((v for v in values if v is not None), start=ZERO)

