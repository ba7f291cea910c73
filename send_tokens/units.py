"""
Conversion between human-readable token amounts and base units.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Union

from .exceptions import InvalidAmount

Amount = Union[str, int, float, Decimal]

AMOUNT_PATTERN = re.compile(r"^\d+(\.\d+)?$")

GWEI_DECIMALS = 9


def parse_amount(amount: Amount) -> Decimal:
    """
    Parse a non-negative decimal amount.

    Strings must be plain decimal numbers: no sign, exponent or thousands
    separators. Numbers passed programmatically only need to be finite and
    non-negative.

    Raises:
        InvalidAmount: If the amount is malformed or negative
    """
    if isinstance(amount, bool):
        raise InvalidAmount(amount)
    if isinstance(amount, str):
        if not AMOUNT_PATTERN.match(amount):
            raise InvalidAmount(amount)
        return Decimal(amount)
    if isinstance(amount, (int, float, Decimal)):
        try:
            # repr keeps the shortest round-tripping form of a float (1.1 -> "1.1")
            value = Decimal(repr(amount)) if isinstance(amount, float) else Decimal(amount)
        except InvalidOperation:
            raise InvalidAmount(amount)
        if not value.is_finite() or value < 0:
            raise InvalidAmount(amount)
        return value
    raise InvalidAmount(amount)


def to_base_units(amount: Amount, decimals: int) -> str:
    """
    Convert ``amount`` to base units, truncating any excess precision.

    Args:
        amount: Decimal amount as a string or number
        decimals: Number of decimal places the token uses

    Returns:
        Base-unit integer as a decimal string
    """
    value = parse_amount(amount)
    digits = len(value.as_tuple().digits)
    with localcontext() as ctx:
        ctx.prec = max(28, digits + decimals + 2)
        scaled = value.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
    return str(int(scaled))


def to_decimal(base_units: Union[int, str], decimals: int) -> str:
    """Render a base-unit integer as a decimal string (display only)."""
    units = int(base_units)
    if decimals == 0:
        return str(units)
    digits = str(units).rjust(decimals + 1, "0")
    whole, frac = digits[:-decimals], digits[-decimals:].rstrip("0")
    return f"{whole}.{frac}" if frac else whole


def gwei_to_wei(gwei: Amount) -> int:
    """Convert a gas price in gwei to wei."""
    return int(to_base_units(gwei, GWEI_DECIMALS))
