"""
Numeric helpers for exact amount arithmetic.
"""

import math
import numbers
from decimal import Decimal
from fractions import Fraction
from typing import Union

from .constants import AMOUNT_DECIMALS
from .exceptions import InvalidFeeTierError

Number = Union[int, float, str, Decimal, Fraction]


def to_fraction(value: Number) -> Fraction:
    """
    Convert a user supplied number into an exact Fraction.

    Floats are taken at their shortest decimal form, so 0.003 is exactly
    3/1000. Strings and Decimals keep their written decimal value.
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise TypeError("Expected a number, got bool")
    if isinstance(value, float):
        return Fraction(str(float(value)))
    if isinstance(value, (int, Decimal, str)):
        return Fraction(value)
    # numpy scalars
    if isinstance(value, numbers.Integral):
        return Fraction(int(value))
    if isinstance(value, numbers.Real):
        return Fraction(str(float(value)))
    raise TypeError(f"Expected a number, got {type(value).__name__}")


def round_down(value: Fraction, decimals: int = AMOUNT_DECIMALS) -> Fraction:
    """Floor value onto a grid of 10**-decimals."""
    quantum = 10 ** decimals
    return Fraction(math.floor(value * quantum), quantum)


def round_up(value: Fraction, decimals: int = AMOUNT_DECIMALS) -> Fraction:
    """Ceil value onto a grid of 10**-decimals."""
    quantum = 10 ** decimals
    return Fraction(math.ceil(value * quantum), quantum)


def validate_fee(fee_rate: Number) -> Fraction:
    """Return fee_rate as a Fraction, rejecting rates outside [0, 1)."""
    fee = to_fraction(fee_rate)
    if fee < 0 or fee >= 1:
        raise InvalidFeeTierError(f"Fee rate must be in [0, 1), got {fee_rate}")
    return fee
