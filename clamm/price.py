"""
Price conversion functions for the sqrtPriceX96 format.

Pools store prices as square roots in 64.96 fixed-point format
(64 bits integer, 96 bits fractional).
"""

import math
from fractions import Fraction
from typing import Union

from .constants import Q96, Q192
from .exceptions import InvalidPriceError
from .utils import Number, to_fraction


def price_to_sqrtpx96(
    p: Number,
    invert: bool = False,
    decimal_adjustment: Number = 1.0
) -> int:
    """
    Convert a human-readable price to sqrtPriceX96 format.

    The square root is taken with integer arithmetic, so the result is the
    exact floor of sqrt(P * decimal_adjustment) * 2^96.

    Args:
        p: Price in human readable form (e.g., 2000 token1 per token0).
        invert: Whether to invert the price first. Pools quote Token 1 / Token 0.
            Default False.
        decimal_adjustment: 10^(decimal difference). WBTC has 8 decimals,
            ETH has 18, so it'd be 1e10.

    Returns:
        Big integer price in sqrtPriceX96 format.

    Raises:
        InvalidPriceError: If the price is not strictly positive.

    Examples:
        >>> price_to_sqrtpx96(1)
        79228162514264337593543950336
        >>> price_to_sqrtpx96(4) == 2 * 2 ** 96
        True
    """
    price = to_fraction(p)
    if price <= 0:
        raise InvalidPriceError(f"Price must be positive, got {p}")

    if invert:
        price = 1 / price

    raw = price * to_fraction(decimal_adjustment)
    # floor(sqrt(raw) * 2^96) == isqrt(floor(raw * 2^192))
    return math.isqrt(math.floor(raw * Q192))


def sqrtpx96_to_exact_price(sqrtpx96: Union[int, str]) -> Fraction:
    """Exact Token 1 / Token 0 price of a sqrtPriceX96 value."""
    sqrtpx96 = int(sqrtpx96)
    if sqrtpx96 <= 0:
        raise InvalidPriceError(f"sqrtPriceX96 must be positive, got {sqrtpx96}")
    return Fraction(sqrtpx96 * sqrtpx96, Q192)


def sqrtpx96_to_price(
    sqrtpx96: Union[int, str],
    invert: bool = False,
    decimal_adjustment: Number = 1.0
) -> float:
    """
    Convert sqrtPriceX96 format to a human-readable price.

    Args:
        sqrtpx96: The 64.96 square root price to convert.
        invert: Whether to invert the result. Default False.
        decimal_adjustment: 10^(decimal difference). WBTC has 8 decimals,
            ETH has 18, so it'd be 1e10.

    Returns:
        Human readable decimal price in desired format (1/0 or 0/1 if invert=True).

    Examples:
        >>> sqrtpx96_to_price(2 ** 96)
        1.0
        >>> sqrtpx96_to_price(2 * 2 ** 96, invert=True)
        0.25
    """
    p = sqrtpx96_to_exact_price(sqrtpx96)

    if invert:
        return float((1 / p) * to_fraction(decimal_adjustment))
    else:
        return float(p / to_fraction(decimal_adjustment))
