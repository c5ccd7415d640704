"""
Tick-related conversion functions.

A tick is a discrete price coordinate: price = 1.0001 ** tick.
"""

import math
from functools import lru_cache
from typing import TypedDict, Union

from .constants import MAX_TICK, MIN_TICK, TICK_BASE
from .exceptions import InvalidPriceError, TickOutOfRangeError
from .price import price_to_sqrtpx96, sqrtpx96_to_exact_price
from .utils import Number, to_fraction

_LOG_BASE = math.log(TICK_BASE)


class ClosestTickResult(TypedDict):
    """Result from get_closest_tick function."""
    desired_price: float
    actual_price: float
    tick: int


def validate_tick(tick: int) -> int:
    """Return tick as an int, rejecting ticks outside [MIN_TICK, MAX_TICK]."""
    tick = int(tick)
    if tick < MIN_TICK or tick > MAX_TICK:
        raise TickOutOfRangeError(
            f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]"
        )
    return tick


def _raw_tick_price(tick: int) -> float:
    return TICK_BASE ** tick


def tick_to_price(tick: int, decimal_adjustment: Number = 1.0, yx: bool = True) -> float:
    """
    Convert a tick to a human readable price.

    Args:
        tick: The numeric tick, e.g., 76012.
        decimal_adjustment: The difference in the tokens decimals, e.g., 1e12 for
            USDC vs ETH. Default 1 (no adjustment).
        yx: Whether to return price in Token 1 / Token 0 format or inverted.
            Default True.

    Returns:
        A numeric price in desired format.

    Raises:
        TickOutOfRangeError: If tick is outside [MIN_TICK, MAX_TICK].

    Examples:
        >>> tick_to_price(0)
        1.0
        >>> round(tick_to_price(76012))
        2000
    """
    p = _raw_tick_price(validate_tick(tick))

    if yx:
        p = p / float(decimal_adjustment)
    else:
        p = (1.0 / p) * float(decimal_adjustment)

    return p


def price_to_tick(price: Number, decimal_adjustment: Number = 1.0) -> int:
    """
    Convert a Token 1 / Token 0 price to its tick.

    The result is the largest tick whose price does not exceed ``price``
    (floor semantics), so ``price_to_tick(tick_to_price(t)) == t``.

    Raises:
        InvalidPriceError: If price is not strictly positive.
        TickOutOfRangeError: If the floor tick is outside the valid range.

    Examples:
        >>> price_to_tick(1)
        0
        >>> price_to_tick(2000)
        76012
    """
    p = to_fraction(price)
    if p <= 0:
        raise InvalidPriceError(f"Price must be positive, got {price}")
    raw = p * to_fraction(decimal_adjustment)

    tick = math.floor(math.log(raw) / _LOG_BASE)
    # float log can land one tick off near a boundary
    while to_fraction(_raw_tick_price(tick + 1)) <= raw:
        tick += 1
    while to_fraction(_raw_tick_price(tick)) > raw:
        tick -= 1

    return validate_tick(tick)


def get_closest_tick(
    desired_price: Number,
    tick_spacing: int = 60,
    decimal_adjustment: Number = 1.0,
    yx: bool = True
) -> ClosestTickResult:
    """
    Get the closest allowable tick for a desired price.

    Depending on the fee tier, only ticks on a multiple of the pool's tick
    spacing may bound a position. In 0.05% pools the spacing is 10, in 0.3%
    pools it is 60.

    Args:
        desired_price: Your desired price.
        tick_spacing: The pool's minimum tick spacing. Default is 60 (0.3% pool).
            Use tick_spacing=1 to inverse tick_to_price.
        decimal_adjustment: The difference in the tokens decimals.
        yx: Whether price is already in Token 1 / Token 0 format or inverted.
            Default True.

    Returns:
        A dict with desired_price (input), actual_price (closest allowable), and tick.

    Examples:
        >>> get_closest_tick(20, tick_spacing=60, decimal_adjustment=1e10)["tick"]
        260220
    """
    price = to_fraction(desired_price)
    if price <= 0:
        raise InvalidPriceError(f"Price must be positive, got {desired_price}")

    # Price NOT in Y/X: invert for the tick, then invert the prices back
    if not yx:
        result = get_closest_tick(
            desired_price=1 / price,
            tick_spacing=tick_spacing,
            decimal_adjustment=decimal_adjustment,
            yx=True
        )
        result["desired_price"] = float(desired_price)
        result["actual_price"] = 1.0 / result["actual_price"]
        return result

    initial_tick = math.log(price * to_fraction(decimal_adjustment)) / _LOG_BASE
    tick = round(initial_tick / tick_spacing) * tick_spacing

    # Stay on the grid inside the valid range
    if tick > MAX_TICK:
        tick -= tick_spacing
    elif tick < MIN_TICK:
        tick += tick_spacing

    return ClosestTickResult(
        desired_price=float(desired_price),
        actual_price=tick_to_price(tick, decimal_adjustment=decimal_adjustment),
        tick=tick
    )


@lru_cache(maxsize=4096)
def sqrt_price_at_tick(tick: int) -> int:
    """Canonical sqrtPriceX96 of a tick boundary."""
    return price_to_sqrtpx96(tick_to_price(tick))


def tick_at_sqrt_price(sqrtpx96: Union[int, str]) -> int:
    """
    Floor tick of a sqrtPriceX96, clamped to [MIN_TICK, MAX_TICK].

    Satisfies sqrt_price_at_tick(t) <= sqrtpx96 < sqrt_price_at_tick(t + 1)
    whenever the price lies inside the tick range.
    """
    sqrtpx96 = int(sqrtpx96)
    price = sqrtpx96_to_exact_price(sqrtpx96)

    tick = math.floor(math.log(price) / _LOG_BASE)
    tick = min(max(tick, MIN_TICK), MAX_TICK)
    while tick < MAX_TICK and sqrt_price_at_tick(tick + 1) <= sqrtpx96:
        tick += 1
    while tick > MIN_TICK and sqrt_price_at_tick(tick) > sqrtpx96:
        tick -= 1
    return tick
