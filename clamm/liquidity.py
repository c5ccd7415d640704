"""
Liquidity calculation functions.

Liquidity L is constant inside a position's range [p_lower, p_upper). In
sqrt price terms:

    L = amount0 * sqrt(p_lower) * sqrt(p_upper) / (sqrt(p_upper) - sqrt(p_lower))
    L = amount1 / (sqrt(p_upper) - sqrt(p_lower))

All sqrt prices are sqrtPriceX96 integers.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Tuple, TypedDict, Union

import pandas as pd

from .constants import MAX_TICK, MIN_TICK, Q96
from .exceptions import InvalidRangeError, TickOutOfRangeError
from .tick import price_to_tick, sqrt_price_at_tick
from .utils import Number, round_down, round_up, to_fraction


class PositionBalance(TypedDict):
    """Result from get_position_balance function."""
    token0: float
    token1: float


class MatchTokensResult(TypedDict):
    """Result from match_tokens_to_range function."""
    amount_x: float
    amount_y: float
    liquidity: float
    tick_lower: int
    tick_upper: int


def _check_range(tick_lower: int, tick_upper: int) -> None:
    if tick_lower >= tick_upper:
        raise InvalidRangeError(
            f"tick_lower ({tick_lower}) must be below tick_upper ({tick_upper})"
        )
    for tick in (tick_lower, tick_upper):
        if tick < MIN_TICK or tick > MAX_TICK:
            raise TickOutOfRangeError(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")


@dataclass(frozen=True)
class Position:
    """A liquidity position over the tick range [lower_tick, upper_tick)."""
    lower_tick: int
    upper_tick: int
    liquidity: Fraction

    def __post_init__(self):
        _check_range(self.lower_tick, self.upper_tick)
        liquidity = to_fraction(self.liquidity)
        if liquidity < 0:
            raise ValueError(f"Position liquidity must be non-negative, got {self.liquidity}")
        object.__setattr__(self, "liquidity", liquidity)

    @classmethod
    def from_prices(
        cls,
        lower_price: Number,
        upper_price: Number,
        liquidity: Number,
        tick_spacing: int = 1
    ) -> "Position":
        """Build a position from a price range, flooring both bounds to the tick grid."""
        lower_tick = price_to_tick(lower_price) // tick_spacing * tick_spacing
        upper_tick = price_to_tick(upper_price) // tick_spacing * tick_spacing
        return cls(lower_tick, upper_tick, to_fraction(liquidity))

    def contains(self, tick: int) -> bool:
        """Whether the position is active while the pool sits at ``tick``."""
        return self.lower_tick <= tick < self.upper_tick

    def amounts(self, sqrtpx96: int) -> Tuple[Fraction, Fraction]:
        """Token balances of the position at the given price."""
        return get_amounts_for_liquidity(
            sqrtpx96,
            sqrt_price_at_tick(self.lower_tick),
            sqrt_price_at_tick(self.upper_tick),
            self.liquidity,
        )


def get_amount0_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: Number,
    round_up_result: bool = False
) -> Fraction:
    """
    Amount of token0 between two sqrt prices for a given liquidity.

    amount0 = L * (sqrt_b - sqrt_a) / (sqrt_a * sqrt_b)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    amount = (
        to_fraction(liquidity) * Q96 * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)
        / (sqrt_ratio_a_x96 * sqrt_ratio_b_x96)
    )
    return round_up(amount) if round_up_result else round_down(amount)


def get_amount1_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: Number,
    round_up_result: bool = False
) -> Fraction:
    """
    Amount of token1 between two sqrt prices for a given liquidity.

    amount1 = L * (sqrt_b - sqrt_a)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    amount = to_fraction(liquidity) * Fraction(sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return round_up(amount) if round_up_result else round_down(amount)


def _liquidity_for_amount0(sqrt_a: int, sqrt_b: int, amount0: Fraction) -> Fraction:
    return amount0 * Fraction(sqrt_a * sqrt_b, Q96) / (sqrt_b - sqrt_a)


def _liquidity_for_amount1(sqrt_a: int, sqrt_b: int, amount1: Fraction) -> Fraction:
    return amount1 * Q96 / (sqrt_b - sqrt_a)


def get_liquidity_for_amounts(
    sqrt_price_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: Number,
    amount1: Number
) -> Fraction:
    """
    Largest liquidity the given token amounts can back over a range.

    Bounds may be passed in either order. Below the range only amount0
    counts, above it only amount1; inside the range the position gets the
    smaller of the two so neither token is over-committed.

    Returns:
        Liquidity rounded down to the 18-decimal amount grid. 0 for an empty range.
    """
    sqrt_price_x96 = int(sqrt_price_x96)
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if sqrt_ratio_a_x96 == sqrt_ratio_b_x96:
        return Fraction(0)

    amount0 = to_fraction(amount0)
    amount1 = to_fraction(amount1)
    if amount0 < 0 or amount1 < 0:
        raise ValueError("Token amounts must be non-negative")

    if sqrt_price_x96 <= sqrt_ratio_a_x96:
        liquidity = _liquidity_for_amount0(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount0)
    elif sqrt_price_x96 < sqrt_ratio_b_x96:
        liquidity0 = _liquidity_for_amount0(sqrt_price_x96, sqrt_ratio_b_x96, amount0)
        liquidity1 = _liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_price_x96, amount1)
        liquidity = min(liquidity0, liquidity1)
    else:
        liquidity = _liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount1)

    return round_down(liquidity)


def get_amounts_for_liquidity(
    sqrt_price_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: Number
) -> Tuple[Fraction, Fraction]:
    """
    Token amounts represented by ``liquidity`` over a range at a price.

    Inverse of get_liquidity_for_amounts with the same regime split. Amounts
    are rounded down.

    Returns:
        (amount0, amount1)
    """
    sqrt_price_x96 = int(sqrt_price_x96)
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    zero = Fraction(0)
    if to_fraction(liquidity) < 0:
        raise ValueError(f"Liquidity must be non-negative, got {liquidity}")

    if sqrt_price_x96 <= sqrt_ratio_a_x96:
        return get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity), zero
    elif sqrt_price_x96 < sqrt_ratio_b_x96:
        return (
            get_amount0_delta(sqrt_price_x96, sqrt_ratio_b_x96, liquidity),
            get_amount1_delta(sqrt_ratio_a_x96, sqrt_price_x96, liquidity),
        )
    else:
        return zero, get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity)


def get_liquidity(
    x: Number,
    y: Number,
    sqrtpx96: Union[int, str],
    tick_lower: int,
    tick_upper: int
) -> Fraction:
    """
    Calculate the liquidity provided by a range using its amount of tokens.

    Args:
        x: Number of token 0.
        y: Number of token 1.
        sqrtpx96: Current price in sqrtPriceX96 format.
        tick_lower: The low tick in a liquidity position.
        tick_upper: The upper tick in a liquidity position.

    Returns:
        Liquidity contributed by the position, rounded down to 18 decimals.

    Raises:
        InvalidRangeError: If tick_lower >= tick_upper.
    """
    _check_range(tick_lower, tick_upper)

    return get_liquidity_for_amounts(
        int(sqrtpx96),
        sqrt_price_at_tick(tick_lower),
        sqrt_price_at_tick(tick_upper),
        x,
        y,
    )


def get_position_balance(
    position_l: Union[Number, str],
    sqrtpx96: Union[int, str],
    tick_lower: int,
    tick_upper: int
) -> PositionBalance:
    """
    Get the balance of assets in a position given its liquidity and current price.

    Above the range the position is all token 1, below it all token 0.

    Args:
        position_l: The liquidity provided by a position.
        sqrtpx96: Current price in sqrtPriceX96 format.
        tick_lower: The low tick in a liquidity position.
        tick_upper: The upper tick in a liquidity position.

    Returns:
        A dict with token0 (x) balance and token1 (y) balance.
    """
    _check_range(tick_lower, tick_upper)

    token0, token1 = get_amounts_for_liquidity(
        int(sqrtpx96),
        sqrt_price_at_tick(tick_lower),
        sqrt_price_at_tick(tick_upper),
        to_fraction(position_l),
    )

    return PositionBalance(token0=float(token0), token1=float(token1))


def match_tokens_to_range(
    x: Union[Number, None],
    y: Union[Number, None],
    sqrtpx96: Union[int, str],
    tick_lower: int,
    tick_upper: int
) -> MatchTokensResult:
    """
    Given one token amount and a range, calculate how much of the other token is needed.

    Args:
        x: Number of token 0. Should be None if y is provided.
        y: Number of token 1. Should be None if x is provided.
        sqrtpx96: Current price in sqrtPriceX96 format.
        tick_lower: The low tick in a liquidity position.
        tick_upper: The upper tick in a liquidity position.

    Returns:
        A dict with amount_x, amount_y, the resulting liquidity and the ticks.
        Outside the range the counterpart amount is 0.

    Raises:
        ValueError: If both or neither amount is given, or the given token
            cannot be deposited at the current price.
    """
    if x is None and y is None:
        raise ValueError("Amount of token x OR amount of token y must be provided")

    if x is not None and y is not None:
        raise ValueError("One of amount x or amount y should be unknown (None)")

    _check_range(tick_lower, tick_upper)
    sqrtpx96 = int(sqrtpx96)
    sqrt_lower = sqrt_price_at_tick(tick_lower)
    sqrt_upper = sqrt_price_at_tick(tick_upper)

    if x is not None:
        amount_x = to_fraction(x)
        if sqrtpx96 >= sqrt_upper:
            raise ValueError("Range is below the current price; it holds only token 1")
        start = max(sqrtpx96, sqrt_lower)
        liquidity = _liquidity_for_amount0(start, sqrt_upper, amount_x)
        amount_y = (
            get_amount1_delta(sqrt_lower, sqrtpx96, liquidity, round_up_result=True)
            if sqrtpx96 > sqrt_lower else Fraction(0)
        )
    else:
        amount_y = to_fraction(y)
        if sqrtpx96 <= sqrt_lower:
            raise ValueError("Range is above the current price; it holds only token 0")
        end = min(sqrtpx96, sqrt_upper)
        liquidity = _liquidity_for_amount1(sqrt_lower, end, amount_y)
        amount_x = (
            get_amount0_delta(sqrtpx96, sqrt_upper, liquidity, round_up_result=True)
            if sqrtpx96 < sqrt_upper else Fraction(0)
        )

    return MatchTokensResult(
        amount_x=float(amount_x),
        amount_y=float(amount_y),
        liquidity=float(round_down(liquidity)),
        tick_lower=tick_lower,
        tick_upper=tick_upper
    )


def check_positions(
    ptbl: pd.DataFrame,
    p: Number,
    decimal_adjustment: Number = 1.0
) -> pd.DataFrame:
    """
    Flag liquidity positions as active or not active at a specific price.

    A position is active when tick_lower <= tick(p) < tick_upper, matching
    how the tick index accumulates liquidity.

    Args:
        ptbl: Liquidity positions table with columns tick_lower, tick_upper, liquidity.
        p: Specific price in human readable Token 1 / Token 0 format.
        decimal_adjustment: The difference in the tokens decimals.

    Returns:
        A copy of the positions table with a new 'active' column.
    """
    if "tick_lower" not in ptbl.columns or "tick_upper" not in ptbl.columns:
        raise ValueError("Expected tick_lower and tick_upper columns")

    target_tick = price_to_tick(p, decimal_adjustment=decimal_adjustment)

    result = ptbl.copy()
    result["active"] = (result["tick_lower"] <= target_tick) & (result["tick_upper"] > target_tick)

    return result
