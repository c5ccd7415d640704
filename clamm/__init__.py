"""
Concentrated-liquidity AMM simulation engine.

This package provides exact Python implementations of the tick, liquidity
and swap math of a concentrated-liquidity pool: price/tick conversions,
position sizing, single-region swap steps, multi-tick swap simulation and
fee accounting.
"""

from .constants import FEE_TIERS, MAX_TICK, MIN_TICK, Q96, TICK_SPACINGS
from .exceptions import (
    ClammError,
    DivisionByZeroError,
    InvalidFeeTierError,
    InvalidPriceError,
    InvalidRangeError,
    NonPositiveAmountError,
    NonPositiveLiquidityError,
    TickOutOfRangeError,
)
from .tick import tick_to_price, price_to_tick, get_closest_tick, sqrt_price_at_tick, tick_at_sqrt_price
from .price import sqrtpx96_to_price, sqrtpx96_to_exact_price, price_to_sqrtpx96
from .liquidity import (
    Position,
    get_liquidity_for_amounts,
    get_amounts_for_liquidity,
    get_amount0_delta,
    get_amount1_delta,
    get_liquidity,
    get_position_balance,
    match_tokens_to_range,
    check_positions,
)
from .tick_index import Tick, TickLiquidityIndex
from .swap import (
    PoolState,
    SwapResult,
    SwapStatus,
    SwapStepResult,
    compute_swap_step,
    size_price_change_in_tick,
    calculate_price_impact,
    simulate_swap,
)
from .pool import Pool
from .fees import fees_earned, distribute_swap_fees, calc_fees_from_trades

__version__ = "0.1.0"

__all__ = [
    "FEE_TIERS",
    "MAX_TICK",
    "MIN_TICK",
    "Q96",
    "TICK_SPACINGS",
    "ClammError",
    "DivisionByZeroError",
    "InvalidFeeTierError",
    "InvalidPriceError",
    "InvalidRangeError",
    "NonPositiveAmountError",
    "NonPositiveLiquidityError",
    "TickOutOfRangeError",
    "tick_to_price",
    "price_to_tick",
    "get_closest_tick",
    "sqrt_price_at_tick",
    "tick_at_sqrt_price",
    "sqrtpx96_to_price",
    "sqrtpx96_to_exact_price",
    "price_to_sqrtpx96",
    "Position",
    "get_liquidity_for_amounts",
    "get_amounts_for_liquidity",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_liquidity",
    "get_position_balance",
    "match_tokens_to_range",
    "check_positions",
    "Tick",
    "TickLiquidityIndex",
    "PoolState",
    "SwapResult",
    "SwapStatus",
    "SwapStepResult",
    "compute_swap_step",
    "size_price_change_in_tick",
    "calculate_price_impact",
    "simulate_swap",
    "Pool",
    "fees_earned",
    "distribute_swap_fees",
    "calc_fees_from_trades",
]
