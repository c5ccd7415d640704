"""
Fee calculation functions.
"""

from typing import Iterable, TypedDict, Union

import pandas as pd

from .exceptions import DivisionByZeroError
from .liquidity import Position
from .swap import SwapResult
from .utils import Number, to_fraction


class FeesResult(TypedDict):
    """Result from calc_fees_from_trades function."""
    amount0_fees: float
    amount1_fees: float


def fees_earned(
    my_liquidity: Number,
    pool_volume_usd: Number,
    total_pool_liquidity: Number,
    fee_rate: Number = 0.003
) -> float:
    """
    Fees owed to a share of pool liquidity over some traded volume.

    fees = my_liquidity / total_pool_liquidity * pool_volume_usd * fee_rate

    Raises:
        DivisionByZeroError: If total_pool_liquidity is zero.

    Examples:
        >>> fees_earned(1000, 1_000_000, 10_000, 0.003)
        300.0
    """
    total = to_fraction(total_pool_liquidity)
    if total == 0:
        raise DivisionByZeroError("Total pool liquidity is zero")

    share = to_fraction(my_liquidity) / total
    return float(share * to_fraction(pool_volume_usd) * to_fraction(fee_rate))


def distribute_swap_fees(
    positions: Iterable[Position],
    result: SwapResult
) -> pd.DataFrame:
    """
    Attribute the fees of a simulated swap to the positions that earned them.

    Each step's fee is split between the positions active during that step,
    pro rata to their liquidity. Fees are in units of the swap's input token.

    Returns:
        Table with tick_lower, tick_upper, liquidity and fee per position.
    """
    positions = list(positions)
    fees = [0.0] * len(positions)

    for step in result.steps:
        active = [
            i for i, pos in enumerate(positions)
            if pos.contains(step.tick_before) and pos.liquidity > 0
        ]
        active_liquidity = sum(positions[i].liquidity for i in active)
        if active_liquidity == 0:
            continue
        for i in active:
            fees[i] += float(step.fee_amount * positions[i].liquidity / active_liquidity)

    return pd.DataFrame({
        "tick_lower": [p.lower_tick for p in positions],
        "tick_upper": [p.upper_tick for p in positions],
        "liquidity": [float(p.liquidity) for p in positions],
        "fee": fees,
    })


def calc_fees_from_trades(
    position_l: Union[Number, str],
    tick_lower: int,
    tick_upper: int,
    trades: pd.DataFrame,
    fee: float = 0.003
) -> FeesResult:
    """
    Calculate fee rewards from trades occurring within a position's range.

    A trade counts when tick_lower <= tick < tick_upper. The position's share
    of a trade is position_l / (liquidity + position_l), with the trade's
    liquidity column holding the other liquidity active at that tick.

    Args:
        position_l: The liquidity provided by a position.
        tick_lower: The low tick in a liquidity position.
        tick_upper: The upper tick in a liquidity position.
        trades: Trades table with columns: tick, amount0, amount1, liquidity.
            Positive values are tokens sold to the pool, negative values tokens bought.
        fee: The pool fee, default 0.3% (0.003).

    Returns:
        A dict with amount0_fees and amount1_fees.
    """
    missing = {"tick", "amount0", "amount1", "liquidity"} - set(trades.columns)
    if missing:
        raise ValueError(f"Expected columns missing: {sorted(missing)}")

    position_l = float(position_l)

    relevant = trades[(trades["tick"] >= tick_lower) & (trades["tick"] < tick_upper)]
    if relevant.empty:
        return FeesResult(amount0_fees=0.0, amount1_fees=0.0)

    share = position_l / (relevant["liquidity"].astype(float) + position_l)

    amount0_in = relevant["amount0"].clip(lower=0)
    amount1_in = relevant["amount1"].clip(lower=0)

    return FeesResult(
        amount0_fees=float((amount0_in * share).sum() * fee),
        amount1_fees=float((amount1_in * share).sum() * fee)
    )
