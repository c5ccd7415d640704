"""
A pool snapshot that can be swapped against repeatedly.

Pool owns its tick index and the current PoolState. Each swap replaces the
state with the one returned by simulate_swap; clone() gives an independent
snapshot for running scenarios side by side.
"""

import logging
from fractions import Fraction
from typing import Iterable

import pandas as pd

from .constants import FEE_TIERS
from .exceptions import InvalidFeeTierError
from .liquidity import Position
from .swap import PoolState, SwapResult, simulate_swap
from .tick_index import TickLiquidityIndex
from .utils import Number, to_fraction, validate_fee

logger = logging.getLogger(__name__)


class Pool:
    """Tick index, current state and fee tier of one pool."""

    def __init__(self, index: TickLiquidityIndex, state: PoolState, fee: Number = 0.003):
        if validate_fee(fee) not in {to_fraction(tier) for tier in FEE_TIERS}:
            raise InvalidFeeTierError(
                f"Unsupported fee tier {fee}; expected one of {sorted(FEE_TIERS)}"
            )
        self.index = index
        self.state = state
        self.fee = fee

    @classmethod
    def from_positions(
        cls,
        price: Number,
        positions: Iterable[Position],
        fee: Number = 0.003
    ) -> "Pool":
        """Initialize a pool at ``price`` holding the given positions."""
        index = TickLiquidityIndex.from_positions(positions)
        state = PoolState.from_price(price, index)
        logger.debug(
            "Pool initialized at tick %s with %d ticks, active liquidity %s",
            state.current_tick, len(index), float(state.liquidity)
        )
        return cls(index, state, fee)

    @classmethod
    def from_frame(cls, price: Number, ptbl: pd.DataFrame, fee: Number = 0.003) -> "Pool":
        """Initialize from a positions table with tick_lower, tick_upper, liquidity columns."""
        index = TickLiquidityIndex.from_frame(ptbl)
        return cls(index, PoolState.from_price(price, index), fee)

    def add_position(self, position: Position) -> None:
        """Record a position and refresh the active liquidity."""
        self.index.add_position(position)
        if position.contains(self.state.current_tick):
            self.state = PoolState(
                self.state.current_tick,
                self.state.sqrt_price_x96,
                self.state.liquidity + position.liquidity,
            )

    def swap(self, amount_in: Number, zero_for_one: bool = True) -> SwapResult:
        """Simulate a swap and move the pool to the resulting state."""
        result, self.state = simulate_swap(
            self.state, self.index, amount_in, zero_for_one=zero_for_one, fee_rate=self.fee
        )
        return result

    def quote(self, amount_in: Number, zero_for_one: bool = True) -> SwapResult:
        """Simulate a swap without changing the pool."""
        result, _ = simulate_swap(
            self.state, self.index, amount_in, zero_for_one=zero_for_one, fee_rate=self.fee
        )
        return result

    def clone(self) -> "Pool":
        return Pool(self.index.copy(), self.state, self.fee)

    @property
    def price(self) -> Fraction:
        return self.state.price

    @property
    def active_liquidity(self) -> Fraction:
        return self.state.liquidity

    def __repr__(self) -> str:
        return (
            f"Pool(tick={self.state.current_tick}, price={float(self.price):.6g}, "
            f"liquidity={float(self.state.liquidity):.6g}, fee={self.fee})"
        )
