"""
Ordered index of initialized ticks and their liquidity deltas.

Each position adding liquidity L over [a, b) contributes +L net at tick a
and -L net at tick b, so the active liquidity at tick t is the sum of the
net deltas of every tick at or below t.
"""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd

from .liquidity import Position
from .tick import validate_tick, price_to_tick
from .utils import Number, to_fraction


@dataclass(frozen=True)
class Tick:
    """An initialized tick."""
    index: int
    liquidity_net: Fraction
    liquidity_gross: Fraction


class TickLiquidityIndex:
    """
    Ticks kept in ascending index order.

    Insert-only: ticks are added while a pool is being built and only read
    during simulation. Use copy() to hand an independent index to another
    simulation.
    """

    def __init__(self, ticks: Optional[Iterable[Tick]] = None):
        self._indices: List[int] = []
        self._ticks: Dict[int, Tick] = {}
        for tick in ticks or ():
            self.add_tick(tick.index, tick.liquidity_net, tick.liquidity_gross)

    @classmethod
    def from_positions(cls, positions: Iterable[Position]) -> "TickLiquidityIndex":
        index = cls()
        for position in positions:
            index.add_position(position)
        return index

    @classmethod
    def from_frame(cls, ptbl: pd.DataFrame) -> "TickLiquidityIndex":
        """Build from a positions table with tick_lower, tick_upper and liquidity columns."""
        missing = {"tick_lower", "tick_upper", "liquidity"} - set(ptbl.columns)
        if missing:
            raise ValueError(f"Expected columns missing: {sorted(missing)}")

        return cls.from_positions(
            Position(int(row.tick_lower), int(row.tick_upper), to_fraction(row.liquidity))
            for row in ptbl.itertuples(index=False)
        )

    def add_tick(self, index: int, liquidity_net: Number, liquidity_gross: Number) -> Tick:
        """Insert a tick, or merge into the existing one by summing both fields."""
        index = validate_tick(index)
        liquidity_net = to_fraction(liquidity_net)
        liquidity_gross = to_fraction(liquidity_gross)

        existing = self._ticks.get(index)
        if existing is None:
            self._indices.insert(bisect_left(self._indices, index), index)
            tick = Tick(index, liquidity_net, liquidity_gross)
        else:
            tick = replace(
                existing,
                liquidity_net=existing.liquidity_net + liquidity_net,
                liquidity_gross=existing.liquidity_gross + liquidity_gross,
            )
        self._ticks[index] = tick
        return tick

    def add_position(self, position: Position) -> None:
        self.add_tick(position.lower_tick, position.liquidity, position.liquidity)
        self.add_tick(position.upper_tick, -position.liquidity, position.liquidity)

    def active_liquidity_at(self, tick: int) -> Fraction:
        """Sum of liquidity_net over all ticks with index <= tick."""
        end = bisect_right(self._indices, tick)
        return sum((self._ticks[i].liquidity_net for i in self._indices[:end]), Fraction(0))

    def next_tick(self, current_tick: int, price_up: bool = True) -> Optional[Tick]:
        """
        Nearest initialized tick strictly beyond current_tick.

        Args:
            current_tick: Tick to search from.
            price_up: Search above (True) or below (False) current_tick.

        Returns:
            The tick, or None when the index is exhausted in that direction.
        """
        if price_up:
            pos = bisect_right(self._indices, current_tick)
            if pos == len(self._indices):
                return None
        else:
            pos = bisect_left(self._indices, current_tick) - 1
            if pos < 0:
                return None
        return self._ticks[self._indices[pos]]

    def get(self, index: int) -> Optional[Tick]:
        return self._ticks.get(index)

    @property
    def ticks(self) -> tuple:
        return tuple(self._ticks[i] for i in self._indices)

    def total_liquidity_net(self) -> Fraction:
        return sum((t.liquidity_net for t in self._ticks.values()), Fraction(0))

    def copy(self) -> "TickLiquidityIndex":
        # Tick values are immutable, so a shallow copy of the containers is enough
        other = TickLiquidityIndex()
        other._indices = list(self._indices)
        other._ticks = dict(self._ticks)
        return other

    def to_frame(self) -> pd.DataFrame:
        """Read-only snapshot: one row per tick with its net/gross and cumulative liquidity."""
        ticks = self.ticks
        frame = pd.DataFrame({
            "tick": [t.index for t in ticks],
            "liquidity_net": [float(t.liquidity_net) for t in ticks],
            "liquidity_gross": [float(t.liquidity_gross) for t in ticks],
        })
        frame["active_liquidity"] = frame["liquidity_net"].cumsum()
        return frame

    def liquidity_profile(
        self,
        price_low: Number,
        price_high: Number,
        points: int = 50
    ) -> pd.DataFrame:
        """
        Active liquidity sampled on an even price grid.

        Returns:
            DataFrame with price, tick and liquidity columns.
        """
        prices = np.linspace(float(price_low), float(price_high), points)
        ticks = [price_to_tick(p) for p in prices]
        return pd.DataFrame({
            "price": prices,
            "tick": ticks,
            "liquidity": [float(self.active_liquidity_at(t)) for t in ticks],
        })

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[Tick]:
        return iter(self.ticks)

    def __repr__(self) -> str:
        return f"TickLiquidityIndex(ticks={len(self)})"
