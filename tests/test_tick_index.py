"""
Tests for the tick liquidity index.
"""

import numpy as np
import pandas as pd
import pytest

from clamm import MAX_TICK, Position, Tick, TickLiquidityIndex, TickOutOfRangeError

POSITIONS = [
    Position(-100, 100, 1000),
    Position(0, 200, 500),
    Position(100, 300, 250),
    Position(-300, -200, 50),
]


@pytest.fixture
def index():
    return TickLiquidityIndex.from_positions(POSITIONS)


class TestAddTick:
    """Tests for TickLiquidityIndex.add_tick."""

    def test_keeps_ascending_order(self):
        index = TickLiquidityIndex()
        for i in (30, -10, 20, 0):
            index.add_tick(i, 1, 1)
        assert [t.index for t in index] == [-10, 0, 20, 30]

    def test_merges_same_index(self):
        index = TickLiquidityIndex()
        index.add_tick(10, 5, 5)
        merged = index.add_tick(10, -2, 2)
        assert len(index) == 1
        assert merged == Tick(10, 3, 7)
        assert index.get(10).liquidity_gross == 7

    def test_rejects_out_of_range(self):
        with pytest.raises(TickOutOfRangeError):
            TickLiquidityIndex().add_tick(MAX_TICK + 1, 1, 1)


class TestFromPositions:
    """Tests for building the index from positions."""

    def test_net_liquidity_sums_to_zero(self, index):
        assert index.total_liquidity_net() == 0

    def test_shared_boundary_is_merged(self, index):
        # 100 closes the first position and opens the third
        tick = index.get(100)
        assert tick.liquidity_net == -1000 + 250
        assert tick.liquidity_gross == 1000 + 250

    @pytest.mark.parametrize("tick", [-1000, -300, -250, -200, -100, -1, 0, 99, 100, 150, 200, 299, 300])
    def test_active_liquidity_matches_positions(self, index, tick):
        expected = sum(p.liquidity for p in POSITIONS if p.lower_tick <= tick < p.upper_tick)
        assert index.active_liquidity_at(tick) == expected

    def test_from_frame(self):
        ptbl = pd.DataFrame({
            "tick_lower": np.array([-100, 0], dtype=np.int64),
            "tick_upper": np.array([100, 200], dtype=np.int64),
            "liquidity": np.array([1000, 500], dtype=np.int64),
        })
        index = TickLiquidityIndex.from_frame(ptbl)
        assert index.active_liquidity_at(50) == 1500
        assert index.total_liquidity_net() == 0

    def test_from_frame_missing_columns(self):
        with pytest.raises(ValueError):
            TickLiquidityIndex.from_frame(pd.DataFrame({"tick_lower": [0]}))


class TestNextTick:
    """Tests for TickLiquidityIndex.next_tick."""

    def test_up_is_strictly_above(self, index):
        assert index.next_tick(0, price_up=True).index == 100
        assert index.next_tick(-150, price_up=True).index == -100

    def test_down_is_strictly_below(self, index):
        assert index.next_tick(0, price_up=False).index == -100
        assert index.next_tick(1, price_up=False).index == 0

    def test_exhausted(self, index):
        assert index.next_tick(300, price_up=True) is None
        assert index.next_tick(-300, price_up=False) is None

    def test_empty_index(self):
        assert TickLiquidityIndex().next_tick(0, price_up=True) is None


class TestSnapshots:
    """Tests for copies and read-only snapshots."""

    def test_copy_is_independent(self, index):
        other = index.copy()
        other.add_position(Position(-50, 50, 10))
        assert index.active_liquidity_at(0) == 1500
        assert other.active_liquidity_at(0) == 1510

    def test_to_frame(self, index):
        frame = index.to_frame()
        assert list(frame.columns) == ["tick", "liquidity_net", "liquidity_gross", "active_liquidity"]
        assert frame["tick"].is_monotonic_increasing
        assert frame["active_liquidity"].iloc[-1] == 0

    def test_liquidity_profile(self, index):
        profile = index.liquidity_profile(0.97, 1.04, points=8)
        assert len(profile) == 8
        # around 1.01 the first two positions overlap
        assert profile["liquidity"].max() == 1500
        assert (profile["liquidity"] >= 0).all()
