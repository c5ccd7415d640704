"""
Tests for fee accounting.
"""

import pandas as pd
import pytest

from clamm import (
    ClammError,
    DivisionByZeroError,
    Pool,
    Position,
    calc_fees_from_trades,
    distribute_swap_fees,
    fees_earned,
)


class TestFeesEarned:
    """Tests for fees_earned function."""

    def test_pro_rata_share(self):
        assert fees_earned(1000, 1_000_000, 10_000, 0.003) == pytest.approx(300)

    def test_whole_pool(self):
        assert fees_earned(500, 2000, 500, 0.01) == pytest.approx(20)

    def test_zero_total_liquidity(self):
        with pytest.raises(DivisionByZeroError):
            fees_earned(1000, 1_000_000, 0)

    def test_error_hierarchy(self):
        assert issubclass(DivisionByZeroError, ZeroDivisionError)
        assert issubclass(DivisionByZeroError, ClammError)
        assert issubclass(ClammError, ValueError)


class TestDistributeSwapFees:
    """Tests for distribute_swap_fees function."""

    def test_fees_follow_active_range(self):
        positions = [
            Position.from_prices(1950, 2050, 100000),
            Position.from_prices(2050, 2150, 50000),
        ]
        pool = Pool.from_positions(2000, positions)
        result = pool.swap(80000, zero_for_one=False)

        fees = distribute_swap_fees(positions, result)

        assert list(fees.columns) == ["tick_lower", "tick_upper", "liquidity", "fee"]
        assert fees["fee"].iloc[0] == pytest.approx(float(result.steps[0].fee_amount))
        assert fees["fee"].iloc[1] == pytest.approx(float(result.steps[1].fee_amount))
        assert fees["fee"].sum() == pytest.approx(float(result.fees_collected))

    def test_overlapping_positions_split(self):
        positions = [
            Position.from_prices(1900, 2100, 30000),
            Position.from_prices(1900, 2100, 10000),
            Position.from_prices(2500, 2600, 10000),
        ]
        pool = Pool.from_positions(2000, positions)
        result = pool.swap(1, zero_for_one=True)

        fees = distribute_swap_fees(positions, result)

        assert fees["fee"].iloc[0] == pytest.approx(3 * fees["fee"].iloc[1])
        assert fees["fee"].iloc[2] == 0
        assert fees["fee"].sum() == pytest.approx(0.003)


class TestCalcFeesFromTrades:
    """Tests for calc_fees_from_trades function."""

    @pytest.fixture
    def trades(self):
        return pd.DataFrame({
            "tick": [256450, 256460, 256470, 256520],
            "amount0": [0.1, -0.05, 0.2, 5.0],
            "amount1": [-1.5, 0.8, -2.0, 5.0],
            "liquidity": [1000000000000000] * 4,
        })

    def test_basic_fee_calculation(self, trades):
        result = calc_fees_from_trades(
            position_l="1000000000000000",
            tick_lower=256400,
            tick_upper=256520,
            trades=trades,
            fee=0.003,
        )
        # half the liquidity, only tokens sold to the pool, upper tick excluded
        assert result["amount0_fees"] == pytest.approx(0.3 * 0.5 * 0.003)
        assert result["amount1_fees"] == pytest.approx(0.8 * 0.5 * 0.003)

    def test_no_trades_in_range(self, trades):
        result = calc_fees_from_trades(1000, 0, 100, trades)
        assert result == {"amount0_fees": 0.0, "amount1_fees": 0.0}

    def test_missing_columns(self):
        trades = pd.DataFrame({"tick": [1], "amount0_adjusted": [1.0]})
        with pytest.raises(ValueError):
            calc_fees_from_trades(1000, 0, 100, trades)
