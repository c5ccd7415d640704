"""
Tests for liquidity sizing and position balances.
"""

import math
from fractions import Fraction

import pandas as pd
import pytest

from clamm import (
    Q96,
    InvalidRangeError,
    Position,
    check_positions,
    get_amounts_for_liquidity,
    get_liquidity,
    get_liquidity_for_amounts,
    get_position_balance,
    match_tokens_to_range,
    price_to_sqrtpx96,
    price_to_tick,
    sqrt_price_at_tick,
    tick_to_price,
)

# Range [0.25, 4] around a price of 1: sqrt prices are exact powers of two
SQRT_LOWER = Q96 // 2
SQRT_PRICE = Q96
SQRT_UPPER = 2 * Q96


class TestGetLiquidityForAmounts:
    """Tests for get_liquidity_for_amounts function."""

    def test_in_range_takes_min(self):
        assert get_liquidity_for_amounts(SQRT_PRICE, SQRT_LOWER, SQRT_UPPER, 1, 1) == 2
        # token1 is the binding side here
        assert get_liquidity_for_amounts(SQRT_PRICE, SQRT_LOWER, SQRT_UPPER, 10, 1) == 2
        # token0 is the binding side here
        assert get_liquidity_for_amounts(SQRT_PRICE, SQRT_LOWER, SQRT_UPPER, 1, 10) == 2

    def test_below_range_uses_amount0_only(self):
        below = Q96 // 4
        assert get_liquidity_for_amounts(below, Q96, 2 * Q96, 3, 0) == 6
        assert get_liquidity_for_amounts(below, Q96, 2 * Q96, 3, 999) == 6

    def test_above_range_uses_amount1_only(self):
        above = 4 * Q96
        assert get_liquidity_for_amounts(above, Q96, 2 * Q96, 0, 5) == 5
        assert get_liquidity_for_amounts(above, Q96, 2 * Q96, 999, 5) == 5

    def test_inverted_bounds_are_normalized(self):
        normal = get_liquidity_for_amounts(SQRT_PRICE, SQRT_LOWER, SQRT_UPPER, 7, 3)
        inverted = get_liquidity_for_amounts(SQRT_PRICE, SQRT_UPPER, SQRT_LOWER, 7, 3)
        assert normal == inverted

    def test_empty_range(self):
        assert get_liquidity_for_amounts(SQRT_PRICE, SQRT_UPPER, SQRT_UPPER, 1, 1) == 0

    def test_result_on_decimal_grid(self):
        result = get_liquidity_for_amounts(price_to_sqrtpx96(2000), sqrt_price_at_tick(75000),
                                           sqrt_price_at_tick(77000), 1.5, 2500)
        assert isinstance(result, Fraction)
        assert (result * 10 ** 18).denominator == 1
        assert result > 0

    def test_small_position_keeps_fractional_liquidity(self):
        """Above the range, L = amount1 / (sqrt(upper) - sqrt(lower)), well below one unit."""
        lower, upper = price_to_tick(1900), price_to_tick(2100)
        result = get_liquidity_for_amounts(
            price_to_sqrtpx96(2200), sqrt_price_at_tick(lower), sqrt_price_at_tick(upper), 0, 2
        )
        expected = 2 / (math.sqrt(tick_to_price(upper)) - math.sqrt(tick_to_price(lower)))
        assert 0 < result < 1
        assert float(result) == pytest.approx(expected, rel=1e-9)


class TestGetAmountsForLiquidity:
    """Tests for get_amounts_for_liquidity function."""

    def test_in_range(self):
        amount0, amount1 = get_amounts_for_liquidity(SQRT_PRICE, SQRT_LOWER, SQRT_UPPER, 2)
        assert amount0 == 1
        assert amount1 == 1

    def test_below_range_is_all_token0(self):
        amount0, amount1 = get_amounts_for_liquidity(Q96 // 4, Q96, 2 * Q96, 6)
        assert amount0 == 3
        assert amount1 == 0

    def test_above_range_is_all_token1(self):
        amount0, amount1 = get_amounts_for_liquidity(4 * Q96, Q96, 2 * Q96, 5)
        assert amount0 == 0
        assert amount1 == 5

    @pytest.mark.parametrize("price", [1900.5, 1950, 2000, 2049.9, 2099])
    def test_sizing_never_overcommits(self, price):
        """Amounts backing the sized liquidity never exceed what was supplied."""
        sqrt_lower = sqrt_price_at_tick(price_to_tick(1900))
        sqrt_upper = sqrt_price_at_tick(price_to_tick(2100))
        sqrt_price = price_to_sqrtpx96(price)
        amount0, amount1 = Fraction("3.25"), Fraction("5000.5")

        liquidity = get_liquidity_for_amounts(sqrt_price, sqrt_lower, sqrt_upper, amount0, amount1)
        back0, back1 = get_amounts_for_liquidity(sqrt_price, sqrt_lower, sqrt_upper, liquidity)

        assert back0 <= amount0
        assert back1 <= amount1
        # one side is (almost) fully used
        assert back0 / amount0 > Fraction(999, 1000) or back1 / amount1 > Fraction(999, 1000)


class TestGetLiquidity:
    """Tests for the tick-level get_liquidity function."""

    @pytest.mark.parametrize("lower,upper", [(100, 100), (200, 100)])
    def test_invalid_range(self, lower, upper):
        with pytest.raises(InvalidRangeError):
            get_liquidity(1, 1, Q96, lower, upper)

    def test_matches_sqrt_level(self):
        sqrtpx96 = price_to_sqrtpx96(2000)
        expected = get_liquidity_for_amounts(
            sqrtpx96, sqrt_price_at_tick(75000), sqrt_price_at_tick(77000), 1, 2000
        )
        assert get_liquidity(1, 2000, sqrtpx96, 75000, 77000) == expected


class TestGetPositionBalance:
    """Tests for get_position_balance function."""

    def test_above_range_all_token1(self):
        result = get_position_balance(100000, price_to_sqrtpx96(2200), 75000, 76000)
        assert result["token0"] == 0
        assert result["token1"] > 0

    def test_below_range_all_token0(self):
        result = get_position_balance(100000, price_to_sqrtpx96(1000), 75000, 76000)
        assert result["token0"] > 0
        assert result["token1"] == 0

    def test_invalid_range(self):
        with pytest.raises(InvalidRangeError):
            get_position_balance(100000, Q96, 10, -10)


class TestMatchTokensToRange:
    """Tests for match_tokens_to_range function."""

    def test_match_token0_to_token1(self):
        result = match_tokens_to_range(
            x=1000, y=None, sqrtpx96=Q96, tick_lower=-13863, tick_upper=13863
        )
        assert result["amount_x"] == 1000
        # symmetric range around parity needs about the same of each
        assert abs(result["amount_y"] / 1000 - 1) < 0.001

        minted = get_liquidity(result["amount_x"], result["amount_y"], Q96, -13863, 13863)
        assert abs(minted - result["liquidity"]) <= 1

    def test_match_token1_to_token0(self):
        result = match_tokens_to_range(
            x=None, y=1000, sqrtpx96=Q96, tick_lower=-13863, tick_upper=13863
        )
        assert abs(result["amount_x"] / 1000 - 1) < 0.001

    def test_small_deposit_keeps_liquidity(self):
        result = match_tokens_to_range(
            x=None, y=0.001, sqrtpx96=Q96, tick_lower=-13863, tick_upper=13863
        )
        # sqrt(1.0001 ** -13863) is about 0.5, so L = 0.001 / (1 - 0.5)
        assert result["liquidity"] == pytest.approx(0.002, rel=1e-3)

    def test_out_of_range(self):
        above = match_tokens_to_range(x=5, y=None, sqrtpx96=Q96, tick_lower=100, tick_upper=200)
        assert above["amount_y"] == 0
        with pytest.raises(ValueError):
            match_tokens_to_range(x=None, y=5, sqrtpx96=Q96, tick_lower=100, tick_upper=200)

    def test_requires_exactly_one_amount(self):
        with pytest.raises(ValueError):
            match_tokens_to_range(x=None, y=None, sqrtpx96=Q96, tick_lower=-10, tick_upper=10)
        with pytest.raises(ValueError):
            match_tokens_to_range(x=1, y=1, sqrtpx96=Q96, tick_lower=-10, tick_upper=10)


class TestPosition:
    """Tests for the Position value type."""

    def test_invalid_range(self):
        with pytest.raises(InvalidRangeError):
            Position(10, 10, 1)
        with pytest.raises(InvalidRangeError):
            Position(10, -10, 1)

    def test_negative_liquidity(self):
        with pytest.raises(ValueError):
            Position(-10, 10, -5)

    def test_from_prices_snaps_to_spacing(self):
        position = Position.from_prices(1900, 2100, 100000, tick_spacing=60)
        assert position.lower_tick % 60 == 0
        assert position.upper_tick % 60 == 0
        assert position.lower_tick <= price_to_tick(1900)
        assert position.liquidity == 100000

    def test_contains_is_half_open(self):
        position = Position(-10, 10, 1)
        assert position.contains(-10)
        assert position.contains(9)
        assert not position.contains(10)

    def test_amounts(self):
        position = Position(-13863, 13863, 2000)
        amount0, amount1 = position.amounts(Q96)
        assert amount0 > 0 and amount1 > 0


class TestCheckPositions:
    """Tests for check_positions function."""

    def test_active_flag(self):
        ptbl = pd.DataFrame({
            "tick_lower": [-10, 0, -10, 5],
            "tick_upper": [10, 10, 0, 10],
            "liquidity": [1000000, 2000000, 3000000, 4000000],
        })
        result = check_positions(ptbl, p=1)

        assert "active" in result.columns
        assert "active" not in ptbl.columns
        assert result["active"].tolist() == [True, True, False, False]

    def test_missing_columns(self):
        with pytest.raises(ValueError):
            check_positions(pd.DataFrame({"liquidity": [1]}), p=1)
