"""
Swap calculation functions.

compute_swap_step prices a swap inside one liquidity region. simulate_swap
walks a swap across initialized ticks, adjusting active liquidity at every
crossing, and returns the full trace together with the next pool state.
"""

import enum
import logging
from dataclasses import dataclass
from fractions import Fraction
import math
from typing import Any, Dict, Tuple, Union

import pandas as pd

from .constants import Q96
from .exceptions import NonPositiveAmountError, NonPositiveLiquidityError
from .liquidity import get_amount0_delta, get_amount1_delta
from .price import price_to_sqrtpx96, sqrtpx96_to_exact_price
from .tick import price_to_tick, sqrt_price_at_tick, tick_at_sqrt_price
from .tick_index import Tick, TickLiquidityIndex
from .utils import Number, round_up, to_fraction, validate_fee

logger = logging.getLogger(__name__)


class SwapStatus(str, enum.Enum):
    """States of the swap loop. Results end EXHAUSTED or STARVED."""
    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    STARVED = "starved"
    UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class PoolState:
    """
    Price and active liquidity of a pool.

    liquidity always equals index.active_liquidity_at(current_tick) for the
    tick index the state belongs to, and sqrt_price_x96 lies in
    [sqrt_price_at_tick(current_tick), sqrt_price_at_tick(current_tick + 1)].
    It reaches the upper end only after a falling swap stops exactly on a
    crossed tick.
    """
    current_tick: int
    sqrt_price_x96: int
    liquidity: Fraction

    @classmethod
    def from_price(cls, price: Number, index: TickLiquidityIndex) -> "PoolState":
        sqrt_price_x96 = price_to_sqrtpx96(price)
        tick = price_to_tick(price)
        return cls(tick, sqrt_price_x96, index.active_liquidity_at(tick))

    @classmethod
    def from_tick(cls, tick: int, index: TickLiquidityIndex) -> "PoolState":
        return cls(tick, sqrt_price_at_tick(tick), index.active_liquidity_at(tick))

    @property
    def price(self) -> Fraction:
        return sqrtpx96_to_exact_price(self.sqrt_price_x96)


@dataclass(frozen=True)
class SwapStepResult:
    """One iteration of the swap loop."""
    amount_in: Fraction
    amount_out: Fraction
    sqrt_price_after: int
    crossed_tick: bool
    tick_crossed: Union[int, None]
    sqrt_price_before: int
    tick_before: int
    tick_after: int
    liquidity: Fraction
    fee_amount: Fraction

    @property
    def price_after(self) -> Fraction:
        return sqrtpx96_to_exact_price(self.sqrt_price_after)


@dataclass(frozen=True)
class SwapResult:
    """Aggregate of a simulated swap."""
    amount_in: Fraction
    amount_out: Fraction
    fees_collected: Fraction
    initial_price: Fraction
    final_price: Fraction
    price_impact: Fraction
    steps: Tuple[SwapStepResult, ...]
    status: SwapStatus
    amount_remaining: Fraction
    zero_for_one: bool

    @property
    def execution_price(self) -> Union[Fraction, None]:
        """Average Token 1 / Token 0 price paid, fees included. None if nothing traded."""
        if self.amount_in == 0 or self.amount_out == 0:
            return None
        if self.zero_for_one:
            return self.amount_out / self.amount_in
        return self.amount_in / self.amount_out

    @property
    def crossed_ticks(self) -> Tuple[int, ...]:
        return tuple(s.tick_crossed for s in self.steps if s.crossed_tick)

    def steps_frame(self) -> pd.DataFrame:
        """The step trace as a table, one row per step."""
        return pd.DataFrame([
            {
                "amount_in": float(s.amount_in),
                "amount_out": float(s.amount_out),
                "fee_amount": float(s.fee_amount),
                "liquidity": float(s.liquidity),
                "tick_before": s.tick_before,
                "tick_after": s.tick_after,
                "price_after": float(s.price_after),
                "crossed_tick": s.crossed_tick,
                "tick_crossed": s.tick_crossed,
            }
            for s in self.steps
        ], columns=[
            "amount_in", "amount_out", "fee_amount", "liquidity", "tick_before",
            "tick_after", "price_after", "crossed_tick", "tick_crossed",
        ])

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "amount_in": float(self.amount_in),
            "amount_out": float(self.amount_out),
            "amount_remaining": float(self.amount_remaining),
            "fees_collected": float(self.fees_collected),
            "initial_price": float(self.initial_price),
            "final_price": float(self.final_price),
            "price_impact": float(self.price_impact),
            "ticks_crossed": len(self.crossed_ticks),
            "steps": len(self.steps),
        }


def _amount_out(sqrt_before: int, sqrt_after: int, liquidity: Fraction, zero_for_one: bool) -> Fraction:
    # token1 leaves the pool when price falls, token0 when it rises
    if zero_for_one:
        return get_amount1_delta(sqrt_after, sqrt_before, liquidity)
    return get_amount0_delta(sqrt_before, sqrt_after, liquidity)


def _cross_tick(tick: Tick, liquidity: Fraction, zero_for_one: bool) -> Tuple[Fraction, int]:
    # returns (liquidity, current_tick) once the price sits on tick.index
    if zero_for_one:
        liquidity, current_tick = liquidity - tick.liquidity_net, tick.index - 1
    else:
        liquidity, current_tick = liquidity + tick.liquidity_net, tick.index
    logger.debug("Crossed tick %s, active liquidity now %s", tick.index, float(liquidity))
    return liquidity, current_tick


def compute_swap_step(
    amount_in: Number,
    sqrt_price_x96: Union[int, str],
    liquidity: Number,
    fee_rate: Number = 0.003,
    zero_for_one: bool = True
) -> Tuple[Fraction, int]:
    """
    Calculate the output of a swap within a single liquidity region.

    The fee is taken from the input first: net = amount_in * (1 - fee_rate).
    Selling token 0 lowers the price, 1/sqrt_after = 1/sqrt + net/L, and
    pays out L * (sqrt - sqrt_after) of token 1. Selling token 1 raises it,
    sqrt_after = sqrt + net/L, and pays out L * (1/sqrt - 1/sqrt_after) of
    token 0.

    The new sqrt price is rounded toward the starting price and the output
    is rounded down, so the pool never pays out more than the exact amount.

    Args:
        amount_in: Amount of the input token, fee included.
        sqrt_price_x96: Current price in sqrtPriceX96 format.
        liquidity: Active liquidity of the region.
        fee_rate: Pool fee, e.g. 0.003 for 0.3%.
        zero_for_one: True to sell token 0 for token 1, False for the reverse.

    Returns:
        (amount_out, sqrt_price_after_x96)

    Note:
        This assumes the whole input is consumed without reaching a tick
        boundary. simulate_swap handles crossings.
    """
    amount = to_fraction(amount_in)
    liquidity = to_fraction(liquidity)
    fee = validate_fee(fee_rate)
    sqrt_price_x96 = int(sqrt_price_x96)

    if liquidity <= 0:
        raise NonPositiveLiquidityError(f"Liquidity must be positive, got {liquidity}")
    if amount <= 0:
        raise NonPositiveAmountError(f"Swap amount must be positive, got {amount_in}")

    amount_net = amount * (1 - fee)

    if zero_for_one:
        exact = liquidity * sqrt_price_x96 * Q96 / (liquidity * Q96 + amount_net * sqrt_price_x96)
        sqrt_price_after = math.ceil(exact)
    else:
        exact = sqrt_price_x96 + amount_net * Q96 / liquidity
        sqrt_price_after = math.floor(exact)

    return _amount_out(sqrt_price_x96, sqrt_price_after, liquidity, zero_for_one), sqrt_price_after


def size_price_change_in_tick(
    l: Number,
    sqrtpx96: Union[int, str],
    sqrtpx96_target: Union[int, str],
    zero_for_one: bool = True,
    fee: Number = 0.003
) -> Fraction:
    """
    Calculate trade size required to move price to target within a region.

    Exact inverse of compute_swap_step: the fee-inclusive input that moves
    the price from sqrtpx96 to sqrtpx96_target, rounded up.

    Args:
        l: Active liquidity in the region.
        sqrtpx96: Current price in sqrtPriceX96 format.
        sqrtpx96_target: Target price in sqrtPriceX96 format.
        zero_for_one: Sell token 0 (price falls) or token 1 (price rises).
        fee: The pool fee, default 0.3% (0.003).

    Returns:
        Amount of the input token the trader needs to add to the pool.

    Raises:
        ValueError: If the target lies on the wrong side of the current price.
    """
    liquidity = to_fraction(l)
    fee = validate_fee(fee)
    p = int(sqrtpx96)
    p_target = int(sqrtpx96_target)

    if zero_for_one:
        if p_target > p:
            raise ValueError("Selling token 0 cannot raise the price")
        amount_net = get_amount0_delta(p_target, p, liquidity, round_up_result=True)
    else:
        if p_target < p:
            raise ValueError("Selling token 1 cannot lower the price")
        amount_net = get_amount1_delta(p, p_target, liquidity, round_up_result=True)

    return round_up(amount_net / (1 - fee))


def calculate_price_impact(
    amount_in: Number,
    amount_out: Number,
    spot_price: Number,
    zero_for_one: bool = True
) -> float:
    """
    Price impact of a fill in percent, from its execution price.

    Args:
        amount_in: Amount given to the pool.
        amount_out: Amount received from the pool.
        spot_price: Token 1 / Token 0 price before the swap.
        zero_for_one: Direction of the swap.

    Returns:
        abs(execution_price - spot_price) / spot_price * 100
    """
    amount_in = to_fraction(amount_in)
    amount_out = to_fraction(amount_out)
    spot = to_fraction(spot_price)
    if amount_in <= 0 or amount_out <= 0:
        raise NonPositiveAmountError("Both amounts must be positive to price a fill")

    execution_price = amount_out / amount_in if zero_for_one else amount_in / amount_out
    return float(abs((execution_price - spot) / spot) * 100)


def simulate_swap(
    state: PoolState,
    index: TickLiquidityIndex,
    amount_in: Number,
    zero_for_one: bool = True,
    fee_rate: Number = 0.003
) -> Tuple[SwapResult, PoolState]:
    """
    Execute a swap that may cross tick boundaries, recalculating liquidity as needed.

    Neither ``state`` nor ``index`` is modified; the state after the swap is
    returned next to the result.

    Each iteration reads the active liquidity and finds the next initialized
    tick in the swap direction:

    - price already on the next tick: cross it without recording a step
    - no liquidity: stop STARVED with whatever was filled so far
    - no tick left: one step with all remaining input, then EXHAUSTED
    - input short of the tick boundary: one step with all remaining input,
      then EXHAUSTED
    - otherwise: fill exactly up to the boundary, cross the tick and apply
      its liquidity_net, and continue

    Args:
        state: Pool price and active liquidity before the swap.
        index: Initialized ticks of the pool.
        amount_in: Amount of the input token, fee included.
        zero_for_one: True to sell token 0 for token 1, False for the reverse.
        fee_rate: Pool fee, e.g. 0.003.

    Returns:
        (SwapResult, PoolState after the swap)

    Raises:
        NonPositiveAmountError: If amount_in is negative.
    """
    amount = to_fraction(amount_in)
    fee = validate_fee(fee_rate)
    if amount < 0:
        raise NonPositiveAmountError(f"Swap amount must not be negative, got {amount_in}")

    initial_price = state.price
    zero = Fraction(0)

    if amount == 0:
        result = SwapResult(
            amount_in=zero,
            amount_out=zero,
            fees_collected=zero,
            initial_price=initial_price,
            final_price=initial_price,
            price_impact=zero,
            steps=(),
            status=SwapStatus.EXHAUSTED,
            amount_remaining=zero,
            zero_for_one=zero_for_one,
        )
        return result, state

    tick = state.current_tick
    sqrt_price = state.sqrt_price_x96
    liquidity = state.liquidity

    remaining = amount
    total_out = zero
    total_fees = zero
    steps = []
    status = SwapStatus.ACTIVE

    while status is SwapStatus.ACTIVE:
        if remaining <= 0:
            status = SwapStatus.EXHAUSTED
            break

        # Falling price must cross a tick sitting at the current tick itself
        if zero_for_one:
            next_tick = index.next_tick(tick + 1, price_up=False)
        else:
            next_tick = index.next_tick(tick, price_up=True)

        if next_tick is not None and sqrt_price == sqrt_price_at_tick(next_tick.index):
            # already on the boundary, crossing it takes no input
            liquidity, tick = _cross_tick(next_tick, liquidity, zero_for_one)
            continue

        if liquidity <= 0:
            status = SwapStatus.STARVED
            logger.info(
                "No active liquidity at tick %s, swap stopped with %s of %s unfilled",
                tick, float(remaining), float(amount)
            )
            break

        tick_before = tick
        sqrt_before = sqrt_price
        liquidity_used = liquidity
        crossed = False

        if next_tick is None:
            status = SwapStatus.UNBOUNDED
            logger.debug("No initialized tick beyond %s, filling the rest in range", tick)
            consumed = remaining
            amount_out, sqrt_price = compute_swap_step(consumed, sqrt_price, liquidity, fee, zero_for_one)
            tick = tick_at_sqrt_price(sqrt_price)
        else:
            target = sqrt_price_at_tick(next_tick.index)
            boundary = size_price_change_in_tick(liquidity, sqrt_price, target, zero_for_one, fee)

            if boundary > remaining:
                consumed = remaining
                amount_out, sqrt_after = compute_swap_step(consumed, sqrt_price, liquidity, fee, zero_for_one)
                # rounding can still carry the last bit of input onto the boundary
                crossed = sqrt_after <= target if zero_for_one else sqrt_after >= target
                if not crossed:
                    sqrt_price = sqrt_after
                    tick = tick_at_sqrt_price(sqrt_price)
            else:
                consumed = boundary
                crossed = True

            if crossed:
                amount_out = _amount_out(sqrt_price, target, liquidity, zero_for_one)
                sqrt_price = target
                liquidity, tick = _cross_tick(next_tick, liquidity, zero_for_one)

        fee_amount = consumed * fee
        remaining -= consumed
        total_out += amount_out
        total_fees += fee_amount

        steps.append(SwapStepResult(
            amount_in=consumed,
            amount_out=amount_out,
            sqrt_price_after=sqrt_price,
            crossed_tick=crossed,
            tick_crossed=next_tick.index if crossed else None,
            sqrt_price_before=sqrt_before,
            tick_before=tick_before,
            tick_after=tick,
            liquidity=liquidity_used,
            fee_amount=fee_amount,
        ))
        logger.debug(
            "Step %d: in=%s out=%s tick %s -> %s",
            len(steps), float(consumed), float(amount_out), tick_before, tick
        )

        if not crossed:
            status = SwapStatus.EXHAUSTED

    final_state = PoolState(tick, sqrt_price, liquidity)
    final_price = final_state.price

    result = SwapResult(
        amount_in=amount - remaining,
        amount_out=total_out,
        fees_collected=total_fees,
        initial_price=initial_price,
        final_price=final_price,
        price_impact=(initial_price - final_price) / initial_price,
        steps=tuple(steps),
        status=status,
        amount_remaining=remaining,
        zero_for_one=zero_for_one,
    )
    return result, final_state
