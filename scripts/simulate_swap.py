"""
simulate_swap.py

Run a swap against a sample ETH/USDC pool and print the trace.

The pool starts at 2000 USDC/ETH with three LP positions:
- narrow: 1950-2050 (±2.5%), liquidity 100,000
- medium: 1900-2100 (±5%), liquidity 50,000
- wide:   1800-2200 (±10%), liquidity 25,000

Usage:
    python scripts/simulate_swap.py --amount 10
    python scripts/simulate_swap.py --amount 50000 --sell-token1 -v
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from clamm import FEE_TIERS, Pool, Position


INITIAL_PRICE = 2000

SAMPLE_POSITIONS = [
    (1950, 2050, 100000),
    (1900, 2100, 50000),
    (1800, 2200, 25000),
]


def build_pool(price: float, fee: float) -> Pool:
    positions = [Position.from_prices(lo, hi, liq) for lo, hi, liq in SAMPLE_POSITIONS]
    return Pool.from_positions(price, positions, fee=fee)


def print_liquidity(pool: Pool, title: str, width: int = 40):
    """Text histogram of active liquidity across the sample range."""
    profile = pool.index.liquidity_profile(1700, 2300, points=25)
    peak = profile["liquidity"].max()
    current = float(pool.price)

    print(f"\n=== {title} ===")
    for row in profile.itertuples():
        bar = "#" * int(round(row.liquidity / peak * width)) if peak > 0 else ""
        marker = " <" if abs(row.price - current) <= 12.5 else ""
        print(f"{row.price:8.1f} | {bar:<{width}} {row.liquidity:>10,.0f}{marker}")
    print(f"Current price: {current:,.2f}")


def main():
    parser = argparse.ArgumentParser(description="Simulate a swap on a sample pool.")
    parser.add_argument("--amount", type=float, default=10.0, help="input amount, fee included")
    parser.add_argument("--sell-token1", action="store_true", help="sell USDC for ETH instead")
    parser.add_argument("--fee", type=float, default=0.003, choices=sorted(FEE_TIERS))
    parser.add_argument("--price", type=float, default=INITIAL_PRICE)
    parser.add_argument("-v", "--verbose", action="store_true", help="log every swap step")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    pool = build_pool(args.price, args.fee)
    print(pool)
    print_liquidity(pool, "Liquidity before swap")

    zero_for_one = not args.sell_token1
    token_in, token_out = ("ETH", "USDC") if zero_for_one else ("USDC", "ETH")
    print(f"\nSwapping {args.amount:,} {token_in} for {token_out}...")

    result = pool.swap(args.amount, zero_for_one=zero_for_one)

    print("\n=== Summary ===")
    for key, value in result.summary().items():
        print(f"  {key}: {value:,.6f}" if isinstance(value, float) else f"  {key}: {value}")
    if result.execution_price is not None:
        print(f"  execution_price: {float(result.execution_price):,.4f} USDC/ETH")

    print("\n=== Steps ===")
    with pd.option_context("display.width", 160, "display.max_columns", None):
        print(result.steps_frame().to_string(index=False))

    print_liquidity(pool, "Liquidity after swap")


if __name__ == "__main__":
    main()
