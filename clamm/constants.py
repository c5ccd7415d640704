"""
Constants shared by the tick, liquidity and swap math.
"""

from typing import Dict

# Q64.96 fixed point used for sqrt prices
Q96: int = 2 ** 96
Q192: int = 2 ** 192

# price = TICK_BASE ** tick
TICK_BASE: float = 1.0001

MIN_TICK: int = -887272
MAX_TICK: int = 887272

# Fee tiers as fractions of the input amount
FEE_TIERS: Dict[float, str] = {
    0.0001: "0.01%",
    0.0005: "0.05%",
    0.003: "0.30%",
    0.01: "1.00%",
}

TICK_SPACINGS: Dict[float, int] = {
    0.0001: 1,
    0.0005: 10,
    0.003: 60,
    0.01: 200,
}

# Token amounts are quantized to this many decimal places
AMOUNT_DECIMALS: int = 18
