"""
Errors raised by the clamm math.

Everything derives from ValueError: bad inputs are rejected up front and
never retried internally.
"""


class ClammError(ValueError):
    """Base class for invalid inputs to the AMM math."""


class InvalidRangeError(ClammError):
    """Lower bound is not strictly below the upper bound."""


class InvalidPriceError(ClammError):
    """Price is zero or negative."""


class TickOutOfRangeError(ClammError):
    """Tick lies outside [MIN_TICK, MAX_TICK]."""


class NonPositiveLiquidityError(ClammError):
    """A swap step was asked to run against no liquidity."""


class NonPositiveAmountError(ClammError):
    """A swap step was asked to run with no input."""


class InvalidFeeTierError(ClammError):
    """Fee rate is outside [0, 1) or not a supported pool tier."""


class DivisionByZeroError(ClammError, ZeroDivisionError):
    """Total pool liquidity is zero in a fee share computation."""
