"""
Currency conversion helpers.

Prices arrive as fractional major units (USD dollars). They are converted
to integer minor units (cents) with a single rounding step at the end.
"""

import math

from ckpricing.config import USD_TO_SGD


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves toward positive infinity.

    Matches JavaScript's Math.round, which produced the prices already
    stored for existing products. Python's round() rounds halves to even.
    """
    floor = math.floor(value)
    return floor + 1 if value - floor >= 0.5 else floor


def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount to minor units, e.g. 12.99 -> 1299."""
    return round_half_up(amount * 100)


def usd_to_sgd_cents(amount_usd: float, rate: float = USD_TO_SGD) -> int:
    """
    Convert a USD dollar amount to SGD cents.

    Example: 12.99 USD at 1.3 -> round(12.99 * 1.3 * 100) = 1689
    """
    return round_half_up(amount_usd * rate * 100)
