"""Annual demand growth curves.

Growth curves are stored as 30 cumulative percentages relative to the first
year of operation; index 0 is the baseline and is always 0.
"""

from __future__ import annotations

import math
from typing import Sequence

GROWTH_YEARS: int = 30
DEFAULT_LINEAR_RATE: float = 2.5
S_CURVE_STEEPNESS: float = 0.3


def linear_growth(rate: float, years: int = GROWTH_YEARS) -> list[float]:
    """``index * rate`` percent."""
    return [0.0 if i == 0 else i * rate for i in range(years)]


def exponential_growth(rate: float, years: int = GROWTH_YEARS) -> list[float]:
    """``(1 + rate/100) ** index - 1``.

    The result is a growth *fraction*, not a percentage, and is stored
    as-is alongside the percentage-valued curves.
    """
    return [0.0 if i == 0 else (1 + rate / 100) ** i - 1 for i in range(years)]


def s_curve_growth(
    max_growth: float, midpoint: float, years: int = GROWTH_YEARS
) -> list[float]:
    """Logistic adoption curve ``L / (1 + exp(-k (year - x0)))`` with year = index + 1."""
    curve = []
    for i in range(years):
        if i == 0:
            curve.append(0.0)
            continue
        year = i + 1
        curve.append(max_growth / (1 + math.exp(-S_CURVE_STEEPNESS * (year - midpoint))))
    return curve


def default_growth() -> list[float]:
    return linear_growth(DEFAULT_LINEAR_RATE)


def growth_rate_for_year(rates: Sequence[float] | None, year: int) -> float:
    """Rate for a forecast year, clamped to the last stored entry."""
    if not rates:
        return 0.0
    return float(rates[min(year, len(rates) - 1)])


def growth_multiplier(rates: Sequence[float] | None, year: int) -> float:
    """Demand multiplier ``(1 + rate/100) ** year`` for a forecast year.

    ``rate`` is the stored cumulative percentage for that year, and it is
    compounded again by the year exponent.  With a linear 2.5% curve year 2
    therefore grows by ``1.05 ** 2`` rather than ``1.05``.
    """
    rate = growth_rate_for_year(rates, year)
    return (1 + rate / 100) ** year
