"""Hourly EV charging demand synthesis.

Expands a compact charging behaviour (24 weekday hours, 24 weekend hours and
12 monthly totals) into an 8760-hour demand profile, and builds the constant
charger capacity profile of a hub.

Weekend detection uses ``floor(hour / 24) % 7 in (5, 6)``: day 0 of the year
is treated as the first weekday regardless of the real calendar.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from engine.timebase import (
    DAYS_IN_MONTH,
    HOURS_PER_DAY,
    HOURS_PER_YEAR,
    month_hour_slices,
)

WEEKEND_DAY_INDICES: tuple[int, ...] = (5, 6)


def is_weekend(hour_index: int) -> bool:
    """Whether an absolute hour-of-year index falls on a weekend day."""
    return (hour_index // HOURS_PER_DAY) % 7 in WEEKEND_DAY_INDICES


def _weekend_mask() -> NDArray[np.bool_]:
    day_of_week = (np.arange(HOURS_PER_YEAR) // HOURS_PER_DAY) % 7
    return np.isin(day_of_week, WEEKEND_DAY_INDICES)


def _as_vector(values: ArrayLike, length: int, name: str) -> NDArray[np.float64]:
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape != (length,):
        raise ValueError(f"{name} must have shape ({length},), got {arr.shape}")
    return arr


def zero_profile() -> NDArray[np.float64]:
    """All-zero 8760-hour profile."""
    return np.zeros(HOURS_PER_YEAR, dtype=np.float64)


def base_week_profile(
    weekday_hourly: ArrayLike,
    weekend_hourly: ArrayLike,
) -> NDArray[np.float64]:
    """Unscaled 8760-hour sequence of weekday/weekend hourly values."""
    weekday = _as_vector(weekday_hourly, HOURS_PER_DAY, "weekday_hourly")
    weekend = _as_vector(weekend_hourly, HOURS_PER_DAY, "weekend_hourly")

    hour_of_day = np.arange(HOURS_PER_YEAR) % HOURS_PER_DAY
    return np.where(_weekend_mask(), weekend[hour_of_day], weekday[hour_of_day])


def synthesize_demand_profile(
    weekday_hourly: ArrayLike,
    weekend_hourly: ArrayLike,
    monthly_totals: ArrayLike,
) -> NDArray[np.float64]:
    """Build an 8760-hour demand profile from a charging behaviour.

    Each month's base sequence is scaled by ``monthly_totals[m] / base_sum``
    so that the month sums exactly to its target.  A month whose base sum is
    zero stays all zero.

    Raises
    ------
    ValueError
        If the hourly arrays do not have 24 values or the monthly array
        does not have 12.
    """
    base = base_week_profile(weekday_hourly, weekend_hourly)
    monthly = _as_vector(monthly_totals, len(DAYS_IN_MONTH), "monthly_totals")

    profile = np.zeros(HOURS_PER_YEAR, dtype=np.float64)
    for month, hours in enumerate(month_hour_slices()):
        segment = base[hours]
        base_sum = segment.sum()
        if base_sum == 0:
            continue
        profile[hours] = segment * (monthly[month] / base_sum)
    return profile


def capacity_profile(charger_power_kw: float, number_of_chargers: int) -> NDArray[np.float64]:
    """Constant hourly charging capacity of a hub (kW, 8760 values)."""
    capacity = (charger_power_kw or 0.0) * (number_of_chargers or 0)
    return np.full(HOURS_PER_YEAR, capacity, dtype=np.float64)
