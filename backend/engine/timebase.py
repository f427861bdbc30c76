"""Hour-of-year calendar helpers shared by the forecasting engine.

All series are hourly and use a non-leap 365-day year (8760 hours).  The
rollup helpers accept arrays of any length: missing hours contribute zero and
surplus hours beyond the calendar are ignored.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

HOURS_PER_DAY: int = 24
DAYS_PER_YEAR: int = 365
HOURS_PER_YEAR: int = HOURS_PER_DAY * DAYS_PER_YEAR

# Days in each month for a non-leap year.
DAYS_IN_MONTH: tuple[int, ...] = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# Cumulative hours at the start of each month (non-leap year).
MONTH_START_HOURS = np.concatenate(
    ([0], np.cumsum(np.array(DAYS_IN_MONTH, dtype=np.int64) * HOURS_PER_DAY)[:-1])
)


def month_hour_slices() -> list[slice]:
    """Return one ``slice`` of hour-of-year indices per calendar month."""
    slices = []
    start = 0
    for days in DAYS_IN_MONTH:
        end = start + days * HOURS_PER_DAY
        slices.append(slice(start, end))
        start = end
    return slices


def monthly_totals(hourly: ArrayLike) -> NDArray[np.float64]:
    """Sum an hourly series per calendar month (12 values)."""
    arr = np.asarray(hourly, dtype=np.float64)
    return np.array([arr[s].sum() for s in month_hour_slices()], dtype=np.float64)


def hourly_averages(hourly: ArrayLike) -> NDArray[np.float64]:
    """Mean of all values sharing the same hour of day (24 values).

    Every value of the series contributes, including a trailing partial day.
    An hour with no samples averages to zero.
    """
    arr = np.asarray(hourly, dtype=np.float64)
    averages = np.zeros(HOURS_PER_DAY, dtype=np.float64)
    for hour in range(HOURS_PER_DAY):
        samples = arr[hour::HOURS_PER_DAY]
        if samples.size:
            averages[hour] = samples.mean()
    return averages


def daily_totals(hourly: ArrayLike, days: int = DAYS_PER_YEAR) -> NDArray[np.float64]:
    """Sum contiguous 24-hour blocks of an hourly series (``days`` values)."""
    arr = np.asarray(hourly, dtype=np.float64)[: days * HOURS_PER_DAY]
    padded = np.zeros(days * HOURS_PER_DAY, dtype=np.float64)
    padded[: arr.size] = arr
    return padded.reshape(days, HOURS_PER_DAY).sum(axis=1)


def monthly_totals_from_daily(daily: ArrayLike) -> NDArray[np.float64]:
    """Sum daily totals per calendar month (12 values)."""
    arr = np.asarray(daily, dtype=np.float64)
    totals = np.zeros(len(DAYS_IN_MONTH), dtype=np.float64)
    start = 0
    for month, days in enumerate(DAYS_IN_MONTH):
        totals[month] = arr[start:start + days].sum()
        start += days
    return totals


def average_day(hourly: ArrayLike) -> NDArray[np.float64] | None:
    """Per-hour-of-day mean over the whole days of an hourly series.

    The series is truncated to the largest whole number of days.  Returns
    ``None`` when the series does not cover a single full day.
    """
    arr = np.asarray(hourly, dtype=np.float64)
    days = arr.size // HOURS_PER_DAY
    if days == 0:
        return None
    return arr[: days * HOURS_PER_DAY].reshape(days, HOURS_PER_DAY).mean(axis=0)
