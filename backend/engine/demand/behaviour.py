"""Charging behaviour defaults, templates and calibration.

A charging profile describes its fleet by vehicle count, average recharge
percentage and average battery size.  From the resulting annual energy the
behaviour arrays (weekday hourly, weekend hourly, monthly) are seeded either
from a flat distribution or from one of the built-in charging templates.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from engine.timebase import DAYS_PER_YEAR, HOURS_PER_DAY

WEEKDAY_DAYS: int = 5
WEEKEND_DAYS: int = 2
MONTHS: int = 12

DEFAULT_TEMPLATE = "default"


# ======================================================================
# Built-in charging templates (relative weights, any scale)
# ======================================================================

_HOME_OVERNIGHT = {
    "weekday": [
        0.80, 0.70, 0.55, 0.40, 0.25, 0.15,  # 00-05
        0.10, 0.05, 0.05, 0.05, 0.05, 0.05,  # 06-11
        0.05, 0.05, 0.05, 0.10, 0.20, 0.45,  # 12-17
        0.75, 0.95, 1.00, 1.00, 0.95, 0.90,  # 18-23
    ],
    "weekend": [
        0.85, 0.75, 0.60, 0.45, 0.30, 0.20,  # 00-05
        0.15, 0.10, 0.10, 0.15, 0.20, 0.25,  # 06-11
        0.30, 0.30, 0.30, 0.30, 0.35, 0.45,  # 12-17
        0.60, 0.75, 0.85, 0.90, 0.90, 0.90,  # 18-23
    ],
    "monthly": [1.10, 1.05, 1.00, 0.95, 0.95, 0.95, 0.90, 0.85, 0.95, 1.00, 1.05, 1.10],
}

_WORKPLACE = {
    "weekday": [
        0.00, 0.00, 0.00, 0.00, 0.00, 0.05,  # 00-05
        0.20, 0.70, 1.00, 0.95, 0.80, 0.60,  # 06-11
        0.55, 0.60, 0.50, 0.35, 0.20, 0.10,  # 12-17
        0.05, 0.02, 0.00, 0.00, 0.00, 0.00,  # 18-23
    ],
    "weekend": [
        0.00, 0.00, 0.00, 0.00, 0.00, 0.00,  # 00-05
        0.02, 0.05, 0.10, 0.12, 0.12, 0.10,  # 06-11
        0.10, 0.08, 0.06, 0.04, 0.02, 0.01,  # 12-17
        0.00, 0.00, 0.00, 0.00, 0.00, 0.00,  # 18-23
    ],
    "monthly": [1.00, 1.00, 1.05, 1.00, 1.05, 1.00, 0.80, 0.60, 1.00, 1.05, 1.05, 0.90],
}

_PUBLIC_DESTINATION = {
    "weekday": [
        0.05, 0.03, 0.02, 0.02, 0.02, 0.05,  # 00-05
        0.15, 0.30, 0.45, 0.60, 0.75, 0.90,  # 06-11
        1.00, 0.95, 0.90, 0.90, 0.95, 0.90,  # 12-17
        0.80, 0.65, 0.45, 0.30, 0.15, 0.08,  # 18-23
    ],
    "weekend": [
        0.08, 0.05, 0.03, 0.02, 0.02, 0.03,  # 00-05
        0.08, 0.20, 0.45, 0.75, 0.95, 1.00,  # 06-11
        1.00, 1.00, 0.95, 0.90, 0.85, 0.80,  # 12-17
        0.70, 0.55, 0.40, 0.25, 0.15, 0.10,  # 18-23
    ],
    "monthly": [0.85, 0.85, 0.95, 1.00, 1.05, 1.10, 1.20, 1.25, 1.05, 0.95, 0.85, 0.90],
}

_FLEET_DEPOT = {
    "weekday": [
        1.00, 1.00, 0.95, 0.85, 0.60, 0.30,  # 00-05
        0.05, 0.00, 0.00, 0.00, 0.00, 0.05,  # 06-11
        0.15, 0.15, 0.05, 0.00, 0.00, 0.10,  # 12-17
        0.35, 0.60, 0.80, 0.95, 1.00, 1.00,  # 18-23
    ],
    "weekend": [
        0.60, 0.55, 0.50, 0.40, 0.30, 0.15,  # 00-05
        0.05, 0.05, 0.05, 0.05, 0.05, 0.05,  # 06-11
        0.05, 0.05, 0.05, 0.05, 0.05, 0.05,  # 12-17
        0.10, 0.20, 0.35, 0.45, 0.55, 0.60,  # 18-23
    ],
    "monthly": [1.00] * MONTHS,
}

CHARGING_TEMPLATES: dict[str, dict[str, list[float]]] = {
    "home_overnight": _HOME_OVERNIGHT,
    "workplace": _WORKPLACE,
    "public_destination": _PUBLIC_DESTINATION,
    "fleet_depot": _FLEET_DEPOT,
}


# ======================================================================
# Annual energy and weekday/weekend allocation
# ======================================================================


def total_annual_kwh(
    initial_number_of_vehicles: int | None,
    average_charging_percentage: float | None,
    average_battery_size: float | None,
) -> float:
    """Annual charging energy: vehicles x recharge% x battery size (kWh)."""
    vehicles = initial_number_of_vehicles or 0
    recharge = (average_charging_percentage or 0.0) / 100.0
    battery = average_battery_size or 0.0
    return float(vehicles * recharge * battery)


@dataclass(frozen=True)
class WeekdayWeekendAllocation:
    """Average daily charging energy on weekdays and weekend days (kWh/day)."""

    average_weekday: float
    average_weekend: float
    total_weekday: float
    total_weekend: float


def weekday_weekend_allocation(
    total_annual_kwh: float,
    scale: float = 0.0,
) -> WeekdayWeekendAllocation:
    """Split annual energy between weekday and weekend days.

    ``scale`` is the percentage by which an average weekend day differs
    from an average weekday (0 = equal, -100 = no weekend charging).
    """
    if total_annual_kwh <= 0:
        return WeekdayWeekendAllocation(0.0, 0.0, 0.0, 0.0)

    weekend_factor = 1.0 + scale / 100.0
    weekday_days = DAYS_PER_YEAR * WEEKDAY_DAYS / 7
    weekend_days = DAYS_PER_YEAR * WEEKEND_DAYS / 7

    average_weekday = total_annual_kwh / (weekday_days + weekend_factor * weekend_days)
    average_weekend = average_weekday * weekend_factor
    return WeekdayWeekendAllocation(
        average_weekday=average_weekday,
        average_weekend=average_weekend,
        total_weekday=average_weekday * weekday_days,
        total_weekend=average_weekend * weekend_days,
    )


# ======================================================================
# Default behaviour arrays
# ======================================================================


@dataclass
class BehaviourArrays:
    weekday_hourly: NDArray[np.float64]
    weekend_hourly: NDArray[np.float64]
    monthly: NDArray[np.float64]


def _distribute(weights: ArrayLike, amount: float) -> NDArray[np.float64]:
    w = np.asarray(weights, dtype=np.float64)
    total = w.sum()
    if total <= 0:
        return np.zeros_like(w)
    return w / total * amount


def default_behaviour(
    total_annual_kwh: float,
    scale: float = 0.0,
    template: str = DEFAULT_TEMPLATE,
) -> BehaviourArrays:
    """Seed behaviour arrays for a given annual energy.

    The ``"default"`` template spreads each day's energy evenly over 24
    hours and the year evenly over 12 months.  Named templates distribute
    the same daily and annual amounts according to their weights.  An
    unknown template or a non-positive annual energy yields zeros.
    """
    zeros = BehaviourArrays(
        weekday_hourly=np.zeros(HOURS_PER_DAY),
        weekend_hourly=np.zeros(HOURS_PER_DAY),
        monthly=np.zeros(MONTHS),
    )
    if total_annual_kwh <= 0:
        return zeros

    allocation = weekday_weekend_allocation(total_annual_kwh, scale)
    if template == DEFAULT_TEMPLATE:
        return BehaviourArrays(
            weekday_hourly=np.full(HOURS_PER_DAY, allocation.average_weekday / HOURS_PER_DAY),
            weekend_hourly=np.full(HOURS_PER_DAY, allocation.average_weekend / HOURS_PER_DAY),
            monthly=np.full(MONTHS, total_annual_kwh / MONTHS),
        )

    shape = CHARGING_TEMPLATES.get(template)
    if shape is None:
        return zeros
    return BehaviourArrays(
        weekday_hourly=_distribute(shape["weekday"], allocation.average_weekday),
        weekend_hourly=_distribute(shape["weekend"], allocation.average_weekend),
        monthly=_distribute(shape["monthly"], total_annual_kwh),
    )


# ======================================================================
# Calibration
# ======================================================================


def _calibrate(values: ArrayLike, amount: float) -> NDArray[np.float64]:
    arr = np.asarray(values, dtype=np.float64)
    total = arr.sum()
    if total == 0:
        return arr.copy()
    return arr / total * amount


def calibrate_weekday(
    weekday_hourly: ArrayLike, total_annual_kwh: float, scale: float = 0.0
) -> NDArray[np.float64]:
    """Rescale weekday hours to sum to the average weekday energy."""
    if total_annual_kwh <= 0:
        return np.asarray(weekday_hourly, dtype=np.float64).copy()
    allocation = weekday_weekend_allocation(total_annual_kwh, scale)
    return _calibrate(weekday_hourly, allocation.average_weekday)


def calibrate_weekend(
    weekend_hourly: ArrayLike, total_annual_kwh: float, scale: float = 0.0
) -> NDArray[np.float64]:
    """Rescale weekend hours to sum to the average weekend-day energy."""
    if total_annual_kwh <= 0:
        return np.asarray(weekend_hourly, dtype=np.float64).copy()
    allocation = weekday_weekend_allocation(total_annual_kwh, scale)
    return _calibrate(weekend_hourly, allocation.average_weekend)


def calibrate_monthly(monthly: ArrayLike, total_annual_kwh: float) -> NDArray[np.float64]:
    """Rescale monthly totals to sum to the annual energy."""
    if total_annual_kwh <= 0:
        return np.asarray(monthly, dtype=np.float64).copy()
    return _calibrate(monthly, total_annual_kwh)
