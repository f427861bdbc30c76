"""
First-year energy flow totals and average-day battery profiles.

All functions take the first-year (row 0) hourly arrays of the forecast.
An absent array (``None``) stands for a stage that produced no output, for
example when the project has no battery, and contributes zero.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from engine.timebase import average_day


def _total(series: ArrayLike | None) -> float:
    if series is None:
        return 0.0
    return float(np.sum(np.asarray(series, dtype=np.float64)))


@dataclass
class EnergyFlows:
    """First-year energy moved between solar, battery, grid and chargers (kWh)."""

    solar_to_chargers: float = 0.0
    solar_to_battery: float = 0.0
    solar_to_grid: float = 0.0
    battery_to_chargers: float = 0.0
    grid_to_battery: float = 0.0
    grid_to_chargers: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def calculate_energy_flows(
    solar_consumed: ArrayLike | None = None,
    charge_from_solar: ArrayLike | None = None,
    grid_export: ArrayLike | None = None,
    discharge: ArrayLike | None = None,
    charge_from_grid: ArrayLike | None = None,
    grid_import: ArrayLike | None = None,
) -> EnergyFlows:
    """Sum first-year hourly arrays into the six named flows."""
    return EnergyFlows(
        solar_to_chargers=_total(solar_consumed),
        solar_to_battery=_total(charge_from_solar),
        solar_to_grid=_total(grid_export),
        battery_to_chargers=_total(discharge),
        grid_to_battery=_total(charge_from_grid),
        grid_to_chargers=_total(grid_import),
    )


def daily_average_battery_charging(
    charge_from_solar: ArrayLike,
    charge_from_grid: ArrayLike | None = None,
) -> NDArray[np.float64] | None:
    """Average-day battery charging, shown as negative values (24 points).

    ``charge_from_grid`` is zero-padded or truncated to the length of
    ``charge_from_solar``.  Returns ``None`` if there is not one whole day of
    data.
    """
    solar = np.asarray(charge_from_solar, dtype=np.float64)
    grid = np.zeros_like(solar)
    if charge_from_grid is not None:
        g = np.asarray(charge_from_grid, dtype=np.float64)[: solar.size]
        grid[: g.size] = g

    profile = average_day(solar + grid)
    if profile is None:
        return None
    return -profile


def daily_average_battery_discharging(discharge: ArrayLike) -> NDArray[np.float64] | None:
    """Average-day battery discharge (24 points, positive)."""
    return average_day(discharge)
