"""
Hourly battery charge/discharge simulation.

The battery charges only from solar excess and discharges only into the
chargers' remaining demand.  Each forecast year is simulated independently
starting from an empty battery; no state of charge carries across a year
boundary.

The hourly transition is a pure function of the previous end-of-hour state
of charge, and a year is the fold of that function over the hour sequence
with an initial state of zero.  Charging from the grid is an extension point
and is always zero here.  Round-trip efficiency and depth of discharge are
not applied.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from engine.forecast.balance import align


@dataclass(frozen=True)
class BatteryLimits:
    """Usable energy capacity and charge/discharge power rating.

    Parameters
    ----------
    capacity_kwh : float
        Energy capacity (kWh).
    power_kw : float
        Maximum charge and discharge power (kW).  With hourly steps this is
        also the maximum energy moved per hour.
    """

    capacity_kwh: float
    power_kw: float

    def __post_init__(self) -> None:
        if self.capacity_kwh < 0:
            raise ValueError(f"capacity_kwh must be >= 0, got {self.capacity_kwh}")
        if self.power_kw < 0:
            raise ValueError(f"power_kw must be >= 0, got {self.power_kw}")


@dataclass(frozen=True)
class BatteryHour:
    """Outcome of a single simulated hour."""

    start_soc: float
    charge_from_solar: float
    charge_from_grid: float
    discharge: float
    end_soc: float


def battery_step(
    start_soc: float,
    solar_excess: float,
    post_solar_demand: float,
    limits: BatteryLimits,
) -> BatteryHour:
    """Advance the battery by one hour."""
    headroom = limits.capacity_kwh - start_soc
    charge_solar = max(0.0, min(solar_excess, limits.power_kw, headroom))
    charge_grid = 0.0

    available = start_soc + charge_solar + charge_grid
    discharge = max(0.0, min(limits.power_kw, post_solar_demand, available))

    end_soc = min(max(available - discharge, 0.0), limits.capacity_kwh)
    return BatteryHour(
        start_soc=start_soc,
        charge_from_solar=charge_solar,
        charge_from_grid=charge_grid,
        discharge=discharge,
        end_soc=end_soc,
    )


@dataclass
class BatteryYear:
    """Hourly battery series for one forecast year."""

    start_soc: NDArray[np.float64]
    charge_from_solar: NDArray[np.float64]
    charge_from_grid: NDArray[np.float64]
    discharge: NDArray[np.float64]
    end_soc: NDArray[np.float64]


def simulate_year(
    solar_excess: ArrayLike,
    post_solar_demand: ArrayLike,
    limits: BatteryLimits,
    initial_soc: float = 0.0,
) -> BatteryYear:
    """Simulate one year of hourly operation.

    The two input series are truncated to their common length.
    """
    excess = np.asarray(solar_excess, dtype=np.float64)
    demand = np.asarray(post_solar_demand, dtype=np.float64)
    n = min(excess.size, demand.size)

    out = {
        name: np.zeros(n, dtype=np.float64)
        for name in ("start_soc", "charge_from_solar", "charge_from_grid", "discharge", "end_soc")
    }

    soc = initial_soc
    for i in range(n):
        hour = battery_step(soc, float(excess[i]), float(demand[i]), limits)
        out["start_soc"][i] = hour.start_soc
        out["charge_from_solar"][i] = hour.charge_from_solar
        out["charge_from_grid"][i] = hour.charge_from_grid
        out["discharge"][i] = hour.discharge
        out["end_soc"][i] = hour.end_soc
        soc = hour.end_soc

    return BatteryYear(**out)


@dataclass
class BatteryForecast:
    """Per-year battery series as ``(years, hours)`` matrices."""

    start_soc: NDArray[np.float64]
    charge_from_solar: NDArray[np.float64]
    charge_from_grid: NDArray[np.float64]
    discharge: NDArray[np.float64]
    end_soc: NDArray[np.float64]

    @property
    def years(self) -> int:
        return self.discharge.shape[0]


def simulate_battery(
    solar_excess: ArrayLike,
    post_solar_demand: ArrayLike,
    limits: BatteryLimits,
    project_life: int,
) -> BatteryForecast:
    """Simulate every forecast year, each starting from an empty battery.

    The number of simulated years is the smallest of the two inputs' year
    counts and ``project_life``.
    """
    excess, demand = align(solar_excess, post_solar_demand)
    years = min(excess.shape[0], project_life)
    results = [simulate_year(excess[y], demand[y], limits) for y in range(years)]

    def stack(field: str) -> NDArray[np.float64]:
        if not results:
            return np.zeros((0, excess.shape[1]), dtype=np.float64)
        return np.vstack([getattr(r, field) for r in results])

    return BatteryForecast(
        start_soc=stack("start_soc"),
        charge_from_solar=stack("charge_from_solar"),
        charge_from_grid=stack("charge_from_grid"),
        discharge=stack("discharge"),
        end_soc=stack("end_soc"),
    )
