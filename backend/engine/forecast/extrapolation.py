"""
Multi-year extrapolation of solar generation and charging demand.

Both arms return a ``(years, 8760)`` matrix where row 0 is the first year of
operation.  Solar output degrades by compounding the annual degradation rate
onto the previous year's curve.  Demand grows per hub by its growth curve and
is then capped hour by hour at the hub's charger capacity before the hubs are
summed into a single gross demand series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from engine.demand.growth import growth_multiplier
from engine.timebase import HOURS_PER_YEAR

logger = logging.getLogger(__name__)


def _check_horizon(project_life: int) -> None:
    if project_life < 1:
        raise ValueError(f"project_life must be at least 1 year, got {project_life}")


def extrapolate_solar(
    base_profile: ArrayLike,
    annual_degradation_pct: float,
    project_life: int,
) -> NDArray[np.float64]:
    """Project a first-year generation profile across the project horizon.

    Parameters
    ----------
    base_profile : array_like
        First-year hourly generation (kWh).
    annual_degradation_pct : float
        Output loss per year in percent.
    project_life : int
        Number of forecast years.

    Returns
    -------
    ndarray of shape (project_life, len(base_profile))
        ``out[y] = out[y - 1] * (1 - degradation / 100)`` with ``out[0]``
        equal to the base profile.
    """
    _check_horizon(project_life)
    base = np.asarray(base_profile, dtype=np.float64)
    retention = 1.0 - (annual_degradation_pct or 0.0) / 100.0

    years = np.empty((project_life, base.size), dtype=np.float64)
    years[0] = base
    for y in range(1, project_life):
        years[y] = years[y - 1] * retention
    return years


@dataclass
class HubDemand:
    """Inputs of one hub to the demand extrapolation."""

    demand_profile: NDArray[np.float64]
    capacity_profile: NDArray[np.float64]
    growth_rates: Sequence[float] | None = None
    name: str = ""


def grown_hub_demand(hub: HubDemand, year: int) -> NDArray[np.float64]:
    """One hub's demand for a forecast year, grown and capped at capacity.

    Capacity hours beyond the end of the stored capacity profile count as
    zero capacity.
    """
    demand = np.asarray(hub.demand_profile, dtype=np.float64)
    capacity = np.zeros(demand.size, dtype=np.float64)
    stored = np.asarray(hub.capacity_profile, dtype=np.float64)[: demand.size]
    capacity[: stored.size] = stored

    grown = demand * growth_multiplier(hub.growth_rates, year)
    return np.minimum(grown, capacity)


def extrapolate_demand(
    hubs: Sequence[HubDemand],
    project_life: int,
) -> NDArray[np.float64] | None:
    """Gross hourly demand of all hubs for every forecast year.

    Returns ``None`` when there are no hubs.
    """
    _check_horizon(project_life)
    if not hubs:
        return None

    gross = np.zeros((project_life, HOURS_PER_YEAR), dtype=np.float64)
    for year in range(project_life):
        for hub in hubs:
            capped = grown_hub_demand(hub, year)
            n = min(capped.size, HOURS_PER_YEAR)
            gross[year, :n] += capped[:n]
    logger.debug(
        "Extrapolated demand for %d hubs over %d years (year-0 total %.1f kWh)",
        len(hubs),
        project_life,
        gross[0].sum(),
    )
    return gross
