"""Grid import/export resolution after solar and battery.

All inputs and outputs are ``(years, hours)`` matrices, trimmed to the
overlapping years and hours of their inputs.  A missing battery is passed as
``None`` and counts as zero charge and discharge.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from engine.forecast.balance import align


def _or_zeros(values: ArrayLike | None, like: ArrayLike) -> NDArray[np.float64]:
    if values is None:
        return np.zeros_like(np.atleast_2d(np.asarray(like, dtype=np.float64)))
    return np.asarray(values, dtype=np.float64)


def _check_limit(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


def demand_post_battery(
    post_solar_demand: ArrayLike, discharge: ArrayLike | None
) -> NDArray[np.float64]:
    """Demand left after solar and battery discharge."""
    demand, dis = align(post_solar_demand, _or_zeros(discharge, post_solar_demand))
    return demand - dis


def grid_import(post_battery_demand: ArrayLike, max_import_kw: float) -> NDArray[np.float64]:
    """Grid import to meet remaining demand, capped at the import limit."""
    _check_limit("max_import_kw", max_import_kw)
    return np.minimum(np.atleast_2d(np.asarray(post_battery_demand, dtype=np.float64)), max_import_kw)


def residual_demand(post_battery_demand: ArrayLike, imported: ArrayLike) -> NDArray[np.float64]:
    """Demand left unmet after grid import.

    Not clamped: a negative value means more was imported than was needed.
    """
    demand, imp = align(post_battery_demand, imported)
    return demand - imp


def excess_post_battery(
    solar_excess: ArrayLike, charge_from_solar: ArrayLike | None
) -> NDArray[np.float64]:
    """Solar excess left after charging the battery."""
    excess, charge = align(solar_excess, _or_zeros(charge_from_solar, solar_excess))
    return excess - charge


def grid_export(post_battery_excess: ArrayLike, max_export_kw: float) -> NDArray[np.float64]:
    """Grid export of the remaining solar excess, capped at the export limit."""
    _check_limit("max_export_kw", max_export_kw)
    return np.minimum(np.atleast_2d(np.asarray(post_battery_excess, dtype=np.float64)), max_export_kw)
