"""Hourly solar self-consumption balance.

Inputs are ``(years, hours)`` matrices.  When the solar and demand matrices
disagree in shape the balance is computed over the overlapping years and
hours only.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def align(*matrices: ArrayLike) -> list[NDArray[np.float64]]:
    """Trim 2-D matrices to their common number of years and hours."""
    arrays = [np.atleast_2d(np.asarray(m, dtype=np.float64)) for m in matrices]
    years = min(a.shape[0] for a in arrays)
    hours = min(a.shape[1] for a in arrays)
    return [a[:years, :hours] for a in arrays]


def solar_consumed(solar: ArrayLike, demand: ArrayLike) -> NDArray[np.float64]:
    """Solar energy used directly by the chargers: ``min(solar, demand)``."""
    s, d = align(solar, demand)
    return np.minimum(s, d)


def solar_excess(solar: ArrayLike, consumed: ArrayLike) -> NDArray[np.float64]:
    """Solar energy left after direct consumption: ``max(solar - consumed, 0)``."""
    s, c = align(solar, consumed)
    return np.maximum(s - c, 0.0)


def demand_post_solar(demand: ArrayLike, consumed: ArrayLike) -> NDArray[np.float64]:
    """Demand still unmet after direct solar consumption."""
    d, c = align(demand, consumed)
    return d - c
