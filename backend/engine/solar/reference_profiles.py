"""
Reference solar generation profiles.

A reference dataset holds unscaled hourly PV output for a 1 kWp array
(8760 values, Wh per hour) for every supported combination of site,
surface azimuth and tilt.  The dataset is a nested JSON document::

    {
        "40.4168,-3.7038": {
            "azimuth_180": {
                "tilt_30": [0.0, 0.0, ..., 0.0],
                ...
            },
            ...
        }
    }

Orientation is given as an 8-point compass bearing and mapped onto a 45 deg
azimuth bucket (clockwise from north); tilt is rounded to the nearest 5 deg.
A key that is not present in the dataset resolves to ``None`` and the caller
is expected to skip generation entirely rather than use a partial profile.
"""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from engine.timebase import HOURS_PER_YEAR, hourly_averages, monthly_totals

logger = logging.getLogger(__name__)

# Compass orientation -> surface azimuth (degrees clockwise from north).
ORIENTATION_TO_AZIMUTH: dict[str, int] = {
    "N": 0,
    "NE": 45,
    "E": 90,
    "SE": 135,
    "S": 180,
    "SW": 225,
    "W": 270,
    "NW": 315,
}

TILT_STEP_DEG: int = 5
MAX_TILT_DEG: int = 45

# Reference curves are stored in Wh; generation is reported in kWh.
WH_PER_KWH: float = 1000.0


def round_tilt(tilt: float) -> int:
    """Round a tilt angle to the nearest 5 degree bucket (halves round up)."""
    return int(math.floor(tilt / TILT_STEP_DEG + 0.5)) * TILT_STEP_DEG


def location_key(latitude: float, longitude: float) -> str:
    """Dataset key for a site, e.g. ``"40.4168,-3.7038"``."""
    return f"{latitude:.4f},{longitude:.4f}"


def azimuth_key(azimuth: int) -> str:
    return f"azimuth_{azimuth}"


def tilt_key(tilt: int) -> str:
    return f"tilt_{tilt}"


class ReferenceProfileLibrary:
    """In-memory view over a reference profile dataset."""

    def __init__(self, data: dict[str, dict[str, dict[str, list[float]]]] | None = None):
        self._data: dict[str, dict[str, dict[str, list[float]]]] = data or {}

    @classmethod
    def from_json(cls, path: str | Path) -> "ReferenceProfileLibrary":
        """Load a dataset from disk.

        A missing or unreadable file yields an empty library, so every lookup
        against it misses.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("Solar reference dataset not found at %s", path)
            return cls()
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Solar reference dataset at %s is unreadable: %s", path, e)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Solar reference dataset at %s is not a JSON object", path)
            return cls()
        return cls(data)

    def to_json(self, path: str | Path) -> None:
        """Write the dataset, replacing any existing file in one step."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def locations(self) -> list[str]:
        return sorted(self._data)

    def add_profile(
        self,
        latitude: float,
        longitude: float,
        azimuth: int,
        tilt: int,
        profile_wh: NDArray[np.float64] | list[float],
    ) -> None:
        site = self._data.setdefault(location_key(latitude, longitude), {})
        site.setdefault(azimuth_key(azimuth), {})[tilt_key(tilt)] = [
            float(v) for v in profile_wh
        ]

    def lookup(
        self,
        latitude: float,
        longitude: float,
        orientation: str,
        tilt: float,
    ) -> NDArray[np.float64] | None:
        """Return the raw per-kWp Wh curve for a site/orientation/tilt.

        Returns ``None`` for an unknown orientation, a key missing from the
        dataset, or a stored curve that is not a flat 8760-hour series.
        """
        azimuth = ORIENTATION_TO_AZIMUTH.get(orientation)
        if azimuth is None:
            return None

        curve: Any = self._data
        keys = (location_key(latitude, longitude), azimuth_key(azimuth), tilt_key(round_tilt(tilt)))
        for key in keys:
            curve = curve.get(key) if isinstance(curve, dict) else None
        if not isinstance(curve, list):
            return None

        arr = np.asarray(curve, dtype=np.float64)
        if arr.shape != (HOURS_PER_YEAR,):
            logger.warning(
                "Reference curve %s/%s/%s has shape %s, expected (%d,)",
                location_key(latitude, longitude),
                azimuth_key(azimuth),
                tilt_key(round_tilt(tilt)),
                arr.shape,
                HOURS_PER_YEAR,
            )
            return None
        return arr


# ---------------------------------------------------------------------------
# Scaling and summaries
# ---------------------------------------------------------------------------


@dataclass
class GenerationSummary:
    """Scaled generation profile and its derived summaries."""

    profile_kwh: NDArray[np.float64]
    monthly_totals: NDArray[np.float64]
    hourly_averages: NDArray[np.float64]
    solar_yield: float


def scale_profile(
    raw_wh: NDArray[np.float64],
    system_size_kwp: float,
    system_losses_pct: float,
) -> NDArray[np.float64]:
    """Scale a per-kWp Wh curve to the installed array, in kWh.

    ``value * kWp / 1000 * (1 - losses / 100)``
    """
    loss_factor = 1.0 - (system_losses_pct or 0.0) / 100.0
    return np.asarray(raw_wh, dtype=np.float64) * system_size_kwp / WH_PER_KWH * loss_factor


def solar_yield(profile_kwh: NDArray[np.float64], system_size_kwp: float) -> float:
    """Annual generation per installed kWp (kWh/kWp); zero for a zero-size array."""
    if not system_size_kwp:
        return 0.0
    return float(np.sum(profile_kwh)) / system_size_kwp


def resolve_generation(
    library: ReferenceProfileLibrary,
    latitude: float,
    longitude: float,
    orientation: str,
    tilt: float,
    system_size_kwp: float,
    system_losses_pct: float,
) -> GenerationSummary | None:
    """Look up, scale and summarise the generation profile for an array.

    Returns ``None`` when no reference curve exists for the inputs.
    """
    raw = library.lookup(latitude, longitude, orientation, tilt)
    if raw is None:
        return None

    profile = scale_profile(raw, system_size_kwp, system_losses_pct)
    return GenerationSummary(
        profile_kwh=profile,
        monthly_totals=monthly_totals(profile),
        hourly_averages=hourly_averages(profile),
        solar_yield=solar_yield(profile, system_size_kwp),
    )
