"""PVGIS API client for fetching per-kWp hourly PV output curves."""

from __future__ import annotations

import logging

import httpx
import numpy as np

from engine.solar.reference_profiles import ORIENTATION_TO_AZIMUTH, MAX_TILT_DEG, TILT_STEP_DEG
from engine.timebase import HOURS_PER_DAY, HOURS_PER_YEAR

logger = logging.getLogger(__name__)

PVGIS_BASE_URL = "https://re.jrc.ec.europa.eu/api/v5_3"
REFERENCE_YEAR = 2019
LEAP_DAY = "0229"


def pvgis_aspect(azimuth: int) -> int:
    """Convert a compass azimuth (0 = north, clockwise) to the PVGIS aspect
    convention (0 = south, 90 = west, -90 = east)."""
    aspect = azimuth - 180
    if aspect < -180:
        aspect += 360
    return aspect


def parse_hourly_output(payload: dict) -> np.ndarray:
    """Extract the hourly PV power series (W for a 1 kWp array) from a
    ``seriescalc`` JSON response.

    A leap-year response has its 29 February hours removed.
    """
    try:
        rows = payload["outputs"]["hourly"]
    except (KeyError, TypeError) as exc:
        raise ValueError("PVGIS response has no outputs.hourly table") from exc

    if len(rows) == HOURS_PER_YEAR + HOURS_PER_DAY:
        rows = [r for r in rows if str(r.get("time", ""))[4:8] != LEAP_DAY]

    values = np.array([float(r.get("P", 0.0)) for r in rows], dtype=np.float64)
    if values.size != HOURS_PER_YEAR:
        raise ValueError(f"PVGIS returned {values.size} hourly values, expected {HOURS_PER_YEAR}")
    return values


async def fetch_reference_curve(
    lat: float,
    lon: float,
    azimuth: int,
    tilt: int,
    year: int = REFERENCE_YEAR,
    base_url: str = PVGIS_BASE_URL,
    client: httpx.AsyncClient | None = None,
) -> np.ndarray:
    """Fetch hourly output of a lossless 1 kWp array for one orientation.

    Args:
        lat: Latitude (-90 to 90)
        lon: Longitude (-180 to 180)
        azimuth: Surface azimuth, degrees clockwise from north
        tilt: Surface tilt in degrees
        year: Year of the radiation series (a non-leap year is preferred)
        base_url: PVGIS API root
        client: Optional shared client; a temporary one is used otherwise

    Returns:
        8760 hourly values in Wh
    """
    params = {
        "lat": lat,
        "lon": lon,
        "outputformat": "json",
        "startyear": year,
        "endyear": year,
        "pvcalculation": 1,
        "peakpower": 1,
        "loss": 0,
        "angle": tilt,
        "aspect": pvgis_aspect(azimuth),
    }

    if client is None:
        async with httpx.AsyncClient(timeout=60.0) as own_client:
            response = await own_client.get(f"{base_url}/seriescalc", params=params)
    else:
        response = await client.get(f"{base_url}/seriescalc", params=params)
    response.raise_for_status()

    return parse_hourly_output(response.json())


async def fetch_reference_grid(
    lat: float,
    lon: float,
    year: int = REFERENCE_YEAR,
    base_url: str = PVGIS_BASE_URL,
) -> dict[tuple[int, int], np.ndarray]:
    """Fetch reference curves for every azimuth bucket and tilt step.

    Returns:
        Mapping of ``(azimuth, tilt)`` to an 8760-hour Wh curve
    """
    curves: dict[tuple[int, int], np.ndarray] = {}
    async with httpx.AsyncClient(timeout=60.0) as client:
        for azimuth in sorted(set(ORIENTATION_TO_AZIMUTH.values())):
            for tilt in range(0, MAX_TILT_DEG + 1, TILT_STEP_DEG):
                curves[(azimuth, tilt)] = await fetch_reference_curve(
                    lat, lon, azimuth, tilt, year=year, base_url=base_url, client=client
                )
                logger.debug("Fetched PVGIS curve azimuth=%d tilt=%d", azimuth, tilt)
    return curves
