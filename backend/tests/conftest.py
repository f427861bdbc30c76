"""Shared fixtures: synthetic solar curves, demand shapes and SQLite type shims."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.typing import NDArray
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles

from engine.solar.reference_profiles import ReferenceProfileLibrary

HOURS_PER_YEAR = 8760

SITE_LAT = 40.4168
SITE_LON = -3.7038


# ======================================================================
# SQLite compatibility for PostgreSQL column types
# ======================================================================

@compiles(PG_UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "CHAR(36)"


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


# ======================================================================
# Solar fixtures
# ======================================================================

def _bell_curve_wh(peak_wh: float) -> NDArray[np.float64]:
    """Per-kWp Wh curve: half-sine between 06:00 and 18:00 every day."""
    hour_of_day = np.arange(HOURS_PER_YEAR, dtype=np.float64) % 24
    shape = np.where(
        (hour_of_day >= 6) & (hour_of_day <= 18),
        np.sin(np.pi * (hour_of_day - 6) / 12),
        0.0,
    )
    return shape * peak_wh


@pytest.fixture
def reference_curve() -> NDArray[np.float64]:
    """South-facing 30 deg curve peaking at 800 Wh per kWp."""
    return _bell_curve_wh(800.0)


@pytest.fixture
def reference_library(reference_curve) -> ReferenceProfileLibrary:
    """Library holding a single site with S/30 and E/30 curves."""
    library = ReferenceProfileLibrary()
    library.add_profile(SITE_LAT, SITE_LON, 180, 30, reference_curve)
    library.add_profile(SITE_LAT, SITE_LON, 90, 30, reference_curve * 0.8)
    return library


# ======================================================================
# Demand fixtures
# ======================================================================

@pytest.fixture
def flat_behaviour() -> dict[str, list[float]]:
    """Flat behaviour for 10,000 kWh/yr split evenly over months."""
    return {
        "weekday_hourly": [1.0] * 24,
        "weekend_hourly": [1.0] * 24,
        "monthly": [10_000.0 / 12] * 12,
    }


@pytest.fixture
def evening_demand() -> NDArray[np.float64]:
    """5 kWh every hour from 18:00 to 23:00, zero otherwise."""
    hour_of_day = np.arange(HOURS_PER_YEAR) % 24
    return np.where(hour_of_day >= 18, 5.0, 0.0).astype(np.float64)
