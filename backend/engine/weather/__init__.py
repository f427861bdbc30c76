"""Weather data module (PVGIS reference PV output curves)."""

from .pvgis_client import (
    fetch_reference_curve,
    fetch_reference_grid,
    parse_hourly_output,
    pvgis_aspect,
)

__all__ = [
    "fetch_reference_curve",
    "fetch_reference_grid",
    "parse_hourly_output",
    "pvgis_aspect",
]
