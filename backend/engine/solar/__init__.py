"""
Solar generation module.

Resolves per-kWp reference generation curves by site, orientation and tilt,
and scales them to an installed PV array.
"""

from .reference_profiles import (
    ORIENTATION_TO_AZIMUTH,
    GenerationSummary,
    ReferenceProfileLibrary,
    location_key,
    resolve_generation,
    round_tilt,
    scale_profile,
    solar_yield,
)

__all__ = [
    "ORIENTATION_TO_AZIMUTH",
    "GenerationSummary",
    "ReferenceProfileLibrary",
    "location_key",
    "resolve_generation",
    "round_tilt",
    "scale_profile",
    "solar_yield",
]
