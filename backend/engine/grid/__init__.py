"""Grid connection module: import/export limits after solar and storage."""

from .resolver import (
    demand_post_battery,
    excess_post_battery,
    grid_export,
    grid_import,
    residual_demand,
)

__all__ = [
    "demand_post_battery",
    "excess_post_battery",
    "grid_export",
    "grid_import",
    "residual_demand",
]
