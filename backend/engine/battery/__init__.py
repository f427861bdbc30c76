"""Battery storage engine -- hourly charge/discharge simulation."""

from .simulator import (
    BatteryForecast,
    BatteryHour,
    BatteryLimits,
    BatteryYear,
    battery_step,
    simulate_battery,
    simulate_year,
)

__all__ = [
    "BatteryForecast",
    "BatteryHour",
    "BatteryLimits",
    "BatteryYear",
    "battery_step",
    "simulate_battery",
    "simulate_year",
]
