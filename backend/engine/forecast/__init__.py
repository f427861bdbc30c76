"""Multi-year energy balance forecasting."""

from .aggregation import (
    EnergyFlows,
    calculate_energy_flows,
    daily_average_battery_charging,
    daily_average_battery_discharging,
)
from .balance import align, demand_post_solar, solar_consumed, solar_excess
from .extrapolation import HubDemand, extrapolate_demand, extrapolate_solar, grown_hub_demand

__all__ = [
    "EnergyFlows",
    "calculate_energy_flows",
    "daily_average_battery_charging",
    "daily_average_battery_discharging",
    "align",
    "demand_post_solar",
    "solar_consumed",
    "solar_excess",
    "HubDemand",
    "extrapolate_demand",
    "extrapolate_solar",
    "grown_hub_demand",
]
