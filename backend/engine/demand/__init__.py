"""EV charging demand: behaviour templates, hourly synthesis and growth curves."""

from .behaviour import (
    CHARGING_TEMPLATES,
    DEFAULT_TEMPLATE,
    BehaviourArrays,
    WeekdayWeekendAllocation,
    calibrate_monthly,
    calibrate_weekday,
    calibrate_weekend,
    default_behaviour,
    total_annual_kwh,
    weekday_weekend_allocation,
)
from .charging_demand import (
    capacity_profile,
    is_weekend,
    synthesize_demand_profile,
    zero_profile,
)
from .growth import (
    default_growth,
    exponential_growth,
    growth_multiplier,
    linear_growth,
    s_curve_growth,
)

__all__ = [
    "CHARGING_TEMPLATES",
    "DEFAULT_TEMPLATE",
    "BehaviourArrays",
    "WeekdayWeekendAllocation",
    "calibrate_monthly",
    "calibrate_weekday",
    "calibrate_weekend",
    "default_behaviour",
    "total_annual_kwh",
    "weekday_weekend_allocation",
    "capacity_profile",
    "is_weekend",
    "synthesize_demand_profile",
    "zero_profile",
    "default_growth",
    "exponential_growth",
    "growth_multiplier",
    "linear_growth",
    "s_curve_growth",
]
