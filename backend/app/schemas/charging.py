import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TemplateName = Literal["default", "home_overnight", "workplace", "public_destination", "fleet_depot"]


class ChargingProfileCreate(BaseModel):
    profile_name: str = Field(max_length=255)
    initial_number_of_vehicles: int = Field(default=0, ge=0)
    average_charging_percentage: float = Field(default=0.0, ge=0, le=100)
    average_battery_size: float = Field(default=0.0, ge=0)
    # Used to seed the behaviour record
    selected_profile: TemplateName = "default"
    weekday_weekend_scale: float = Field(default=0.0, ge=-100)


class ChargingProfileUpdate(BaseModel):
    profile_name: str | None = Field(default=None, max_length=255)
    initial_number_of_vehicles: int | None = Field(default=None, ge=0)
    average_charging_percentage: float | None = Field(default=None, ge=0, le=100)
    average_battery_size: float | None = Field(default=None, ge=0)


class BehaviourResponse(BaseModel):
    id: uuid.UUID
    charging_profile_id: uuid.UUID
    weekday_hourly_data: list[float]
    weekend_hourly_data: list[float]
    monthly_data: list[float]
    weekday_weekend_scale: float
    selected_profile: str
    annual_growth_rates: list[float]

    model_config = {"from_attributes": True}


class BehaviourUpdate(BaseModel):
    weekday_hourly_data: list[float] | None = Field(default=None, min_length=24, max_length=24)
    weekend_hourly_data: list[float] | None = Field(default=None, min_length=24, max_length=24)
    monthly_data: list[float] | None = Field(default=None, min_length=12, max_length=12)
    weekday_weekend_scale: float | None = Field(default=None, ge=-100)
    selected_profile: TemplateName | None = None
    annual_growth_rates: list[float] | None = Field(default=None, min_length=30, max_length=30)


class ApplyTemplateRequest(BaseModel):
    template: TemplateName = "default"
    weekday_weekend_scale: float | None = Field(default=None, ge=-100)


class CalibrateRequest(BaseModel):
    targets: list[Literal["weekday", "weekend", "monthly"]] = Field(
        default_factory=lambda: ["weekday", "weekend", "monthly"], min_length=1
    )


class GrowthRequest(BaseModel):
    curve: Literal["linear", "exponential", "s_curve"] = "linear"
    rate: float = Field(default=2.5, ge=-100, le=100)
    max_growth: float = Field(default=100.0, ge=0)
    midpoint: float = Field(default=10.0, ge=0, le=30)


class ChargingProfileResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    profile_name: str
    initial_number_of_vehicles: int
    average_charging_percentage: float
    average_battery_size: float
    total_annual_kwh: float
    created_at: datetime
    behaviour: BehaviourResponse | None = None

    model_config = {"from_attributes": True}


class ChargingHubCreate(BaseModel):
    hub_name: str = Field(max_length=255)
    charger_power: float = Field(ge=0)
    number_of_chargers: int = Field(ge=0)
    priority: int = Field(default=1, ge=1)
    charging_profile_id: uuid.UUID | None = None
    sales_tariff_id: uuid.UUID | None = None


class ChargingHubUpdate(BaseModel):
    hub_name: str | None = Field(default=None, max_length=255)
    charger_power: float | None = Field(default=None, ge=0)
    number_of_chargers: int | None = Field(default=None, ge=0)
    priority: int | None = Field(default=None, ge=1)
    charging_profile_id: uuid.UUID | None = None
    sales_tariff_id: uuid.UUID | None = None


class ChargingHubResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    hub_name: str
    charger_power: float
    number_of_chargers: int
    priority: int
    charging_profile_id: uuid.UUID | None
    sales_tariff_id: uuid.UUID | None
    demand_profile_annual_demand: float | None
    created_at: datetime

    model_config = {"from_attributes": True}


class HubProfilesResponse(BaseModel):
    hub_id: uuid.UUID
    demand_profile: list[float] | None
    demand_profile_daily_totals: list[float] | None
    demand_profile_monthly_totals: list[float] | None
    demand_profile_annual_demand: float | None
    charger_capacity_profile: list[float] | None
    charger_capacity_profile_daily_totals: list[float] | None
