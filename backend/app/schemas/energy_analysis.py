import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class AnalysisRunCreate(BaseModel):
    project_life_years: int | None = Field(default=None, ge=1, le=30)


class AnalysisRunResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    status: str
    project_life_years: int
    current_stage: str | None
    progress: float
    error_message: str | None
    created_at: datetime
    completed_at: datetime | None

    model_config = {"from_attributes": True}


class StageRunResponse(BaseModel):
    stage: str
    task_id: str


class EnergyFlowsResponse(BaseModel):
    solar_to_chargers: float | None
    solar_to_battery: float | None
    solar_to_grid: float | None
    battery_to_chargers: float | None
    grid_to_battery: float | None
    grid_to_chargers: float | None


class EnergyForecastResponse(BaseModel):
    project_id: uuid.UUID
    years: int
    available_series: list[str]
    flows: EnergyFlowsResponse
    daily_average_battery_charging: list[float] | None
    daily_average_battery_discharging: list[float] | None
    updated_at: datetime


class ForecastTimeseriesResponse(BaseModel):
    project_id: uuid.UUID
    year: int
    series: dict[str, list[float]]
