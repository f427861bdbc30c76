import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.config import settings


class ProjectCreate(BaseModel):
    name: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    latitude: float = Field(default=settings.default_latitude, ge=-90, le=90)
    longitude: float = Field(default=settings.default_longitude, ge=-180, le=180)
    # Forecast horizon; unset falls back to the service default
    project_life_years: int | None = Field(default=None, ge=1, le=30)
    currency: str = Field(default="EUR", min_length=3, max_length=3)


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    project_life_years: int | None = Field(default=None, ge=1, le=30)
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class ProjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    latitude: float
    longitude: float
    project_life_years: int | None
    effective_project_life_years: int
    currency: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectSummary(BaseModel):
    """What is configured for a project and whether a forecast exists."""

    project_id: uuid.UUID
    effective_project_life_years: int
    has_generation: bool
    has_storage: bool
    has_grid: bool
    charging_profile_count: int
    charging_hub_count: int
    total_charger_capacity_kw: float
    total_annual_charging_kwh: float
    cost_entry_count: int
    latest_run_status: str | None
    forecast_available: bool
