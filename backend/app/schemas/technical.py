import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

PanelType = Literal["monocrystalline", "polycrystalline", "thin-film"]
Orientation = Literal["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
BatteryChemistry = Literal[
    "Lithium-ion", "Lithium Iron Phosphate", "Lead Acid", "Nickel Cadmium"
]
DischargeBehaviour = Literal["Arbitrage Maximisation", "Set Discharge Time", "Peak Reduction"]


class GenerationConfigIn(BaseModel):
    system_size_kwp: float = Field(ge=0)
    panel_type: PanelType = "monocrystalline"
    orientation: Orientation = "S"
    tilt: float = Field(default=30.0, ge=0, le=45)
    system_losses: float = Field(default=14.0, ge=0, le=100)
    annual_degradation: float = Field(default=0.5, ge=0, le=100)


class GenerationConfigResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    system_size_kwp: float
    panel_type: str
    orientation: str
    tilt: float
    system_losses: float
    annual_degradation: float
    solar_yield: float | None
    updated_at: datetime

    model_config = {"from_attributes": True}


class GenerationResultsResponse(BaseModel):
    generation_profile: list[float] | None
    monthly_totals: list[float] | None
    hourly_averages: list[float] | None
    solar_yield: float | None


class StorageConfigIn(BaseModel):
    capacity_kwh: float = Field(ge=0)
    power_kw: float = Field(ge=0)
    battery_chemistry: BatteryChemistry = "Lithium-ion"
    depth_of_discharge: float = Field(default=90.0, ge=0, le=100)
    round_trip_efficiency: float = Field(default=90.0, ge=0, le=100)
    annual_degradation: float = Field(default=2.0, ge=0, le=100)
    discharge_behaviour: DischargeBehaviour = "Arbitrage Maximisation"
    discharge_time: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

    @model_validator(mode="after")
    def _discharge_time_only_when_scheduled(self) -> "StorageConfigIn":
        if self.discharge_behaviour != "Set Discharge Time":
            self.discharge_time = None
        return self


class StorageConfigResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    capacity_kwh: float
    power_kw: float
    battery_chemistry: str
    depth_of_discharge: float
    round_trip_efficiency: float
    annual_degradation: float
    discharge_behaviour: str
    discharge_time: str | None
    updated_at: datetime

    model_config = {"from_attributes": True}


class GridConfigIn(BaseModel):
    max_import_kw: float = Field(ge=0)
    max_export_kw: float = Field(ge=0)


class GridConfigResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    max_import_kw: float
    max_export_kw: float
    updated_at: datetime

    model_config = {"from_attributes": True}
