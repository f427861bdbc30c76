import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

CostType = Literal["Capex", "Opex"]
CostSubtype = Literal[
    "Fixed Cost",
    "Solar: €/kW of PV Installed",
    "Battery: €/kW of Battery Installed",
    "Battery: €/kWh of Battery Installed",
    "Grid Connection: €/kW of Import Limit",
    "Chargers: €/kW of Chargers Installed",
    "Chargers: € / # of Chargers Installed",
]

CHARGER_SUBTYPE_PREFIX = "Chargers:"


class CostEntryCreate(BaseModel):
    cost_name: str = Field(max_length=255)
    cost_type: CostType
    cost_subtype: CostSubtype
    charger_hub_id: uuid.UUID | None = None
    cost: float = Field(ge=0)
    cost_escalation: float | None = Field(default=None, ge=-100, le=100)

    @model_validator(mode="after")
    def _drop_inapplicable_fields(self) -> "CostEntryCreate":
        if self.cost_type != "Opex":
            self.cost_escalation = None
        if not self.cost_subtype.startswith(CHARGER_SUBTYPE_PREFIX):
            self.charger_hub_id = None
        return self


class CostEntryUpdate(BaseModel):
    cost_name: str | None = Field(default=None, max_length=255)
    cost_type: CostType | None = None
    cost_subtype: CostSubtype | None = None
    charger_hub_id: uuid.UUID | None = None
    cost: float | None = Field(default=None, ge=0)
    cost_escalation: float | None = Field(default=None, ge=-100, le=100)


class CostEntryResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    cost_name: str
    cost_type: str
    cost_subtype: str
    charger_hub_id: uuid.UUID | None
    cost: float
    cost_escalation: float | None
    created_at: datetime

    model_config = {"from_attributes": True}
