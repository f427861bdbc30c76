import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

PricingType = Literal["fixed", "variable", "custom"]
# Official access-tariff periods of the Spanish peninsular network
VariablePeriod = Literal["P1", "P2", "P3", "P4", "P5", "P6"]
VARIABLE_PERIODS: tuple[str, ...] = ("P1", "P2", "P3", "P4", "P5", "P6")
NetworkTariffType = Literal["2.0 TD", "3.0 TD", "6.1 TD", "6.2 TD", "6.3 TD", "6.4 TD"]

MAX_CUSTOM_PERIODS = 6

Price = Annotated[float, Field(ge=0)]  # €/MWh


class CustomPeriod(BaseModel):
    name: str = Field(default="", max_length=50)
    start: int = Field(ge=0, le=23)  # hour of day
    end: int = Field(ge=0, le=24)
    price: Price
    type: Literal["weekdays", "weekends"] = "weekdays"


class TariffPricing(BaseModel):
    """Energy price as a single figure, per network period, or per custom slot.

    Only the fields of the selected pricing type are kept; missing prices of
    that type count as zero.
    """

    energy_tariff_type: PricingType = "fixed"
    energy_fixed_price: Price | None = None
    energy_variable_prices: dict[VariablePeriod, Price] | None = None
    energy_custom_periods: list[CustomPeriod] | None = Field(
        default=None, max_length=MAX_CUSTOM_PERIODS
    )

    @model_validator(mode="after")
    def _keep_selected_pricing(self) -> "TariffPricing":
        if self.energy_tariff_type == "fixed":
            self.energy_fixed_price = self.energy_fixed_price or 0.0
        else:
            self.energy_fixed_price = None

        if self.energy_tariff_type == "variable":
            prices = self.energy_variable_prices or {}
            self.energy_variable_prices = {p: prices.get(p, 0.0) for p in VARIABLE_PERIODS}
        else:
            self.energy_variable_prices = None

        if self.energy_tariff_type == "custom":
            self.energy_custom_periods = self.energy_custom_periods or []
        else:
            self.energy_custom_periods = None
        return self


class EnergyTariffIn(TariffPricing):
    network_tariff_type: NetworkTariffType | None = None
    # Contracted power above the peak forecast demand
    contracted_power_margin_percent: float | None = Field(default=None, ge=0, le=100)


class EnergyTariffResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    energy_tariff_type: str
    energy_fixed_price: float | None
    energy_variable_prices: dict[str, float] | None
    energy_custom_periods: list[CustomPeriod] | None
    network_tariff_type: str | None
    contracted_power_margin_percent: float | None
    updated_at: datetime

    model_config = {"from_attributes": True}


class SalesTariffCreate(TariffPricing):
    tariff_name: str = Field(min_length=1, max_length=255)


class SalesTariffUpdate(BaseModel):
    tariff_name: str | None = Field(default=None, min_length=1, max_length=255)
    energy_tariff_type: PricingType | None = None
    energy_fixed_price: float | None = None
    energy_variable_prices: dict[str, float] | None = None
    energy_custom_periods: list[dict] | None = None


class SalesTariffResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    tariff_name: str
    energy_tariff_type: str
    energy_fixed_price: float | None
    energy_variable_prices: dict[str, float] | None
    energy_custom_periods: list[CustomPeriod] | None
    created_at: datetime

    model_config = {"from_attributes": True}
