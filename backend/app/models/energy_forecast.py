import uuid
from datetime import datetime

from sqlalchemy import Float, ForeignKey, DateTime, LargeBinary, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base

# Year-indexed hourly matrices, in pipeline order.
FORECAST_SERIES: tuple[str, ...] = (
    "solar_generation",
    "gross_energy_demand",
    "generated_solar_energy_consumed",
    "generated_solar_energy_excess_post_consumption",
    "energy_demand_post_solar",
    "battery_start_soc",
    "battery_charge_from_solar",
    "battery_charge_from_grid",
    "battery_discharge",
    "battery_end_soc",
    "energy_demand_post_solar_battery",
    "grid_import",
    "energy_demand_post_solar_battery_grid",
    "generated_solar_energy_excess_post_consumption_battery",
    "grid_export",
)

FLOW_FIELDS: tuple[str, ...] = (
    "flow_solar_to_chargers",
    "flow_solar_to_battery",
    "flow_solar_to_grid",
    "flow_battery_to_chargers",
    "flow_grid_to_battery",
    "flow_grid_to_chargers",
)


class EnergyForecast(Base):
    __tablename__ = "energy_forecasts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # (years, 8760) float64 matrices, compressed
    solar_generation: Mapped[bytes | None] = mapped_column(LargeBinary)
    gross_energy_demand: Mapped[bytes | None] = mapped_column(LargeBinary)
    generated_solar_energy_consumed: Mapped[bytes | None] = mapped_column(LargeBinary)
    generated_solar_energy_excess_post_consumption: Mapped[bytes | None] = mapped_column(
        LargeBinary
    )
    energy_demand_post_solar: Mapped[bytes | None] = mapped_column(LargeBinary)
    battery_start_soc: Mapped[bytes | None] = mapped_column(LargeBinary)
    battery_charge_from_solar: Mapped[bytes | None] = mapped_column(LargeBinary)
    battery_charge_from_grid: Mapped[bytes | None] = mapped_column(LargeBinary)
    battery_discharge: Mapped[bytes | None] = mapped_column(LargeBinary)
    battery_end_soc: Mapped[bytes | None] = mapped_column(LargeBinary)
    energy_demand_post_solar_battery: Mapped[bytes | None] = mapped_column(LargeBinary)
    grid_import: Mapped[bytes | None] = mapped_column(LargeBinary)
    energy_demand_post_solar_battery_grid: Mapped[bytes | None] = mapped_column(LargeBinary)
    generated_solar_energy_excess_post_consumption_battery: Mapped[bytes | None] = (
        mapped_column(LargeBinary)
    )
    grid_export: Mapped[bytes | None] = mapped_column(LargeBinary)

    # First-year flow totals (kWh)
    flow_solar_to_chargers: Mapped[float | None] = mapped_column(Float)
    flow_solar_to_battery: Mapped[float | None] = mapped_column(Float)
    flow_solar_to_grid: Mapped[float | None] = mapped_column(Float)
    flow_battery_to_chargers: Mapped[float | None] = mapped_column(Float)
    flow_grid_to_battery: Mapped[float | None] = mapped_column(Float)
    flow_grid_to_chargers: Mapped[float | None] = mapped_column(Float)

    # Average day, 24 values each
    daily_average_battery_charging: Mapped[list | None] = mapped_column(JSONB)
    daily_average_battery_discharging: Mapped[list | None] = mapped_column(JSONB)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="energy_forecast")  # noqa: F821
