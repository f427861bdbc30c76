import uuid
from datetime import datetime

from sqlalchemy import String, Float, Integer, ForeignKey, DateTime, LargeBinary, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base
from engine.demand.behaviour import total_annual_kwh as annual_energy


class ChargingProfile(Base):
    __tablename__ = "charging_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    profile_name: Mapped[str] = mapped_column(String(255), nullable=False)
    initial_number_of_vehicles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_charging_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    average_battery_size: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="charging_profiles")  # noqa: F821
    behaviour: Mapped["ChargingProfileBehaviour | None"] = relationship(
        back_populates="charging_profile", uselist=False, cascade="all, delete"
    )
    hubs: Mapped[list["ChargingHub"]] = relationship(back_populates="charging_profile")

    @property
    def total_annual_kwh(self) -> float:
        return annual_energy(
            self.initial_number_of_vehicles,
            self.average_charging_percentage,
            self.average_battery_size,
        )


class ChargingProfileBehaviour(Base):
    __tablename__ = "charging_profile_behaviours"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    charging_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("charging_profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    weekday_hourly_data: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # 24
    weekend_hourly_data: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # 24
    monthly_data: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # 12
    weekday_weekend_scale: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    selected_profile: Mapped[str] = mapped_column(String(50), nullable=False, default="default")
    # Cumulative % growth vs. year 1, index 0 = baseline
    annual_growth_rates: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # 30
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    charging_profile: Mapped["ChargingProfile"] = relationship(back_populates="behaviour")


class ChargingHub(Base):
    __tablename__ = "charging_hubs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    hub_name: Mapped[str] = mapped_column(String(255), nullable=False)
    charger_power: Mapped[float] = mapped_column(Float, nullable=False)  # kW per charger
    number_of_chargers: Mapped[int] = mapped_column(Integer, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    charging_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("charging_profiles.id", ondelete="SET NULL")
    )
    sales_tariff_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sales_tariffs.id", ondelete="SET NULL")
    )

    # Derived by the charging demand and capacity stages
    demand_profile: Mapped[bytes | None] = mapped_column(LargeBinary)  # 8760 kWh
    demand_profile_daily_totals: Mapped[list | None] = mapped_column(JSONB)  # 365
    demand_profile_monthly_totals: Mapped[list | None] = mapped_column(JSONB)  # 12
    demand_profile_annual_demand: Mapped[float | None] = mapped_column(Float)
    charger_capacity_profile: Mapped[bytes | None] = mapped_column(LargeBinary)  # 8760 kW
    charger_capacity_profile_daily_totals: Mapped[list | None] = mapped_column(JSONB)  # 365

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="charging_hubs")  # noqa: F821
    charging_profile: Mapped["ChargingProfile | None"] = relationship(back_populates="hubs")
    sales_tariff: Mapped["SalesTariff | None"] = relationship(back_populates="hubs")  # noqa: F821
