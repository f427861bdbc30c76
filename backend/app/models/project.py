import uuid
from datetime import datetime

from sqlalchemy import String, Float, Integer, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import settings
from app.models.database import Base


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000))
    latitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=settings.default_latitude
    )
    longitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=settings.default_longitude
    )
    # Overrides settings.project_life_years when set
    project_life_years: Mapped[int | None] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    generation_config: Mapped["GenerationConfig | None"] = relationship(  # noqa: F821
        back_populates="project", uselist=False, cascade="all, delete"
    )
    storage_config: Mapped["StorageConfig | None"] = relationship(  # noqa: F821
        back_populates="project", uselist=False, cascade="all, delete"
    )
    grid_config: Mapped["GridConfig | None"] = relationship(  # noqa: F821
        back_populates="project", uselist=False, cascade="all, delete"
    )
    charging_profiles: Mapped[list["ChargingProfile"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete"
    )
    charging_hubs: Mapped[list["ChargingHub"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete"
    )
    energy_forecast: Mapped["EnergyForecast | None"] = relationship(  # noqa: F821
        back_populates="project", uselist=False, cascade="all, delete"
    )
    cost_entries: Mapped[list["CostEntry"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete"
    )
    energy_tariff: Mapped["EnergyTariff | None"] = relationship(  # noqa: F821
        back_populates="project", uselist=False, cascade="all, delete"
    )
    sales_tariffs: Mapped[list["SalesTariff"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete"
    )
    analysis_runs: Mapped[list["AnalysisRun"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete"
    )

    @property
    def effective_project_life_years(self) -> int:
        """Forecast horizon: the project override, else the configured default."""
        return self.project_life_years or settings.project_life_years
