import uuid
from datetime import datetime

from sqlalchemy import String, Float, ForeignKey, DateTime, LargeBinary, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class GenerationConfig(Base):
    __tablename__ = "generation_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    system_size_kwp: Mapped[float] = mapped_column(Float, nullable=False)
    panel_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="monocrystalline"
    )  # monocrystalline, polycrystalline, thin-film
    orientation: Mapped[str] = mapped_column(String(2), nullable=False, default="S")
    tilt: Mapped[float] = mapped_column(Float, nullable=False, default=30.0)
    system_losses: Mapped[float] = mapped_column(Float, nullable=False, default=14.0)
    annual_degradation: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)

    # Derived by the solar generation stage
    generation_profile: Mapped[bytes | None] = mapped_column(LargeBinary)  # 8760 kWh
    monthly_totals: Mapped[list | None] = mapped_column(JSONB)  # 12
    hourly_averages: Mapped[list | None] = mapped_column(JSONB)  # 24
    solar_yield: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="generation_config")  # noqa: F821


class StorageConfig(Base):
    __tablename__ = "storage_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    capacity_kwh: Mapped[float] = mapped_column(Float, nullable=False)
    power_kw: Mapped[float] = mapped_column(Float, nullable=False)
    battery_chemistry: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Lithium-ion"
    )
    # Stored for reporting; not applied by the battery simulation
    depth_of_discharge: Mapped[float] = mapped_column(Float, nullable=False, default=90.0)
    round_trip_efficiency: Mapped[float] = mapped_column(Float, nullable=False, default=90.0)
    annual_degradation: Mapped[float] = mapped_column(Float, nullable=False, default=2.0)
    discharge_behaviour: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Arbitrage Maximisation"
    )
    discharge_time: Mapped[str | None] = mapped_column(String(5))  # HH:MM
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="storage_config")  # noqa: F821


class GridConfig(Base):
    __tablename__ = "grid_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    max_import_kw: Mapped[float] = mapped_column(Float, nullable=False)
    max_export_kw: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="grid_config")  # noqa: F821
