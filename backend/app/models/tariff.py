import uuid
from datetime import datetime

from sqlalchemy import String, Float, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class EnergyTariff(Base):
    """Purchase tariff for grid energy and the network access contract."""

    __tablename__ = "energy_tariffs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    energy_tariff_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="fixed"
    )  # fixed, variable, custom
    energy_fixed_price: Mapped[float | None] = mapped_column(Float)  # €/MWh
    energy_variable_prices: Mapped[dict | None] = mapped_column(JSONB)  # {"P1": €/MWh, ...}
    energy_custom_periods: Mapped[list | None] = mapped_column(JSONB)
    network_tariff_type: Mapped[str | None] = mapped_column(String(20))
    contracted_power_margin_percent: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="energy_tariff")  # noqa: F821


class SalesTariff(Base):
    """Price charged to drivers at the hubs linked to it."""

    __tablename__ = "sales_tariffs"
    __table_args__ = (UniqueConstraint("project_id", "tariff_name"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    tariff_name: Mapped[str] = mapped_column(String(255), nullable=False)
    energy_tariff_type: Mapped[str] = mapped_column(String(20), nullable=False, default="fixed")
    energy_fixed_price: Mapped[float | None] = mapped_column(Float)
    energy_variable_prices: Mapped[dict | None] = mapped_column(JSONB)
    energy_custom_periods: Mapped[list | None] = mapped_column(JSONB)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="sales_tariffs")  # noqa: F821
    hubs: Mapped[list["ChargingHub"]] = relationship(back_populates="sales_tariff")  # noqa: F821
