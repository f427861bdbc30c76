import uuid
from datetime import datetime

from sqlalchemy import String, Float, ForeignKey, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class CostEntry(Base):
    __tablename__ = "cost_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    cost_name: Mapped[str] = mapped_column(String(255), nullable=False)
    cost_type: Mapped[str] = mapped_column(String(10), nullable=False)  # Capex, Opex
    cost_subtype: Mapped[str] = mapped_column(String(100), nullable=False)
    charger_hub_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("charging_hubs.id", ondelete="SET NULL")
    )
    cost: Mapped[float] = mapped_column(Float, nullable=False)
    cost_escalation: Mapped[float | None] = mapped_column(Float)  # %/year, Opex only
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    project: Mapped["Project"] = relationship(back_populates="cost_entries")  # noqa: F821
