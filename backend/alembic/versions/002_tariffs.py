"""Add energy and sales tariffs; link hubs to sales tariffs.

Revision ID: 002_tariffs
Revises: 001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "002_tariffs"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def _project_fk(unique: bool = False) -> sa.Column:
    return sa.Column(
        "project_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=unique,
    )


def _pricing_columns() -> list[sa.Column]:
    return [
        sa.Column("energy_tariff_type", sa.String(20), nullable=False, server_default="fixed"),
        sa.Column("energy_fixed_price", sa.Float),
        sa.Column("energy_variable_prices", postgresql.JSONB),
        sa.Column("energy_custom_periods", postgresql.JSONB),
    ]


def upgrade() -> None:
    op.create_table(
        "energy_tariffs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(unique=True),
        *_pricing_columns(),
        sa.Column("network_tariff_type", sa.String(20)),
        sa.Column("contracted_power_margin_percent", sa.Float),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "sales_tariffs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(),
        sa.Column("tariff_name", sa.String(255), nullable=False),
        *_pricing_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("project_id", "tariff_name"),
    )
    op.create_index("ix_sales_tariffs_project_id", "sales_tariffs", ["project_id"])

    # Hub links written before tariffs existed point at nothing
    op.execute("UPDATE charging_hubs SET sales_tariff_id = NULL")
    op.create_foreign_key(
        "fk_charging_hubs_sales_tariff_id",
        "charging_hubs",
        "sales_tariffs",
        ["sales_tariff_id"],
        ["id"],
        ondelete="SET NULL",
    )


def downgrade() -> None:
    op.drop_constraint("fk_charging_hubs_sales_tariff_id", "charging_hubs", type_="foreignkey")
    op.drop_table("sales_tariffs")
    op.drop_table("energy_tariffs")
