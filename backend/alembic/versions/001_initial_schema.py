"""Initial schema for the EV energy planner.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "001_initial"
down_revision = None
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


def upgrade() -> None:
    # Projects
    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000)),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("project_life_years", sa.Integer),
        sa.Column("currency", sa.String(3), default="EUR"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Technical configuration
    op.create_table(
        "generation_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(unique=True),
        sa.Column("system_size_kwp", sa.Float, nullable=False),
        sa.Column("panel_type", sa.String(50), nullable=False),
        sa.Column("orientation", sa.String(2), nullable=False),
        sa.Column("tilt", sa.Float, nullable=False),
        sa.Column("system_losses", sa.Float, nullable=False),
        sa.Column("annual_degradation", sa.Float, nullable=False),
        sa.Column("generation_profile", sa.LargeBinary),
        sa.Column("monthly_totals", postgresql.JSONB),
        sa.Column("hourly_averages", postgresql.JSONB),
        sa.Column("solar_yield", sa.Float),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "storage_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(unique=True),
        sa.Column("capacity_kwh", sa.Float, nullable=False),
        sa.Column("power_kw", sa.Float, nullable=False),
        sa.Column("battery_chemistry", sa.String(50), nullable=False),
        sa.Column("depth_of_discharge", sa.Float, nullable=False),
        sa.Column("round_trip_efficiency", sa.Float, nullable=False),
        sa.Column("annual_degradation", sa.Float, nullable=False),
        sa.Column("discharge_behaviour", sa.String(50), nullable=False),
        sa.Column("discharge_time", sa.String(5)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "grid_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(unique=True),
        sa.Column("max_import_kw", sa.Float, nullable=False),
        sa.Column("max_export_kw", sa.Float, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Charging
    op.create_table(
        "charging_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(),
        sa.Column("profile_name", sa.String(255), nullable=False),
        sa.Column("initial_number_of_vehicles", sa.Integer, nullable=False),
        sa.Column("average_charging_percentage", sa.Float, nullable=False),
        sa.Column("average_battery_size", sa.Float, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_charging_profiles_project_id", "charging_profiles", ["project_id"])
    op.create_table(
        "charging_profile_behaviours",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "charging_profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("charging_profiles.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("weekday_hourly_data", postgresql.JSONB, nullable=False),
        sa.Column("weekend_hourly_data", postgresql.JSONB, nullable=False),
        sa.Column("monthly_data", postgresql.JSONB, nullable=False),
        sa.Column("weekday_weekend_scale", sa.Float, nullable=False),
        sa.Column("selected_profile", sa.String(50), nullable=False),
        sa.Column("annual_growth_rates", postgresql.JSONB, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "charging_hubs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(),
        sa.Column("hub_name", sa.String(255), nullable=False),
        sa.Column("charger_power", sa.Float, nullable=False),
        sa.Column("number_of_chargers", sa.Integer, nullable=False),
        sa.Column("priority", sa.Integer, nullable=False),
        sa.Column(
            "charging_profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("charging_profiles.id", ondelete="SET NULL"),
        ),
        sa.Column("sales_tariff_id", postgresql.UUID(as_uuid=True)),
        sa.Column("demand_profile", sa.LargeBinary),
        sa.Column("demand_profile_daily_totals", postgresql.JSONB),
        sa.Column("demand_profile_monthly_totals", postgresql.JSONB),
        sa.Column("demand_profile_annual_demand", sa.Float),
        sa.Column("charger_capacity_profile", sa.LargeBinary),
        sa.Column("charger_capacity_profile_daily_totals", postgresql.JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_charging_hubs_project_id", "charging_hubs", ["project_id"])

    # Energy forecast
    op.create_table(
        "energy_forecasts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(unique=True),
        sa.Column("solar_generation", sa.LargeBinary),
        sa.Column("gross_energy_demand", sa.LargeBinary),
        sa.Column("generated_solar_energy_consumed", sa.LargeBinary),
        sa.Column("generated_solar_energy_excess_post_consumption", sa.LargeBinary),
        sa.Column("energy_demand_post_solar", sa.LargeBinary),
        sa.Column("battery_start_soc", sa.LargeBinary),
        sa.Column("battery_charge_from_solar", sa.LargeBinary),
        sa.Column("battery_charge_from_grid", sa.LargeBinary),
        sa.Column("battery_discharge", sa.LargeBinary),
        sa.Column("battery_end_soc", sa.LargeBinary),
        sa.Column("energy_demand_post_solar_battery", sa.LargeBinary),
        sa.Column("grid_import", sa.LargeBinary),
        sa.Column("energy_demand_post_solar_battery_grid", sa.LargeBinary),
        sa.Column("generated_solar_energy_excess_post_consumption_battery", sa.LargeBinary),
        sa.Column("grid_export", sa.LargeBinary),
        sa.Column("flow_solar_to_chargers", sa.Float),
        sa.Column("flow_solar_to_battery", sa.Float),
        sa.Column("flow_solar_to_grid", sa.Float),
        sa.Column("flow_battery_to_chargers", sa.Float),
        sa.Column("flow_grid_to_battery", sa.Float),
        sa.Column("flow_grid_to_chargers", sa.Float),
        sa.Column("daily_average_battery_charging", postgresql.JSONB),
        sa.Column("daily_average_battery_discharging", postgresql.JSONB),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Costs
    op.create_table(
        "cost_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(),
        sa.Column("cost_name", sa.String(255), nullable=False),
        sa.Column("cost_type", sa.String(10), nullable=False),
        sa.Column("cost_subtype", sa.String(100), nullable=False),
        sa.Column(
            "charger_hub_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("charging_hubs.id", ondelete="SET NULL"),
        ),
        sa.Column("cost", sa.Float, nullable=False),
        sa.Column("cost_escalation", sa.Float),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Analysis runs
    op.create_table(
        "analysis_runs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _project_fk(),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("project_life_years", sa.Integer, nullable=False),
        sa.Column("celery_task_id", sa.String(255)),
        sa.Column("current_stage", sa.String(100)),
        sa.Column("progress", sa.Float, default=0.0),
        sa.Column("error_message", sa.String(2000)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_analysis_runs_project_status", "analysis_runs", ["project_id", "status"])


def downgrade() -> None:
    op.drop_table("analysis_runs")
    op.drop_table("cost_entries")
    op.drop_table("energy_forecasts")
    op.drop_table("charging_hubs")
    op.drop_table("charging_profile_behaviours")
    op.drop_table("charging_profiles")
    op.drop_table("grid_configs")
    op.drop_table("storage_configs")
    op.drop_table("generation_configs")
    op.drop_table("projects")
