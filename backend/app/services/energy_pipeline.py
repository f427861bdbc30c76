"""Energy analysis pipeline stages.

Every stage is a named operation that reads project configuration and the
outputs of earlier stages from the database, runs one engine computation and
persists its result.  Stages return nothing.  Missing configuration or
missing upstream output makes a stage a logged no-op rather than an error, so
a run always proceeds to the end unless something unexpected is raised.

Stages must be invoked in the order of ``STAGES``; ``run_all_stages`` does
exactly that.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable

import numpy as np
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.core.timeseries import (
    SeriesDecodeError,
    decode_matrix,
    decode_series,
    encode_matrix,
    encode_series,
)
from app.models import (
    ChargingHub,
    EnergyForecast,
    GenerationConfig,
    GridConfig,
    Project,
    StorageConfig,
)
from app.services.solar_reference import get_reference_library
from engine.battery import BatteryLimits, simulate_battery
from engine.demand import capacity_profile, synthesize_demand_profile, zero_profile
from engine.forecast import (
    HubDemand,
    calculate_energy_flows,
    daily_average_battery_charging,
    daily_average_battery_discharging,
    demand_post_solar,
    extrapolate_demand,
    extrapolate_solar,
    solar_consumed,
    solar_excess,
)
from engine.grid import (
    demand_post_battery,
    excess_post_battery,
    grid_export,
    grid_import,
    residual_demand,
)
from engine.solar import ReferenceProfileLibrary, resolve_generation
from engine.timebase import HOURS_PER_YEAR, daily_totals, monthly_totals_from_daily

logger = logging.getLogger(__name__)

BATTERY_SERIES = (
    "battery_start_soc",
    "battery_charge_from_solar",
    "battery_charge_from_grid",
    "battery_discharge",
    "battery_end_soc",
)


# ----------------------------------------------------------------------
# Persistence helpers
# ----------------------------------------------------------------------


def _project(db: Session, project_id: uuid.UUID) -> Project | None:
    project = db.get(Project, project_id)
    if project is None:
        logger.warning("Project %s not found", project_id, extra={"project_id": project_id})
    return project


def _one(db: Session, model, project_id: uuid.UUID):
    return db.execute(select(model).where(model.project_id == project_id)).scalar_one_or_none()


def _hubs(db: Session, project_id: uuid.UUID) -> list[ChargingHub]:
    return list(
        db.execute(
            select(ChargingHub)
            .where(ChargingHub.project_id == project_id)
            .order_by(ChargingHub.priority, ChargingHub.created_at)
        ).scalars().all()
    )


def _forecast(db: Session, project_id: uuid.UUID, create: bool = False) -> EnergyForecast | None:
    forecast = _one(db, EnergyForecast, project_id)
    if forecast is None and create:
        forecast = EnergyForecast(project_id=project_id)
        db.add(forecast)
    return forecast


def _matrix(forecast: EnergyForecast | None, field: str) -> np.ndarray | None:
    """Decoded forecast matrix, or ``None`` if absent or unreadable."""
    if forecast is None:
        return None
    try:
        return decode_matrix(getattr(forecast, field))
    except SeriesDecodeError as exc:
        logger.warning(
            "Ignoring unreadable forecast series %s: %s",
            field,
            exc,
            extra={"project_id": forecast.project_id},
        )
        return None


def _hub_series(hub: ChargingHub, field: str) -> np.ndarray | None:
    """Decoded hourly hub series; an unreadable one is replaced by zeros."""
    try:
        return decode_series(getattr(hub, field), length=HOURS_PER_YEAR)
    except SeriesDecodeError as exc:
        logger.warning(
            "Hub %s has an unreadable %s, using zeros: %s",
            hub.id,
            field,
            exc,
            extra={"project_id": hub.project_id},
        )
        return zero_profile()


def _skip(stage: str, project_id: uuid.UUID, reason: str) -> None:
    logger.info(
        "Skipping %s: %s", stage, reason, extra={"project_id": project_id, "stage": stage}
    )


def _clear(db: Session, forecast: EnergyForecast | None, fields: tuple[str, ...]) -> None:
    if forecast is None:
        return
    for field in fields:
        setattr(forecast, field, None)
    db.commit()


# ----------------------------------------------------------------------
# Solar generation and charging demand
# ----------------------------------------------------------------------


def run_solar_generation_analysis(
    db: Session,
    project_id: uuid.UUID,
    library: ReferenceProfileLibrary | None = None,
) -> None:
    """Resolve and scale the first-year generation profile."""
    project = _project(db, project_id)
    generation = _one(db, GenerationConfig, project_id)
    if project is None or generation is None:
        _skip("run_solar_generation_analysis", project_id, "no generation config")
        return

    library = library or get_reference_library()
    summary = resolve_generation(
        library,
        project.latitude,
        project.longitude,
        generation.orientation,
        generation.tilt,
        generation.system_size_kwp,
        generation.system_losses,
    )
    if summary is None:
        _skip(
            "run_solar_generation_analysis",
            project_id,
            f"no reference profile for {generation.orientation} at tilt {generation.tilt}",
        )
        return

    generation.generation_profile = encode_series(summary.profile_kwh)
    generation.monthly_totals = summary.monthly_totals.tolist()
    generation.hourly_averages = summary.hourly_averages.tolist()
    generation.solar_yield = summary.solar_yield
    db.commit()


def run_charging_demand_analysis(db: Session, project_id: uuid.UUID) -> None:
    """Synthesize each hub's hourly demand from its charging behaviour."""
    for hub in _hubs(db, project_id):
        profile = hub.charging_profile
        behaviour = profile.behaviour if profile is not None else None

        if behaviour is None:
            demand = zero_profile()
        else:
            try:
                demand = synthesize_demand_profile(
                    behaviour.weekday_hourly_data,
                    behaviour.weekend_hourly_data,
                    behaviour.monthly_data,
                )
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "Hub %s has malformed charging behaviour, using zeros: %s",
                    hub.id,
                    exc,
                    extra={"project_id": project_id, "stage": "run_charging_demand_analysis"},
                )
                demand = zero_profile()

        hub.demand_profile = encode_series(demand)
        hub.demand_profile_annual_demand = float(demand.sum())
    db.commit()


def calculate_charging_capacity_profiles(db: Session, project_id: uuid.UUID) -> None:
    for hub in _hubs(db, project_id):
        capacity = capacity_profile(hub.charger_power, hub.number_of_chargers)
        hub.charger_capacity_profile = encode_series(capacity)
        hub.charger_capacity_profile_daily_totals = daily_totals(capacity).tolist()
    db.commit()


def calculate_charging_demand_daily_totals(db: Session, project_id: uuid.UUID) -> None:
    for hub in _hubs(db, project_id):
        demand = _hub_series(hub, "demand_profile")
        if demand is None:
            _skip("calculate_charging_demand_daily_totals", project_id, f"hub {hub.id} has no demand")
            continue
        hub.demand_profile_daily_totals = daily_totals(demand).tolist()
    db.commit()


def calculate_charging_demand_monthly_totals(db: Session, project_id: uuid.UUID) -> None:
    for hub in _hubs(db, project_id):
        if hub.demand_profile_daily_totals is None:
            _skip(
                "calculate_charging_demand_monthly_totals",
                project_id,
                f"hub {hub.id} has no daily totals",
            )
            continue
        hub.demand_profile_monthly_totals = monthly_totals_from_daily(
            hub.demand_profile_daily_totals
        ).tolist()
    db.commit()


# ----------------------------------------------------------------------
# Multi-year extrapolation
# ----------------------------------------------------------------------


def run_solar_forecasting(db: Session, project_id: uuid.UUID, project_life: int) -> None:
    """Degrade the first-year generation profile over the project horizon."""
    generation = _one(db, GenerationConfig, project_id)
    if generation is None or generation.generation_profile is None:
        _skip("run_solar_forecasting", project_id, "no generation profile")
        return
    try:
        base = decode_series(generation.generation_profile, length=HOURS_PER_YEAR)
    except SeriesDecodeError as exc:
        logger.warning(
            "Unreadable generation profile, skipping solar forecast: %s",
            exc,
            extra={"project_id": project_id, "stage": "run_solar_forecasting"},
        )
        return

    forecast = _forecast(db, project_id, create=True)
    forecast.solar_generation = encode_matrix(
        extrapolate_solar(base, generation.annual_degradation, project_life)
    )
    db.commit()


def run_capped_energy_demand(db: Session, project_id: uuid.UUID, project_life: int) -> None:
    """Grow each hub's demand, cap it at charger capacity and sum the hubs."""
    hubs = _hubs(db, project_id)
    if not hubs:
        _skip("run_capped_energy_demand", project_id, "no charging hubs")
        return

    inputs = []
    for hub in hubs:
        demand = _hub_series(hub, "demand_profile")
        capacity = _hub_series(hub, "charger_capacity_profile")
        behaviour = hub.charging_profile.behaviour if hub.charging_profile else None
        inputs.append(
            HubDemand(
                demand_profile=demand if demand is not None else zero_profile(),
                capacity_profile=capacity if capacity is not None else zero_profile(),
                growth_rates=behaviour.annual_growth_rates if behaviour else None,
                name=hub.hub_name,
            )
        )

    gross = extrapolate_demand(inputs, project_life)
    forecast = _forecast(db, project_id, create=True)
    forecast.gross_energy_demand = encode_matrix(gross)
    db.commit()


# ----------------------------------------------------------------------
# Solar self-consumption
# ----------------------------------------------------------------------


def run_generated_solar_energy_consumed(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    solar = _matrix(forecast, "solar_generation")
    demand = _matrix(forecast, "gross_energy_demand")
    if solar is None or demand is None:
        _skip("run_generated_solar_energy_consumed", project_id, "no solar or demand forecast")
        return
    forecast.generated_solar_energy_consumed = encode_matrix(solar_consumed(solar, demand))
    db.commit()


def run_generated_solar_energy_excess_post_consumption(
    db: Session, project_id: uuid.UUID
) -> None:
    forecast = _forecast(db, project_id)
    solar = _matrix(forecast, "solar_generation")
    consumed = _matrix(forecast, "generated_solar_energy_consumed")
    if solar is None or consumed is None:
        _skip(
            "run_generated_solar_energy_excess_post_consumption",
            project_id,
            "no solar consumption",
        )
        return
    forecast.generated_solar_energy_excess_post_consumption = encode_matrix(
        solar_excess(solar, consumed)
    )
    db.commit()


def run_energy_demand_post_solar(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    demand = _matrix(forecast, "gross_energy_demand")
    consumed = _matrix(forecast, "generated_solar_energy_consumed")
    if demand is None or consumed is None:
        _skip("run_energy_demand_post_solar", project_id, "no solar consumption")
        return
    forecast.energy_demand_post_solar = encode_matrix(demand_post_solar(demand, consumed))
    db.commit()


# ----------------------------------------------------------------------
# Battery
# ----------------------------------------------------------------------


def run_battery_forecasting(
    db: Session, project_id: uuid.UUID, project_life: int | None = None
) -> None:
    """Simulate battery operation for each forecast year.

    Without a storage config any earlier battery output is cleared so that
    later stages see no battery.
    """
    forecast = _forecast(db, project_id)
    storage = _one(db, StorageConfig, project_id)
    if storage is None:
        _skip("run_battery_forecasting", project_id, "no storage config")
        _clear(db, forecast, BATTERY_SERIES)
        return

    excess = _matrix(forecast, "generated_solar_energy_excess_post_consumption")
    demand = _matrix(forecast, "energy_demand_post_solar")
    if excess is None or demand is None:
        _skip("run_battery_forecasting", project_id, "no post-solar balance")
        return

    if project_life is None:
        project = _project(db, project_id)
        project_life = project.effective_project_life_years if project else excess.shape[0]

    result = simulate_battery(
        excess,
        demand,
        BatteryLimits(capacity_kwh=storage.capacity_kwh, power_kw=storage.power_kw),
        project_life,
    )
    forecast.battery_start_soc = encode_matrix(result.start_soc)
    forecast.battery_charge_from_solar = encode_matrix(result.charge_from_solar)
    forecast.battery_charge_from_grid = encode_matrix(result.charge_from_grid)
    forecast.battery_discharge = encode_matrix(result.discharge)
    forecast.battery_end_soc = encode_matrix(result.end_soc)
    db.commit()


# ----------------------------------------------------------------------
# Grid
# ----------------------------------------------------------------------


def run_energy_demand_post_solar_battery(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    demand = _matrix(forecast, "energy_demand_post_solar")
    if demand is None:
        _skip("run_energy_demand_post_solar_battery", project_id, "no post-solar demand")
        return
    discharge = _matrix(forecast, "battery_discharge")
    forecast.energy_demand_post_solar_battery = encode_matrix(
        demand_post_battery(demand, discharge)
    )
    db.commit()


def run_grid_import(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    grid = _one(db, GridConfig, project_id)
    if grid is None:
        _skip("run_grid_import", project_id, "no grid config")
        _clear(db, forecast, ("grid_import", "energy_demand_post_solar_battery_grid"))
        return
    demand = _matrix(forecast, "energy_demand_post_solar_battery")
    if demand is None:
        _skip("run_grid_import", project_id, "no post-battery demand")
        return
    forecast.grid_import = encode_matrix(grid_import(demand, grid.max_import_kw))
    db.commit()


def run_energy_demand_post_solar_battery_grid(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    demand = _matrix(forecast, "energy_demand_post_solar_battery")
    imported = _matrix(forecast, "grid_import")
    if demand is None or imported is None:
        _skip("run_energy_demand_post_solar_battery_grid", project_id, "no grid import")
        return
    residual = residual_demand(demand, imported)
    if (residual < 0).any():
        logger.warning(
            "Grid import exceeds remaining demand in %d hours",
            int((residual < 0).sum()),
            extra={"project_id": project_id, "stage": "run_energy_demand_post_solar_battery_grid"},
        )
    forecast.energy_demand_post_solar_battery_grid = encode_matrix(residual)
    db.commit()


def run_generated_solar_energy_excess_post_consumption_battery(
    db: Session, project_id: uuid.UUID
) -> None:
    forecast = _forecast(db, project_id)
    excess = _matrix(forecast, "generated_solar_energy_excess_post_consumption")
    if excess is None:
        _skip(
            "run_generated_solar_energy_excess_post_consumption_battery",
            project_id,
            "no solar excess",
        )
        return
    charge = _matrix(forecast, "battery_charge_from_solar")
    forecast.generated_solar_energy_excess_post_consumption_battery = encode_matrix(
        excess_post_battery(excess, charge)
    )
    db.commit()


def run_grid_export(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    grid = _one(db, GridConfig, project_id)
    if grid is None:
        _skip("run_grid_export", project_id, "no grid config")
        _clear(db, forecast, ("grid_export",))
        return
    excess = _matrix(forecast, "generated_solar_energy_excess_post_consumption_battery")
    if excess is None:
        _skip("run_grid_export", project_id, "no post-battery excess")
        return
    forecast.grid_export = encode_matrix(grid_export(excess, grid.max_export_kw))
    db.commit()


# ----------------------------------------------------------------------
# First-year aggregates
# ----------------------------------------------------------------------


def _first_year(forecast: EnergyForecast, field: str) -> np.ndarray | None:
    matrix = _matrix(forecast, field)
    if matrix is None or matrix.shape[0] == 0:
        return None
    return matrix[0]


def run_energy_flow_analysis(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    if forecast is None:
        _skip("run_energy_flow_analysis", project_id, "no forecast")
        return

    flows = calculate_energy_flows(
        solar_consumed=_first_year(forecast, "generated_solar_energy_consumed"),
        charge_from_solar=_first_year(forecast, "battery_charge_from_solar"),
        grid_export=_first_year(forecast, "grid_export"),
        discharge=_first_year(forecast, "battery_discharge"),
        charge_from_grid=_first_year(forecast, "battery_charge_from_grid"),
        grid_import=_first_year(forecast, "grid_import"),
    )
    for name, value in flows.as_dict().items():
        setattr(forecast, f"flow_{name}", value)
    db.commit()


def run_daily_average_battery_charge(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    charge = _first_year(forecast, "battery_charge_from_solar") if forecast else None
    if charge is None:
        _skip("run_daily_average_battery_charge", project_id, "no battery charging")
        if forecast is not None and forecast.daily_average_battery_charging is not None:
            forecast.daily_average_battery_charging = None
            db.commit()
        return

    profile = daily_average_battery_charging(
        charge, _first_year(forecast, "battery_charge_from_grid")
    )
    if profile is None:
        _skip("run_daily_average_battery_charge", project_id, "less than one day of data")
        return
    forecast.daily_average_battery_charging = profile.tolist()
    db.commit()


def run_daily_average_battery_discharge(db: Session, project_id: uuid.UUID) -> None:
    forecast = _forecast(db, project_id)
    discharge = _first_year(forecast, "battery_discharge") if forecast else None
    if discharge is None:
        _skip("run_daily_average_battery_discharge", project_id, "no battery discharge")
        if forecast is not None and forecast.daily_average_battery_discharging is not None:
            forecast.daily_average_battery_discharging = None
            db.commit()
        return

    profile = daily_average_battery_discharging(discharge)
    if profile is None:
        _skip("run_daily_average_battery_discharge", project_id, "less than one day of data")
        return
    forecast.daily_average_battery_discharging = profile.tolist()
    db.commit()


# ----------------------------------------------------------------------
# Orchestration
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Stage:
    name: str
    func: Callable[..., None]
    uses_project_life: bool = False

    def run(self, db: Session, project_id: uuid.UUID, project_life: int) -> None:
        if self.uses_project_life:
            self.func(db, project_id, project_life)
        else:
            self.func(db, project_id)


STAGES: tuple[Stage, ...] = (
    Stage("run_solar_generation_analysis", run_solar_generation_analysis),
    Stage("run_charging_demand_analysis", run_charging_demand_analysis),
    Stage("calculate_charging_capacity_profiles", calculate_charging_capacity_profiles),
    Stage("calculate_charging_demand_daily_totals", calculate_charging_demand_daily_totals),
    Stage("calculate_charging_demand_monthly_totals", calculate_charging_demand_monthly_totals),
    Stage("run_solar_forecasting", run_solar_forecasting, uses_project_life=True),
    Stage("run_capped_energy_demand", run_capped_energy_demand, uses_project_life=True),
    Stage("run_generated_solar_energy_consumed", run_generated_solar_energy_consumed),
    Stage(
        "run_generated_solar_energy_excess_post_consumption",
        run_generated_solar_energy_excess_post_consumption,
    ),
    Stage("run_energy_demand_post_solar", run_energy_demand_post_solar),
    Stage("run_battery_forecasting", run_battery_forecasting, uses_project_life=True),
    Stage("run_energy_demand_post_solar_battery", run_energy_demand_post_solar_battery),
    Stage("run_grid_import", run_grid_import),
    Stage("run_energy_demand_post_solar_battery_grid", run_energy_demand_post_solar_battery_grid),
    Stage(
        "run_generated_solar_energy_excess_post_consumption_battery",
        run_generated_solar_energy_excess_post_consumption_battery,
    ),
    Stage("run_grid_export", run_grid_export),
    Stage("run_energy_flow_analysis", run_energy_flow_analysis),
    Stage("run_daily_average_battery_charge", run_daily_average_battery_charge),
    Stage("run_daily_average_battery_discharge", run_daily_average_battery_discharge),
)

STAGES_BY_NAME: dict[str, Stage] = {stage.name: stage for stage in STAGES}


def resolve_project_life(db: Session, project_id: uuid.UUID) -> int:
    project = db.get(Project, project_id)
    if project is None:
        return settings.project_life_years
    return project.effective_project_life_years


def run_stage(
    db: Session,
    project_id: uuid.UUID,
    name: str,
    project_life: int | None = None,
) -> None:
    """Run a single named stage.  Raises KeyError for an unknown name."""
    stage = STAGES_BY_NAME[name]
    if project_life is None:
        project_life = resolve_project_life(db, project_id)
    stage.run(db, project_id, project_life)


def run_all_stages(
    db: Session,
    project_id: uuid.UUID,
    project_life: int | None = None,
    on_stage: Callable[[int, Stage], None] | None = None,
) -> None:
    """Run every stage in order.

    ``on_stage(index, stage)`` is called before each stage.  An exception in
    a stage propagates; outputs of the stages before it stay persisted.
    """
    if project_life is None:
        project_life = resolve_project_life(db, project_id)

    for index, stage in enumerate(STAGES):
        if on_stage is not None:
            on_stage(index, stage)
        logger.debug(
            "Running %s", stage.name, extra={"project_id": project_id, "stage": stage.name}
        )
        stage.run(db, project_id, project_life)

    logger.info(
        "Energy analysis finished (%d stages, %d years)",
        len(STAGES),
        project_life,
        extra={"project_id": project_id},
    )
