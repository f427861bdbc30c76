import logging
import math
import uuid
from datetime import datetime, timezone

import numpy as np
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_project
from app.core.rate_limit import analysis_limiter, reference_limiter
from app.core.timeseries import SeriesDecodeError, decode_matrix
from app.models.analysis_run import AnalysisRun
from app.models.database import get_db
from app.models.energy_forecast import FORECAST_SERIES, EnergyForecast
from app.models.project import Project
from app.schemas.energy_analysis import (
    AnalysisRunCreate,
    AnalysisRunResponse,
    EnergyFlowsResponse,
    EnergyForecastResponse,
    ForecastTimeseriesResponse,
    StageRunResponse,
)
from app.services.energy_pipeline import STAGES, STAGES_BY_NAME

logger = logging.getLogger(__name__)

router = APIRouter()

ACTIVE_STATUSES = ("pending", "running")


def _decode_all(forecast: EnergyForecast) -> dict[str, np.ndarray]:
    series: dict[str, np.ndarray] = {}
    for name in FORECAST_SERIES:
        try:
            matrix = decode_matrix(getattr(forecast, name))
        except SeriesDecodeError:
            logger.warning(
                "Unreadable forecast series %s", name, extra={"project_id": forecast.project_id}
            )
            continue
        if matrix is not None:
            series[name] = matrix
    return series


def _json_safe(values: np.ndarray) -> list[float]:
    return [0.0 if (math.isinf(v) or math.isnan(v)) else v for v in values.tolist()]


async def _ensure_idle(db: AsyncSession, project_id: uuid.UUID) -> None:
    result = await db.execute(
        select(AnalysisRun.id).where(
            AnalysisRun.project_id == project_id, AnalysisRun.status.in_(ACTIVE_STATUSES)
        )
    )
    if result.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An energy analysis is already running for this project",
        )


async def _get_forecast(db: AsyncSession, project_id: uuid.UUID) -> EnergyForecast:
    result = await db.execute(
        select(EnergyForecast).where(EnergyForecast.project_id == project_id)
    )
    forecast = result.scalar_one_or_none()
    if not forecast:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No energy forecast for this project"
        )
    return forecast


@router.post(
    "/projects/{project_id}/energy-analysis",
    response_model=AnalysisRunResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Run energy analysis",
    description=(
        "Queue a full recomputation of the project's energy forecast. All derived hub "
        "profiles and the forecast are overwritten when the run completes."
    ),
)
async def run_energy_analysis(
    request: Request,
    body: AnalysisRunCreate | None = None,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    analysis_limiter.check(request)
    await _ensure_idle(db, project.id)

    project_life = (
        body.project_life_years
        if body is not None and body.project_life_years is not None
        else project.effective_project_life_years
    )
    run = AnalysisRun(project_id=project.id, project_life_years=project_life)
    db.add(run)
    await db.commit()
    await db.refresh(run)

    # Dispatch celery task
    from app.worker.tasks import run_energy_analysis as run_energy_analysis_task

    try:
        task = run_energy_analysis_task.delay(str(run.id))
    except Exception as e:
        run.status = "failed"
        run.error_message = f"Could not queue analysis: {e}"[:2000]
        run.completed_at = datetime.now(timezone.utc)
        await db.commit()
        logger.exception(
            "Failed to queue energy analysis", extra={"project_id": project.id, "run_id": run.id}
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analysis queue unavailable, try again later",
        ) from e
    run.celery_task_id = task.id
    await db.commit()
    await db.refresh(run)

    return run


@router.get(
    "/projects/{project_id}/energy-analysis/runs",
    response_model=list[AnalysisRunResponse],
    summary="List analysis runs",
    description="Return the project's analysis runs, newest first.",
)
async def list_analysis_runs(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(AnalysisRun)
        .where(AnalysisRun.project_id == project.id)
        .order_by(AnalysisRun.created_at.desc())
    )
    return result.scalars().all()


@router.get(
    "/analysis-runs/{run_id}",
    response_model=AnalysisRunResponse,
    summary="Get analysis run status",
)
async def get_analysis_run(
    run_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(AnalysisRun).where(AnalysisRun.id == run_id))
    run = result.scalar_one_or_none()
    if not run:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis run not found")
    return run


@router.get(
    "/energy-analysis/stages",
    response_model=list[str],
    summary="List pipeline stages",
    description="Names of the analysis stages in execution order.",
)
async def list_stages():
    return [stage.name for stage in STAGES]


@router.post(
    "/projects/{project_id}/energy-analysis/stages/{stage}",
    response_model=StageRunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Run a single stage",
    description="Queue one named analysis stage. Earlier stages' outputs must already exist.",
)
async def run_single_stage(
    stage: str,
    request: Request,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    if stage not in STAGES_BY_NAME:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown stage")
    analysis_limiter.check(request)
    await _ensure_idle(db, project.id)

    from app.worker.tasks import run_energy_analysis_stage

    task = run_energy_analysis_stage.delay(str(project.id), stage)
    return StageRunResponse(stage=stage, task_id=task.id)


@router.post(
    "/projects/{project_id}/solar-reference",
    response_model=StageRunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Build solar reference profiles",
    description="Fetch PVGIS reference curves for the project's location into the solar dataset.",
)
async def build_solar_reference(
    request: Request,
    project: Project = Depends(get_project),
):
    reference_limiter.check(request)

    from app.worker.tasks import build_solar_reference_profiles

    task = build_solar_reference_profiles.delay(project.latitude, project.longitude)
    return StageRunResponse(stage="build_solar_reference_profiles", task_id=task.id)


@router.get(
    "/projects/{project_id}/energy-forecast",
    response_model=EnergyForecastResponse,
    summary="Get energy forecast summary",
    description="First-year energy flows, average-day battery profiles and the forecast horizon.",
)
async def get_energy_forecast(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    forecast = await _get_forecast(db, project.id)
    series = _decode_all(forecast)
    return EnergyForecastResponse(
        project_id=project.id,
        years=max((m.shape[0] for m in series.values()), default=0),
        available_series=list(series),
        flows=EnergyFlowsResponse(
            solar_to_chargers=forecast.flow_solar_to_chargers,
            solar_to_battery=forecast.flow_solar_to_battery,
            solar_to_grid=forecast.flow_solar_to_grid,
            battery_to_chargers=forecast.flow_battery_to_chargers,
            grid_to_battery=forecast.flow_grid_to_battery,
            grid_to_chargers=forecast.flow_grid_to_chargers,
        ),
        daily_average_battery_charging=forecast.daily_average_battery_charging,
        daily_average_battery_discharging=forecast.daily_average_battery_discharging,
        updated_at=forecast.updated_at,
    )


@router.get(
    "/projects/{project_id}/energy-forecast/timeseries",
    response_model=ForecastTimeseriesResponse,
    summary="Get forecast time series",
    description="Hourly values of every available forecast series for one forecast year.",
)
async def get_forecast_timeseries(
    year: int = Query(default=0, ge=0),
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    forecast = await _get_forecast(db, project.id)
    series = {
        name: _json_safe(matrix[year])
        for name, matrix in _decode_all(forecast).items()
        if year < matrix.shape[0]
    }
    if not series:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"No forecast data for year {year}"
        )
    return ForecastTimeseriesResponse(project_id=project.id, year=year, series=series)
