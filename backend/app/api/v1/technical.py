from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_project
from app.core.timeseries import SeriesDecodeError, decode_series
from app.models.database import get_db
from app.models.project import Project
from app.models.technical import GenerationConfig, GridConfig, StorageConfig
from app.schemas.technical import (
    GenerationConfigIn,
    GenerationConfigResponse,
    GenerationResultsResponse,
    GridConfigIn,
    GridConfigResponse,
    StorageConfigIn,
    StorageConfigResponse,
)

router = APIRouter()


async def _get_config(db: AsyncSession, model, project: Project):
    result = await db.execute(select(model).where(model.project_id == project.id))
    return result.scalar_one_or_none()


async def _upsert(db: AsyncSession, model, project: Project, values: dict):
    config = await _get_config(db, model, project)
    if config is None:
        config = model(project_id=project.id, **values)
        db.add(config)
    else:
        for field, value in values.items():
            setattr(config, field, value)
    await db.commit()
    await db.refresh(config)
    return config


async def _get_or_404(db: AsyncSession, model, project: Project, label: str):
    config = await _get_config(db, model, project)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not configured"
        )
    return config


# ---------------------------------------------------------------------------
# Solar generation
# ---------------------------------------------------------------------------


@router.put(
    "/{project_id}/generation",
    response_model=GenerationConfigResponse,
    summary="Set solar generation config",
    description="Create or replace the project's PV array configuration.",
)
async def put_generation(
    body: GenerationConfigIn,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    return await _upsert(db, GenerationConfig, project, body.model_dump())


@router.get(
    "/{project_id}/generation",
    response_model=GenerationConfigResponse,
    summary="Get solar generation config",
)
async def get_generation(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    return await _get_or_404(db, GenerationConfig, project, "Solar generation")


@router.get(
    "/{project_id}/generation/results",
    response_model=GenerationResultsResponse,
    summary="Get solar generation results",
    description="Return the scaled first-year generation profile and its monthly and hourly summaries.",
)
async def get_generation_results(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    config = await _get_or_404(db, GenerationConfig, project, "Solar generation")
    try:
        profile = decode_series(config.generation_profile)
    except SeriesDecodeError:
        profile = None
    return GenerationResultsResponse(
        generation_profile=profile.tolist() if profile is not None else None,
        monthly_totals=config.monthly_totals,
        hourly_averages=config.hourly_averages,
        solar_yield=config.solar_yield,
    )


@router.delete(
    "/{project_id}/generation",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove solar generation config",
)
async def delete_generation(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    config = await _get_or_404(db, GenerationConfig, project, "Solar generation")
    await db.delete(config)
    await db.commit()


# ---------------------------------------------------------------------------
# Battery storage
# ---------------------------------------------------------------------------


@router.put(
    "/{project_id}/storage",
    response_model=StorageConfigResponse,
    summary="Set battery storage config",
    description="Create or replace the project's battery. Without one the analysis skips the battery.",
)
async def put_storage(
    body: StorageConfigIn,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    return await _upsert(db, StorageConfig, project, body.model_dump())


@router.get(
    "/{project_id}/storage",
    response_model=StorageConfigResponse,
    summary="Get battery storage config",
)
async def get_storage(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    return await _get_or_404(db, StorageConfig, project, "Battery storage")


@router.delete(
    "/{project_id}/storage",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove battery storage config",
)
async def delete_storage(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    config = await _get_or_404(db, StorageConfig, project, "Battery storage")
    await db.delete(config)
    await db.commit()


# ---------------------------------------------------------------------------
# Grid connection
# ---------------------------------------------------------------------------


@router.put(
    "/{project_id}/grid",
    response_model=GridConfigResponse,
    summary="Set grid connection config",
    description="Create or replace the project's grid import and export limits.",
)
async def put_grid(
    body: GridConfigIn,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    return await _upsert(db, GridConfig, project, body.model_dump())


@router.get(
    "/{project_id}/grid",
    response_model=GridConfigResponse,
    summary="Get grid connection config",
)
async def get_grid(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    return await _get_or_404(db, GridConfig, project, "Grid connection")


@router.delete(
    "/{project_id}/grid",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove grid connection config",
)
async def delete_grid(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    config = await _get_or_404(db, GridConfig, project, "Grid connection")
    await db.delete(config)
    await db.commit()
