from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_project
from app.models.database import get_db
from app.models.analysis_run import AnalysisRun
from app.models.charging import ChargingHub, ChargingProfile
from app.models.cost import CostEntry
from app.models.energy_forecast import EnergyForecast
from app.models.project import Project
from app.models.technical import GenerationConfig, GridConfig, StorageConfig
from app.schemas.project import ProjectCreate, ProjectResponse, ProjectSummary, ProjectUpdate

router = APIRouter()


@router.post(
    "/",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    description=(
        "Create an EV charging project. The site location selects the solar reference "
        "curves; the horizon defaults to the service setting when omitted."
    ),
)
async def create_project(
    body: ProjectCreate,
    db: AsyncSession = Depends(get_db),
):
    project = Project(**body.model_dump())
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


@router.get(
    "/",
    response_model=list[ProjectResponse],
    summary="List projects",
    description="Return all projects, most recently updated first.",
)
async def list_projects(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Project).order_by(Project.updated_at.desc()))
    return result.scalars().all()


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
    description="Retrieve a single project by ID.",
)
async def get_project_detail(project: Project = Depends(get_project)):
    return project


@router.patch(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Update project",
    description="Partially update a project's name, location, or forecast horizon.",
)
async def update_project(
    body: ProjectUpdate,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(project, field, value)

    await db.commit()
    await db.refresh(project)
    return project


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    description=(
        "Delete a project with its technical configuration, charging profiles, hubs, "
        "costs, analysis runs and forecast."
    ),
)
async def delete_project(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(project)
    await db.commit()


async def _exists(db: AsyncSession, model, project_id) -> bool:
    result = await db.execute(select(model.id).where(model.project_id == project_id).limit(1))
    return result.first() is not None


@router.get(
    "/{project_id}/summary",
    response_model=ProjectSummary,
    summary="Get project summary",
    description=(
        "Which technical configurations are present, fleet and charger totals, "
        "the latest analysis status and whether a forecast exists."
    ),
)
async def get_project_summary(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    profiles = (
        await db.execute(select(ChargingProfile).where(ChargingProfile.project_id == project.id))
    ).scalars().all()

    hub_count, charger_kw = (
        await db.execute(
            select(
                func.count(ChargingHub.id),
                func.coalesce(
                    func.sum(ChargingHub.charger_power * ChargingHub.number_of_chargers), 0.0
                ),
            ).where(ChargingHub.project_id == project.id)
        )
    ).one()

    cost_count = (
        await db.execute(
            select(func.count(CostEntry.id)).where(CostEntry.project_id == project.id)
        )
    ).scalar_one()

    latest_status = (
        await db.execute(
            select(AnalysisRun.status)
            .where(AnalysisRun.project_id == project.id)
            .order_by(AnalysisRun.created_at.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    return ProjectSummary(
        project_id=project.id,
        effective_project_life_years=project.effective_project_life_years,
        has_generation=await _exists(db, GenerationConfig, project.id),
        has_storage=await _exists(db, StorageConfig, project.id),
        has_grid=await _exists(db, GridConfig, project.id),
        charging_profile_count=len(profiles),
        charging_hub_count=hub_count,
        total_charger_capacity_kw=float(charger_kw),
        total_annual_charging_kwh=sum(p.total_annual_kwh for p in profiles),
        cost_entry_count=cost_count,
        latest_run_status=latest_status,
        forecast_available=await _exists(db, EnergyForecast, project.id),
    )
