import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_project
from app.core.timeseries import SeriesDecodeError, decode_series
from app.models.charging import ChargingHub, ChargingProfile
from app.models.database import get_db
from app.models.project import Project
from app.models.tariff import SalesTariff
from app.schemas.charging import (
    ChargingHubCreate,
    ChargingHubResponse,
    ChargingHubUpdate,
    HubProfilesResponse,
)

router = APIRouter()

LINKS = {
    "charging_profile_id": (ChargingProfile, "Charging profile"),
    "sales_tariff_id": (SalesTariff, "Sales tariff"),
}


async def _get_hub(db: AsyncSession, hub_id: uuid.UUID) -> ChargingHub:
    result = await db.execute(select(ChargingHub).where(ChargingHub.id == hub_id))
    hub = result.scalar_one_or_none()
    if not hub:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Charging hub not found")
    return hub


async def _check_links(db: AsyncSession, project_id: uuid.UUID, values: dict) -> None:
    """Linked profile and tariff must belong to the hub's project."""
    for field, (model, label) in LINKS.items():
        linked_id = values.get(field)
        if linked_id is None:
            continue
        result = await db.execute(
            select(model.id).where(model.id == linked_id, model.project_id == project_id)
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found"
            )


def _series_or_none(data: bytes | None) -> list[float] | None:
    try:
        arr = decode_series(data)
    except SeriesDecodeError:
        return None
    return arr.tolist() if arr is not None else None


@router.post(
    "/projects/{project_id}/charging-hubs",
    response_model=ChargingHubResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create charging hub",
    description=(
        "Add a cluster of chargers, optionally linked to a charging profile and a sales "
        "tariff of the same project."
    ),
)
async def create_charging_hub(
    body: ChargingHubCreate,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    values = body.model_dump()
    await _check_links(db, project.id, values)
    hub = ChargingHub(project_id=project.id, **values)
    db.add(hub)
    await db.commit()
    await db.refresh(hub)
    return hub


@router.get(
    "/projects/{project_id}/charging-hubs",
    response_model=list[ChargingHubResponse],
    summary="List charging hubs",
    description="Return the project's hubs ordered by priority.",
)
async def list_charging_hubs(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ChargingHub)
        .where(ChargingHub.project_id == project.id)
        .order_by(ChargingHub.priority, ChargingHub.created_at)
    )
    return result.scalars().all()


@router.get(
    "/charging-hubs/{hub_id}",
    response_model=ChargingHubResponse,
    summary="Get charging hub",
)
async def get_charging_hub(
    hub_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await _get_hub(db, hub_id)


@router.patch(
    "/charging-hubs/{hub_id}",
    response_model=ChargingHubResponse,
    summary="Update charging hub",
)
async def update_charging_hub(
    hub_id: uuid.UUID,
    body: ChargingHubUpdate,
    db: AsyncSession = Depends(get_db),
):
    hub = await _get_hub(db, hub_id)
    updates = body.model_dump(exclude_unset=True)
    await _check_links(db, hub.project_id, updates)

    for field, value in updates.items():
        setattr(hub, field, value)
    await db.commit()
    await db.refresh(hub)
    return hub


@router.delete(
    "/charging-hubs/{hub_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete charging hub",
)
async def delete_charging_hub(
    hub_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    hub = await _get_hub(db, hub_id)
    await db.delete(hub)
    await db.commit()


@router.get(
    "/charging-hubs/{hub_id}/profiles",
    response_model=HubProfilesResponse,
    summary="Get hub demand and capacity profiles",
    description="Return the hub's derived demand and charger capacity series from the last analysis.",
)
async def get_hub_profiles(
    hub_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    hub = await _get_hub(db, hub_id)
    return HubProfilesResponse(
        hub_id=hub.id,
        demand_profile=_series_or_none(hub.demand_profile),
        demand_profile_daily_totals=hub.demand_profile_daily_totals,
        demand_profile_monthly_totals=hub.demand_profile_monthly_totals,
        demand_profile_annual_demand=hub.demand_profile_annual_demand,
        charger_capacity_profile=_series_or_none(hub.charger_capacity_profile),
        charger_capacity_profile_daily_totals=hub.charger_capacity_profile_daily_totals,
    )
