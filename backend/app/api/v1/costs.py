import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_project
from app.models.charging import ChargingHub
from app.models.cost import CostEntry
from app.models.database import get_db
from app.models.project import Project
from app.schemas.cost import CostEntryCreate, CostEntryResponse, CostEntryUpdate, CostType

router = APIRouter()


async def _get_cost(db: AsyncSession, cost_id: uuid.UUID) -> CostEntry:
    result = await db.execute(select(CostEntry).where(CostEntry.id == cost_id))
    entry = result.scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cost entry not found")
    return entry


async def _check_hub(db: AsyncSession, project_id: uuid.UUID, hub_id: uuid.UUID | None) -> None:
    if hub_id is None:
        return
    result = await db.execute(
        select(ChargingHub.id).where(ChargingHub.id == hub_id, ChargingHub.project_id == project_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Charging hub not found")


@router.post(
    "/projects/{project_id}/costs",
    response_model=CostEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create cost entry",
    description=(
        "Add a Capex or Opex line item. Escalation is kept for Opex only and the "
        "hub link for charger subtypes only."
    ),
)
async def create_cost(
    body: CostEntryCreate,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    await _check_hub(db, project.id, body.charger_hub_id)
    entry = CostEntry(project_id=project.id, **body.model_dump())
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


@router.get(
    "/projects/{project_id}/costs",
    response_model=list[CostEntryResponse],
    summary="List cost entries",
    description="Return the project's cost entries, optionally filtered by cost type.",
)
async def list_costs(
    cost_type: CostType | None = Query(default=None),
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    query = select(CostEntry).where(CostEntry.project_id == project.id)
    if cost_type is not None:
        query = query.where(CostEntry.cost_type == cost_type)
    result = await db.execute(query.order_by(CostEntry.created_at))
    return result.scalars().all()


@router.patch(
    "/costs/{cost_id}",
    response_model=CostEntryResponse,
    summary="Update cost entry",
)
async def update_cost(
    cost_id: uuid.UUID,
    body: CostEntryUpdate,
    db: AsyncSession = Depends(get_db),
):
    entry = await _get_cost(db, cost_id)
    merged = {
        "cost_name": entry.cost_name,
        "cost_type": entry.cost_type,
        "cost_subtype": entry.cost_subtype,
        "charger_hub_id": entry.charger_hub_id,
        "cost": entry.cost,
        "cost_escalation": entry.cost_escalation,
        **body.model_dump(exclude_unset=True),
    }
    try:
        validated = CostEntryCreate(**merged)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )
    await _check_hub(db, entry.project_id, validated.charger_hub_id)

    for field, value in validated.model_dump().items():
        setattr(entry, field, value)
    await db.commit()
    await db.refresh(entry)
    return entry


@router.delete(
    "/costs/{cost_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete cost entry",
)
async def delete_cost(
    cost_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    entry = await _get_cost(db, cost_id)
    await db.delete(entry)
    await db.commit()
