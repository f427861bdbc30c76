import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_project
from app.models.database import get_db
from app.models.project import Project
from app.models.tariff import EnergyTariff, SalesTariff
from app.schemas.tariff import (
    EnergyTariffIn,
    EnergyTariffResponse,
    SalesTariffCreate,
    SalesTariffResponse,
    SalesTariffUpdate,
)

router = APIRouter()


async def _get_energy_tariff(db: AsyncSession, project: Project) -> EnergyTariff | None:
    result = await db.execute(select(EnergyTariff).where(EnergyTariff.project_id == project.id))
    return result.scalar_one_or_none()


async def _get_sales_tariff(db: AsyncSession, tariff_id: uuid.UUID) -> SalesTariff:
    result = await db.execute(select(SalesTariff).where(SalesTariff.id == tariff_id))
    tariff = result.scalar_one_or_none()
    if not tariff:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sales tariff not found")
    return tariff


async def _check_name_free(
    db: AsyncSession,
    project_id: uuid.UUID,
    name: str,
    exclude_id: uuid.UUID | None = None,
) -> None:
    query = select(SalesTariff.id).where(
        SalesTariff.project_id == project_id, SalesTariff.tariff_name == name
    )
    if exclude_id is not None:
        query = query.where(SalesTariff.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A sales tariff named '{name}' already exists",
        )


# ---------------------------------------------------------------------------
# Energy purchase and network tariff
# ---------------------------------------------------------------------------


@router.put(
    "/projects/{project_id}/energy-tariff",
    response_model=EnergyTariffResponse,
    summary="Set energy tariff",
    description=(
        "Create or replace the project's grid energy price and network contract. "
        "Only the prices of the selected pricing type are stored."
    ),
)
async def put_energy_tariff(
    body: EnergyTariffIn,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    tariff = await _get_energy_tariff(db, project)
    if tariff is None:
        tariff = EnergyTariff(project_id=project.id)
        db.add(tariff)
    for field, value in body.model_dump().items():
        setattr(tariff, field, value)
    await db.commit()
    await db.refresh(tariff)
    return tariff


@router.get(
    "/projects/{project_id}/energy-tariff",
    response_model=EnergyTariffResponse,
    summary="Get energy tariff",
)
async def get_energy_tariff(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    tariff = await _get_energy_tariff(db, project)
    if tariff is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Energy tariff not configured"
        )
    return tariff


@router.delete(
    "/projects/{project_id}/energy-tariff",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove energy tariff",
)
async def delete_energy_tariff(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    tariff = await _get_energy_tariff(db, project)
    if tariff is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Energy tariff not configured"
        )
    await db.delete(tariff)
    await db.commit()


# ---------------------------------------------------------------------------
# Sales tariffs
# ---------------------------------------------------------------------------


@router.post(
    "/projects/{project_id}/sales-tariffs",
    response_model=SalesTariffResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create sales tariff",
    description="Add a named price charged at the hubs linked to it. Names are unique per project.",
)
async def create_sales_tariff(
    body: SalesTariffCreate,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    await _check_name_free(db, project.id, body.tariff_name)
    tariff = SalesTariff(project_id=project.id, **body.model_dump())
    db.add(tariff)
    await db.commit()
    await db.refresh(tariff)
    return tariff


@router.get(
    "/projects/{project_id}/sales-tariffs",
    response_model=list[SalesTariffResponse],
    summary="List sales tariffs",
    description="Return the project's sales tariffs ordered by name.",
)
async def list_sales_tariffs(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(SalesTariff)
        .where(SalesTariff.project_id == project.id)
        .order_by(SalesTariff.tariff_name)
    )
    return result.scalars().all()


@router.get(
    "/sales-tariffs/{tariff_id}",
    response_model=SalesTariffResponse,
    summary="Get sales tariff",
)
async def get_sales_tariff(
    tariff_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await _get_sales_tariff(db, tariff_id)


@router.patch(
    "/sales-tariffs/{tariff_id}",
    response_model=SalesTariffResponse,
    summary="Update sales tariff",
)
async def update_sales_tariff(
    tariff_id: uuid.UUID,
    body: SalesTariffUpdate,
    db: AsyncSession = Depends(get_db),
):
    tariff = await _get_sales_tariff(db, tariff_id)
    merged = {
        "tariff_name": tariff.tariff_name,
        "energy_tariff_type": tariff.energy_tariff_type,
        "energy_fixed_price": tariff.energy_fixed_price,
        "energy_variable_prices": tariff.energy_variable_prices,
        "energy_custom_periods": tariff.energy_custom_periods,
        **body.model_dump(exclude_unset=True),
    }
    try:
        validated = SalesTariffCreate(**merged)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )
    await _check_name_free(db, tariff.project_id, validated.tariff_name, exclude_id=tariff.id)

    for field, value in validated.model_dump().items():
        setattr(tariff, field, value)
    await db.commit()
    await db.refresh(tariff)
    return tariff


@router.delete(
    "/sales-tariffs/{tariff_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete sales tariff",
    description="Remove a sales tariff. Hubs linked to it keep running without one.",
)
async def delete_sales_tariff(
    tariff_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    tariff = await _get_sales_tariff(db, tariff_id)
    await db.delete(tariff)
    await db.commit()
