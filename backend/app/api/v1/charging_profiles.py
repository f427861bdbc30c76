import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import get_project
from app.models.charging import ChargingProfile, ChargingProfileBehaviour
from app.models.database import get_db
from app.models.project import Project
from app.schemas.charging import (
    ApplyTemplateRequest,
    BehaviourResponse,
    BehaviourUpdate,
    CalibrateRequest,
    ChargingProfileCreate,
    ChargingProfileResponse,
    ChargingProfileUpdate,
    GrowthRequest,
)
from engine.demand import (
    CHARGING_TEMPLATES,
    DEFAULT_TEMPLATE,
    calibrate_monthly,
    calibrate_weekday,
    calibrate_weekend,
    default_behaviour,
    default_growth,
    exponential_growth,
    linear_growth,
    s_curve_growth,
)

router = APIRouter()


def _seed_behaviour(
    behaviour: ChargingProfileBehaviour,
    total_annual_kwh: float,
    template: str,
    scale: float,
) -> None:
    arrays = default_behaviour(total_annual_kwh, scale, template)
    behaviour.weekday_hourly_data = arrays.weekday_hourly.tolist()
    behaviour.weekend_hourly_data = arrays.weekend_hourly.tolist()
    behaviour.monthly_data = arrays.monthly.tolist()
    behaviour.weekday_weekend_scale = scale
    behaviour.selected_profile = template


async def _load_profile(db: AsyncSession, profile_id: uuid.UUID) -> ChargingProfile:
    result = await db.execute(
        select(ChargingProfile)
        .options(selectinload(ChargingProfile.behaviour))
        .where(ChargingProfile.id == profile_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Charging profile not found"
        )
    return profile


async def _load_with_behaviour(db: AsyncSession, profile_id: uuid.UUID) -> ChargingProfile:
    """Profile with its behaviour loaded, created with defaults if it is missing."""
    profile = await _load_profile(db, profile_id)
    if profile.behaviour is None:
        behaviour = ChargingProfileBehaviour(
            charging_profile_id=profile.id, annual_growth_rates=default_growth()
        )
        _seed_behaviour(behaviour, profile.total_annual_kwh, DEFAULT_TEMPLATE, 0.0)
        db.add(behaviour)
        await db.commit()
        profile = await _load_profile(db, profile_id)
    return profile


async def _save_behaviour(
    db: AsyncSession, behaviour: ChargingProfileBehaviour
) -> ChargingProfileBehaviour:
    await db.commit()
    await db.refresh(behaviour)
    return behaviour


@router.get(
    "/charging-templates",
    response_model=list[str],
    summary="List charging templates",
    description="Names of the built-in charging behaviour templates.",
)
async def list_charging_templates():
    return [DEFAULT_TEMPLATE, *CHARGING_TEMPLATES]


@router.post(
    "/projects/{project_id}/charging-profiles",
    response_model=ChargingProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create charging profile",
    description=(
        "Create a fleet charging profile. Its behaviour is seeded from the selected "
        "template and annual energy, with the default linear growth curve."
    ),
)
async def create_charging_profile(
    body: ChargingProfileCreate,
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    profile = ChargingProfile(
        project_id=project.id,
        **body.model_dump(exclude={"selected_profile", "weekday_weekend_scale"}),
    )
    db.add(profile)
    await db.flush()

    behaviour = ChargingProfileBehaviour(
        charging_profile_id=profile.id, annual_growth_rates=default_growth()
    )
    _seed_behaviour(
        behaviour, profile.total_annual_kwh, body.selected_profile, body.weekday_weekend_scale
    )
    db.add(behaviour)
    await db.commit()
    return await _load_profile(db, profile.id)


@router.get(
    "/projects/{project_id}/charging-profiles",
    response_model=list[ChargingProfileResponse],
    summary="List charging profiles",
)
async def list_charging_profiles(
    project: Project = Depends(get_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ChargingProfile)
        .options(selectinload(ChargingProfile.behaviour))
        .where(ChargingProfile.project_id == project.id)
        .order_by(ChargingProfile.created_at)
    )
    return result.scalars().all()


@router.get(
    "/charging-profiles/{profile_id}",
    response_model=ChargingProfileResponse,
    summary="Get charging profile",
)
async def get_charging_profile(
    profile_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await _load_profile(db, profile_id)


@router.patch(
    "/charging-profiles/{profile_id}",
    response_model=ChargingProfileResponse,
    summary="Update charging profile",
    description="Update fleet parameters. Behaviour arrays are not rescaled; use calibrate for that.",
)
async def update_charging_profile(
    profile_id: uuid.UUID,
    body: ChargingProfileUpdate,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_profile(db, profile_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    await db.commit()
    return await _load_profile(db, profile_id)


@router.delete(
    "/charging-profiles/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete charging profile",
    description="Delete a profile and its behaviour. Hubs linked to it are left without a profile.",
)
async def delete_charging_profile(
    profile_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_profile(db, profile_id)
    await db.delete(profile)
    await db.commit()


# ---------------------------------------------------------------------------
# Behaviour
# ---------------------------------------------------------------------------


@router.get(
    "/charging-profiles/{profile_id}/behaviour",
    response_model=BehaviourResponse,
    summary="Get charging behaviour",
)
async def get_behaviour(
    profile_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_with_behaviour(db, profile_id)
    return profile.behaviour


@router.put(
    "/charging-profiles/{profile_id}/behaviour",
    response_model=BehaviourResponse,
    summary="Update charging behaviour",
    description="Replace any of the weekday, weekend, monthly or growth arrays.",
)
async def update_behaviour(
    profile_id: uuid.UUID,
    body: BehaviourUpdate,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_with_behaviour(db, profile_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(profile.behaviour, field, value)
    return await _save_behaviour(db, profile.behaviour)


@router.post(
    "/charging-profiles/{profile_id}/behaviour/template",
    response_model=BehaviourResponse,
    summary="Apply charging template",
    description="Reset weekday, weekend and monthly arrays from a built-in template.",
)
async def apply_template(
    profile_id: uuid.UUID,
    body: ApplyTemplateRequest,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_with_behaviour(db, profile_id)
    behaviour = profile.behaviour
    scale = (
        body.weekday_weekend_scale
        if body.weekday_weekend_scale is not None
        else behaviour.weekday_weekend_scale
    )
    _seed_behaviour(behaviour, profile.total_annual_kwh, body.template, scale)
    return await _save_behaviour(db, behaviour)


@router.post(
    "/charging-profiles/{profile_id}/behaviour/calibrate",
    response_model=BehaviourResponse,
    summary="Calibrate charging behaviour",
    description=(
        "Rescale the selected arrays so weekday and weekend days sum to their share "
        "of the profile's annual energy and the months sum to the annual energy."
    ),
)
async def calibrate_behaviour(
    profile_id: uuid.UUID,
    body: CalibrateRequest,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_with_behaviour(db, profile_id)
    behaviour = profile.behaviour
    total = profile.total_annual_kwh
    scale = behaviour.weekday_weekend_scale

    if "weekday" in body.targets:
        behaviour.weekday_hourly_data = calibrate_weekday(
            behaviour.weekday_hourly_data, total, scale
        ).tolist()
    if "weekend" in body.targets:
        behaviour.weekend_hourly_data = calibrate_weekend(
            behaviour.weekend_hourly_data, total, scale
        ).tolist()
    if "monthly" in body.targets:
        behaviour.monthly_data = calibrate_monthly(behaviour.monthly_data, total).tolist()
    return await _save_behaviour(db, behaviour)


@router.post(
    "/charging-profiles/{profile_id}/behaviour/growth",
    response_model=BehaviourResponse,
    summary="Apply growth preset",
    description="Replace the 30-year growth curve with a linear, exponential or S-curve preset.",
)
async def apply_growth_preset(
    profile_id: uuid.UUID,
    body: GrowthRequest,
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_with_behaviour(db, profile_id)
    if body.curve == "linear":
        rates = linear_growth(body.rate)
    elif body.curve == "exponential":
        rates = exponential_growth(body.rate)
    else:
        rates = s_curve_growth(body.max_growth, body.midpoint)
    profile.behaviour.annual_growth_rates = rates
    return await _save_behaviour(db, profile.behaviour)
