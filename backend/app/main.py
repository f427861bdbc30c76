import asyncio
import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import redis
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.api.v1 import (
    projects, technical, charging_profiles, charging_hubs, costs, tariffs, energy_analysis,
)
from app.core.logging import RequestLoggingMiddleware, setup_logging
from app.models.database import get_db, get_engine
from app.services.solar_reference import get_reference_library

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    logger.info(
        "Starting %s (%s), default horizon %d years",
        settings.app_name,
        settings.environment,
        settings.project_life_years,
    )
    yield
    await get_engine().dispose()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check: database unavailable: %s", e)
        return f"error: {e}"
    return "ok"


async def _check_redis() -> str:
    def ping() -> None:
        redis.from_url(settings.redis_url, socket_connect_timeout=1).ping()

    try:
        await asyncio.to_thread(ping)
    except redis.RedisError as e:
        logger.warning("Health check: redis unavailable: %s", e)
        return f"error: {e}"
    return "ok"


def _check_solar_reference() -> str:
    locations = get_reference_library().locations()
    return f"ok ({len(locations)} locations)" if locations else "empty"


def create_app() -> FastAPI:
    setup_logging(json_format=settings.log_json, level=settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Project-scoped configuration
    application.include_router(projects.router, prefix="/api/v1/projects", tags=["projects"])
    application.include_router(technical.router, prefix="/api/v1/projects", tags=["technical"])
    # Fleet, chargers, costs and tariffs
    application.include_router(
        charging_profiles.router, prefix="/api/v1", tags=["charging-profiles"]
    )
    application.include_router(charging_hubs.router, prefix="/api/v1", tags=["charging-hubs"])
    application.include_router(costs.router, prefix="/api/v1", tags=["costs"])
    application.include_router(tariffs.router, prefix="/api/v1", tags=["tariffs"])
    # Pipeline runs and results
    application.include_router(
        energy_analysis.router, prefix="/api/v1", tags=["energy-analysis"]
    )

    @application.get("/health")
    async def health_check(db: AsyncSession = Depends(get_db)) -> dict:
        """Database and Redis are required; an empty solar dataset is reported only."""
        services = {
            "database": await _check_database(db),
            "redis": await _check_redis(),
            "solar_reference": _check_solar_reference(),
        }
        degraded = services["database"] != "ok" or services["redis"] != "ok"
        return {"status": "degraded" if degraded else "ok", "services": services}

    return application


app = create_app()
