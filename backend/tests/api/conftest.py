"""API test infrastructure: the FastAPI app on an in-memory aiosqlite database.

Celery is never reached from these tests; endpoints that queue work are
tested with the task objects patched.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401
from app.core.rate_limit import analysis_limiter, reference_limiter
from app.models.database import Base, get_db

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SITE = {"latitude": 40.4168, "longitude": -3.7038}


def _enable_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Sessions on the test database, for seeding rows the API never writes."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def app(session_factory):
    from app.main import create_app

    application = create_app()

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _override_get_db
    analysis_limiter.reset()
    reference_limiter.reset()

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# A depot project with one fleet profile feeding one hub
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def sample_project(client: AsyncClient) -> dict:
    resp = await client.post(
        "/api/v1/projects/",
        json={
            "name": "Test Depot",
            "description": "Van depot with rooftop PV",
            **SITE,
            "project_life_years": 3,
            "currency": "EUR",
        },
    )
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture
async def sample_profile(client: AsyncClient, sample_project: dict) -> dict:
    """Charging profile of 20 vehicles x 50% x 1000 kWh = 10,000 kWh/yr."""
    resp = await client.post(
        f"/api/v1/projects/{sample_project['id']}/charging-profiles",
        json={
            "profile_name": "Vans",
            "initial_number_of_vehicles": 20,
            "average_charging_percentage": 50.0,
            "average_battery_size": 1000.0,
        },
    )
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture
async def sample_hub(client: AsyncClient, sample_project: dict, sample_profile: dict) -> dict:
    """Two 22 kW chargers linked to ``sample_profile``."""
    resp = await client.post(
        f"/api/v1/projects/{sample_project['id']}/charging-hubs",
        json={
            "hub_name": "Yard",
            "charger_power": 22.0,
            "number_of_chargers": 2,
            "charging_profile_id": sample_profile["id"],
        },
    )
    assert resp.status_code == 201
    return resp.json()
