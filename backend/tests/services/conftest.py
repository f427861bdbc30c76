"""Pipeline test infrastructure: synchronous SQLite session and seeded configuration."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

import app.models  # noqa: F401
from app.models.database import Base
from app.models.charging import ChargingHub, ChargingProfile, ChargingProfileBehaviour
from app.models.project import Project
from app.models.technical import GenerationConfig, GridConfig

SITE_LAT = 40.4168
SITE_LON = -3.7038


@pytest.fixture
def db() -> Session:
    engine = create_engine("sqlite://", echo=False)

    @event.listens_for(engine, "connect")
    def _enable_fks(dbapi_connection, _):
        dbapi_connection.execute("PRAGMA foreign_keys = ON")

    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def project(db: Session) -> Project:
    project = Project(name="Depot", latitude=SITE_LAT, longitude=SITE_LON)
    db.add(project)
    db.commit()
    return project


@pytest.fixture
def charging_setup(db: Session, project: Project) -> ChargingHub:
    """One hub of 2 x 22 kW chargers fed by a flat 10,000 kWh/yr profile."""
    profile = ChargingProfile(
        project_id=project.id,
        profile_name="Vans",
        initial_number_of_vehicles=20,
        average_charging_percentage=50.0,
        average_battery_size=1000.0,
    )
    db.add(profile)
    db.flush()
    db.add(
        ChargingProfileBehaviour(
            charging_profile_id=profile.id,
            weekday_hourly_data=[1.0] * 24,
            weekend_hourly_data=[1.0] * 24,
            monthly_data=[10_000.0 / 12] * 12,
            annual_growth_rates=[0.0, 2.5, 5.0] + [0.0] * 27,
        )
    )
    hub = ChargingHub(
        project_id=project.id,
        hub_name="Yard",
        charger_power=22.0,
        number_of_chargers=2,
        charging_profile_id=profile.id,
    )
    db.add(hub)
    db.commit()
    return hub


@pytest.fixture
def solar_setup(db: Session, project: Project) -> GenerationConfig:
    generation = GenerationConfig(
        project_id=project.id,
        system_size_kwp=10.0,
        orientation="S",
        tilt=30.0,
        system_losses=14.0,
        annual_degradation=0.5,
    )
    db.add(generation)
    db.commit()
    return generation


@pytest.fixture
def grid_setup(db: Session, project: Project) -> GridConfig:
    grid = GridConfig(project_id=project.id, max_import_kw=100.0, max_export_kw=100.0)
    db.add(grid)
    db.commit()
    return grid


@pytest.fixture
def use_library(monkeypatch, reference_library):
    """Serve the synthetic reference library to the solar stage."""
    monkeypatch.setattr(
        "app.services.energy_pipeline.get_reference_library", lambda: reference_library
    )
    return reference_library
