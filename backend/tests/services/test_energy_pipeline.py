"""End-to-end tests for app.services.energy_pipeline on a SQLite session."""

from __future__ import annotations

import numpy as np
import pytest
from sqlalchemy import select

from app.core.timeseries import decode_matrix, decode_series
from app.models.charging import ChargingHub
from app.models.energy_forecast import FORECAST_SERIES, EnergyForecast
from app.models.technical import GenerationConfig, StorageConfig
from app.services.energy_pipeline import (
    STAGES,
    STAGES_BY_NAME,
    run_all_stages,
    run_battery_forecasting,
    run_charging_demand_analysis,
    run_energy_flow_analysis,
    run_solar_generation_analysis,
    run_stage,
)

HOURS_PER_YEAR = 8760


def _forecast(db, project) -> EnergyForecast | None:
    db.expire_all()
    return db.execute(
        select(EnergyForecast).where(EnergyForecast.project_id == project.id)
    ).scalar_one_or_none()


def _m(forecast: EnergyForecast, field: str) -> np.ndarray | None:
    return decode_matrix(getattr(forecast, field))


# ======================================================================
# Stage registry
# ======================================================================


class TestStageRegistry:
    def test_nineteen_stages_in_order(self):
        names = [s.name for s in STAGES]
        assert len(names) == 19
        assert names[0] == "run_solar_generation_analysis"
        assert names.index("run_solar_forecasting") < names.index("run_battery_forecasting")
        assert names.index("run_grid_import") < names.index("run_grid_export")
        assert names[-1] == "run_daily_average_battery_discharge"

    def test_lookup_by_name(self):
        assert set(STAGES_BY_NAME) == {s.name for s in STAGES}

    def test_unknown_stage(self, db, project):
        with pytest.raises(KeyError):
            run_stage(db, project.id, "run_everything")


# ======================================================================
# Full scenario: solar + one hub + grid, no battery
# ======================================================================


@pytest.mark.usefixtures("use_library")
class TestSolarHubGridScenario:
    @pytest.fixture(autouse=True)
    def _setup(self, charging_setup, solar_setup, grid_setup):
        pass

    def test_generation_profile(self, db, project, reference_curve):
        run_all_stages(db, project.id)
        db.expire_all()
        generation = db.execute(
            select(GenerationConfig).where(GenerationConfig.project_id == project.id)
        ).scalar_one()
        profile = decode_series(generation.generation_profile, length=HOURS_PER_YEAR)
        np.testing.assert_allclose(profile, reference_curve * 10.0 / 1000.0 * 0.86)
        assert len(generation.monthly_totals) == 12
        assert len(generation.hourly_averages) == 24
        assert generation.solar_yield == pytest.approx(profile.sum() / 10.0)

    def test_hub_profiles(self, db, project, charging_setup):
        run_all_stages(db, project.id)
        db.expire_all()
        hub = db.get(ChargingHub, charging_setup.id)
        demand = decode_series(hub.demand_profile, length=HOURS_PER_YEAR)
        capacity = decode_series(hub.charger_capacity_profile, length=HOURS_PER_YEAR)
        assert demand.sum() == pytest.approx(10_000.0)
        assert hub.demand_profile_annual_demand == pytest.approx(10_000.0)
        assert np.all(capacity == 44.0)
        assert len(hub.demand_profile_daily_totals) == 365
        assert len(hub.charger_capacity_profile_daily_totals) == 365
        assert hub.charger_capacity_profile_daily_totals[0] == pytest.approx(44.0 * 24)
        assert sum(hub.demand_profile_monthly_totals) == pytest.approx(10_000.0)

    def test_forecast_horizon_and_growth(self, db, project):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        solar = _m(forecast, "solar_generation")
        demand = _m(forecast, "gross_energy_demand")
        assert solar.shape == (3, HOURS_PER_YEAR)
        assert demand.shape == (3, HOURS_PER_YEAR)
        np.testing.assert_allclose(solar[1], solar[0] * 0.995)
        assert demand[0].sum() == pytest.approx(10_000.0)
        assert demand[1].sum() == pytest.approx(10_000.0 * 1.025)
        assert demand[2].sum() == pytest.approx(10_000.0 * 1.05 ** 2)

    def test_energy_balance(self, db, project):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        solar = _m(forecast, "solar_generation")
        demand = _m(forecast, "gross_energy_demand")
        consumed = _m(forecast, "generated_solar_energy_consumed")
        excess = _m(forecast, "generated_solar_energy_excess_post_consumption")
        post_solar = _m(forecast, "energy_demand_post_solar")

        np.testing.assert_allclose(consumed, np.minimum(solar, demand))
        np.testing.assert_allclose(consumed + excess, solar)
        np.testing.assert_allclose(consumed + post_solar, demand)

    def test_no_battery_outputs(self, db, project):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        assert forecast.battery_discharge is None
        assert forecast.daily_average_battery_charging is None
        assert forecast.daily_average_battery_discharging is None
        np.testing.assert_allclose(
            _m(forecast, "energy_demand_post_solar_battery"),
            _m(forecast, "energy_demand_post_solar"),
        )

    def test_grid_covers_remaining_demand(self, db, project):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        imported = _m(forecast, "grid_import")
        exported = _m(forecast, "grid_export")
        np.testing.assert_allclose(imported, _m(forecast, "energy_demand_post_solar"))
        np.testing.assert_allclose(_m(forecast, "energy_demand_post_solar_battery_grid"), 0.0)
        np.testing.assert_allclose(
            exported, np.minimum(_m(forecast, "generated_solar_energy_excess_post_consumption"), 100.0)
        )

    def test_first_year_flows(self, db, project):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        assert forecast.flow_solar_to_chargers == pytest.approx(
            _m(forecast, "generated_solar_energy_consumed")[0].sum()
        )
        assert forecast.flow_grid_to_chargers == pytest.approx(_m(forecast, "grid_import")[0].sum())
        assert forecast.flow_solar_to_grid == pytest.approx(_m(forecast, "grid_export")[0].sum())
        assert forecast.flow_solar_to_battery == 0.0
        assert forecast.flow_battery_to_chargers == 0.0
        assert forecast.flow_solar_to_chargers + forecast.flow_grid_to_chargers == pytest.approx(
            10_000.0
        )

    def test_rerun_is_idempotent(self, db, project):
        run_all_stages(db, project.id)
        first = {name: getattr(_forecast(db, project), name) for name in FORECAST_SERIES}
        run_all_stages(db, project.id)
        second = {name: getattr(_forecast(db, project), name) for name in FORECAST_SERIES}
        for name in FORECAST_SERIES:
            if first[name] is None:
                assert second[name] is None
            else:
                np.testing.assert_array_equal(decode_matrix(first[name]), decode_matrix(second[name]))

    def test_explicit_project_life(self, db, project):
        run_all_stages(db, project.id, project_life=5)
        forecast = _forecast(db, project)
        assert _m(forecast, "solar_generation").shape[0] == 5
        assert _m(forecast, "grid_export").shape[0] == 5

    def test_on_stage_callback(self, db, project):
        seen = []
        run_all_stages(db, project.id, on_stage=lambda i, s: seen.append((i, s.name)))
        assert [name for _, name in seen] == [s.name for s in STAGES]
        assert seen[0][0] == 0


# ======================================================================
# Battery
# ======================================================================


@pytest.mark.usefixtures("use_library", "charging_setup", "solar_setup", "grid_setup")
class TestBatteryScenario:
    @pytest.fixture
    def storage(self, db, project):
        storage = StorageConfig(project_id=project.id, capacity_kwh=20.0, power_kw=5.0)
        db.add(storage)
        db.commit()
        return storage

    def test_battery_invariants(self, db, project, storage):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        start = _m(forecast, "battery_start_soc")
        charge = _m(forecast, "battery_charge_from_solar")
        grid_charge = _m(forecast, "battery_charge_from_grid")
        discharge = _m(forecast, "battery_discharge")
        end = _m(forecast, "battery_end_soc")
        excess = _m(forecast, "generated_solar_energy_excess_post_consumption")
        post_solar = _m(forecast, "energy_demand_post_solar")

        assert discharge.shape == (3, HOURS_PER_YEAR)
        assert np.all(end >= 0) and np.all(end <= 20.0 + 1e-9)
        assert np.all(charge <= excess + 1e-9)
        assert np.all(discharge <= post_solar + 1e-9)
        assert np.all(grid_charge == 0)
        np.testing.assert_allclose(end, start + charge - discharge, atol=1e-9)
        np.testing.assert_allclose(start[:, 1:], end[:, :-1])
        assert np.all(start[:, 0] == 0)

        np.testing.assert_allclose(
            _m(forecast, "energy_demand_post_solar_battery"), post_solar - discharge
        )
        np.testing.assert_allclose(
            _m(forecast, "generated_solar_energy_excess_post_consumption_battery"), excess - charge
        )

    def test_battery_flows_and_daily_averages(self, db, project, storage):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        assert forecast.flow_solar_to_battery == pytest.approx(
            _m(forecast, "battery_charge_from_solar")[0].sum()
        )
        assert forecast.flow_battery_to_chargers > 0
        assert forecast.flow_grid_to_battery == 0.0
        assert len(forecast.daily_average_battery_charging) == 24
        assert all(v <= 0 for v in forecast.daily_average_battery_charging)
        assert len(forecast.daily_average_battery_discharging) == 24
        assert all(v >= 0 for v in forecast.daily_average_battery_discharging)

    def test_removing_battery_clears_outputs(self, db, project, storage):
        run_all_stages(db, project.id)
        db.delete(storage)
        db.commit()
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        assert forecast.battery_discharge is None
        assert forecast.battery_end_soc is None
        assert forecast.daily_average_battery_charging is None
        assert forecast.daily_average_battery_discharging is None
        assert forecast.flow_battery_to_chargers == 0.0

    def test_battery_stage_uses_project_life(self, db, project, storage):
        run_all_stages(db, project.id)
        run_battery_forecasting(db, project.id, project_life=1)
        assert _m(_forecast(db, project), "battery_discharge").shape == (1, HOURS_PER_YEAR)


# ======================================================================
# No-op and degraded inputs
# ======================================================================


class TestNoOps:
    def test_empty_project(self, db, project):
        run_all_stages(db, project.id)
        assert _forecast(db, project) is None

    def test_missing_project(self, db):
        import uuid

        run_all_stages(db, uuid.uuid4(), project_life=1)

    def test_missing_reference_curve(self, db, project, use_library, solar_setup, charging_setup):
        solar_setup.orientation = "N"
        db.commit()
        run_all_stages(db, project.id)
        db.expire_all()
        assert db.get(GenerationConfig, solar_setup.id).generation_profile is None
        forecast = _forecast(db, project)
        assert forecast.solar_generation is None
        assert forecast.gross_energy_demand is not None
        assert forecast.generated_solar_energy_consumed is None
        assert forecast.grid_import is None

    def test_empty_library(self, db, project, solar_setup):
        from engine.solar import ReferenceProfileLibrary

        run_solar_generation_analysis(db, project.id, library=ReferenceProfileLibrary())
        db.expire_all()
        assert db.get(GenerationConfig, solar_setup.id).generation_profile is None

    def test_no_grid(self, db, project, use_library, solar_setup, charging_setup):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        assert forecast.energy_demand_post_solar_battery is not None
        assert forecast.grid_import is None
        assert forecast.grid_export is None
        assert forecast.flow_grid_to_chargers == 0.0

    def test_hub_without_profile(self, db, project):
        hub = ChargingHub(
            project_id=project.id, hub_name="Spare", charger_power=7.0, number_of_chargers=1
        )
        db.add(hub)
        db.commit()
        run_all_stages(db, project.id)
        db.expire_all()
        hub = db.get(ChargingHub, hub.id)
        assert hub.demand_profile_annual_demand == 0.0
        assert _m(_forecast(db, project), "gross_energy_demand").sum() == 0.0

    def test_malformed_behaviour(self, db, project, charging_setup):
        behaviour = charging_setup.charging_profile.behaviour
        behaviour.weekday_hourly_data = [1.0] * 23
        db.commit()
        run_charging_demand_analysis(db, project.id)
        db.expire_all()
        hub = db.get(ChargingHub, charging_setup.id)
        assert hub.demand_profile_annual_demand == 0.0
        assert decode_series(hub.demand_profile).sum() == 0.0

    def test_unreadable_forecast_series(self, db, project, use_library, solar_setup, charging_setup):
        run_all_stages(db, project.id)
        forecast = _forecast(db, project)
        forecast.grid_import = b"garbage"
        db.commit()
        run_energy_flow_analysis(db, project.id)
        assert _forecast(db, project).flow_grid_to_chargers == 0.0

    def test_stage_error_propagates(
        self, db, project, use_library, solar_setup, charging_setup, monkeypatch
    ):
        run_all_stages(db, project.id)

        def boom(*args, **kwargs):
            raise RuntimeError("engine failure")

        monkeypatch.setattr("app.services.energy_pipeline.solar_consumed", boom)
        with pytest.raises(RuntimeError):
            run_stage(db, project.id, "run_generated_solar_energy_consumed")
