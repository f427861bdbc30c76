"""Tests for engine.forecast: extrapolation, solar balance and flow aggregation."""

from __future__ import annotations

import numpy as np
import pytest

from engine.demand import capacity_profile, linear_growth
from engine.forecast import (
    HubDemand,
    align,
    calculate_energy_flows,
    daily_average_battery_charging,
    daily_average_battery_discharging,
    demand_post_solar,
    extrapolate_demand,
    extrapolate_solar,
    grown_hub_demand,
    solar_consumed,
    solar_excess,
)

HOURS_PER_YEAR = 8760


# ======================================================================
# Extrapolation
# ======================================================================


class TestSolarExtrapolation:
    def test_compounding_degradation(self, reference_curve):
        years = extrapolate_solar(reference_curve, 0.5, 3)
        assert years.shape == (3, HOURS_PER_YEAR)
        np.testing.assert_allclose(years[0], reference_curve)
        np.testing.assert_allclose(years[2], reference_curve * 0.995 ** 2)

    def test_no_degradation(self):
        years = extrapolate_solar(np.ones(10), 0.0, 4)
        np.testing.assert_allclose(years, 1.0)

    def test_invalid_horizon(self):
        with pytest.raises(ValueError):
            extrapolate_solar(np.ones(10), 0.5, 0)


class TestDemandExtrapolation:
    def test_no_hubs(self):
        assert extrapolate_demand([], 3) is None

    def test_capped_at_capacity(self):
        hub = HubDemand(
            demand_profile=np.full(HOURS_PER_YEAR, 50.0),
            capacity_profile=capacity_profile(22.0, 2),
        )
        gross = extrapolate_demand([hub], 1)
        assert gross.shape == (1, HOURS_PER_YEAR)
        assert np.all(gross[0] == 44.0)

    def test_growth_double_applied(self):
        hub = HubDemand(
            demand_profile=np.full(HOURS_PER_YEAR, 1.0),
            capacity_profile=capacity_profile(100.0, 1),
            growth_rates=linear_growth(2.5),
        )
        gross = extrapolate_demand([hub], 3)
        assert gross[0, 0] == pytest.approx(1.0)
        assert gross[1, 0] == pytest.approx(1.025)
        assert gross[2, 0] == pytest.approx(1.05 ** 2)

    def test_hubs_summed(self):
        hubs = [
            HubDemand(np.full(HOURS_PER_YEAR, 1.0), capacity_profile(10.0, 1)),
            HubDemand(np.full(HOURS_PER_YEAR, 2.0), capacity_profile(10.0, 1)),
        ]
        gross = extrapolate_demand(hubs, 2)
        np.testing.assert_allclose(gross, 3.0)

    def test_short_capacity_padded_with_zero(self):
        hub = HubDemand(np.full(HOURS_PER_YEAR, 1.0), np.full(100, 10.0))
        grown = grown_hub_demand(hub, 0)
        assert grown[:100].sum() == pytest.approx(100.0)
        assert grown[100:].sum() == 0


# ======================================================================
# Solar balance
# ======================================================================


class TestBalance:
    def test_consumed_excess_and_remaining(self):
        solar = np.array([[5.0, 0.0, 3.0]])
        demand = np.array([[2.0, 4.0, 3.0]])
        consumed = solar_consumed(solar, demand)
        np.testing.assert_allclose(consumed, [[2.0, 0.0, 3.0]])
        np.testing.assert_allclose(solar_excess(solar, consumed), [[3.0, 0.0, 0.0]])
        np.testing.assert_allclose(demand_post_solar(demand, consumed), [[0.0, 4.0, 0.0]])

    def test_energy_conserved(self, reference_curve, evening_demand):
        solar = extrapolate_solar(reference_curve / 100, 0.5, 2)
        demand = np.vstack([evening_demand, evening_demand])
        consumed = solar_consumed(solar, demand)
        excess = solar_excess(solar, consumed)
        remaining = demand_post_solar(demand, consumed)
        np.testing.assert_allclose(consumed + excess, solar)
        np.testing.assert_allclose(consumed + remaining, demand)
        assert np.all(consumed <= np.minimum(solar, demand) + 1e-12)

    def test_mismatched_shapes_trimmed(self):
        solar = np.ones((3, 10))
        demand = np.ones((2, 8))
        assert solar_consumed(solar, demand).shape == (2, 8)
        a, b = align(solar, demand)
        assert a.shape == b.shape == (2, 8)

    def test_one_dimensional_promoted(self):
        assert solar_consumed(np.ones(5), np.ones(5)).shape == (1, 5)


# ======================================================================
# Aggregation
# ======================================================================


class TestEnergyFlows:
    def test_sums(self):
        flows = calculate_energy_flows(
            solar_consumed=[1.0, 2.0],
            charge_from_solar=[0.5],
            grid_export=[3.0],
            discharge=[0.25, 0.25],
            charge_from_grid=[0.0],
            grid_import=[4.0, 1.0],
        )
        assert flows.as_dict() == {
            "solar_to_chargers": 3.0,
            "solar_to_battery": 0.5,
            "solar_to_grid": 3.0,
            "battery_to_chargers": 0.5,
            "grid_to_battery": 0.0,
            "grid_to_chargers": 5.0,
        }

    def test_missing_arrays_zero(self):
        flows = calculate_energy_flows(solar_consumed=[1.0])
        assert flows.solar_to_battery == 0.0
        assert flows.grid_to_chargers == 0.0


class TestDailyAverages:
    def test_charging_negative(self):
        charge = np.tile(np.arange(24, dtype=np.float64), 2)
        profile = daily_average_battery_charging(charge)
        np.testing.assert_allclose(profile, -np.arange(24))

    def test_grid_charge_padded(self):
        profile = daily_average_battery_charging(np.ones(48), np.ones(24))
        np.testing.assert_allclose(profile, -1.5)

    def test_grid_charge_truncated(self):
        profile = daily_average_battery_charging(np.ones(24), np.ones(100))
        np.testing.assert_allclose(profile, -2.0)

    def test_discharging(self):
        np.testing.assert_allclose(daily_average_battery_discharging(np.full(48, 2.0)), 2.0)

    def test_less_than_a_day(self):
        assert daily_average_battery_charging(np.ones(10)) is None
        assert daily_average_battery_discharging(np.ones(10)) is None
