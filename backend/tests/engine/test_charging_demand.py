"""Tests for engine.demand.charging_demand: hourly demand synthesis."""

from __future__ import annotations

import numpy as np
import pytest

from engine.demand import capacity_profile, is_weekend, synthesize_demand_profile, zero_profile
from engine.timebase import month_hour_slices, monthly_totals

HOURS_PER_YEAR = 8760


class TestWeekend:
    def test_first_days_are_weekdays(self):
        assert not is_weekend(0)
        assert not is_weekend(4 * 24 + 23)

    def test_days_five_and_six_are_weekend(self):
        assert is_weekend(5 * 24)
        assert is_weekend(6 * 24 + 23)
        assert not is_weekend(7 * 24)


class TestSynthesize:
    def test_monthly_totals_match(self, flat_behaviour):
        profile = synthesize_demand_profile(
            flat_behaviour["weekday_hourly"],
            flat_behaviour["weekend_hourly"],
            flat_behaviour["monthly"],
        )
        assert profile.shape == (HOURS_PER_YEAR,)
        np.testing.assert_allclose(monthly_totals(profile), flat_behaviour["monthly"])
        assert profile.sum() == pytest.approx(10_000.0)

    def test_weekend_shape_applied(self):
        weekday = [1.0] * 24
        weekend = [0.0] * 24
        weekend[12] = 1.0
        profile = synthesize_demand_profile(weekday, weekend, [100.0] * 12)
        saturday = profile[5 * 24:6 * 24]
        assert saturday[12] > 0
        assert saturday[:12].sum() == 0
        assert np.all(profile[:24] > 0)

    def test_zero_base_month_stays_zero(self):
        profile = synthesize_demand_profile([0.0] * 24, [0.0] * 24, [100.0] * 12)
        assert profile.sum() == 0

    def test_each_month_scaled_independently(self):
        monthly = [float(m + 1) * 10 for m in range(12)]
        profile = synthesize_demand_profile([1.0] * 24, [1.0] * 24, monthly)
        for month, hours in enumerate(month_hour_slices()):
            assert profile[hours].sum() == pytest.approx(monthly[month])

    @pytest.mark.parametrize(
        "weekday, weekend, monthly",
        [
            ([1.0] * 23, [1.0] * 24, [1.0] * 12),
            ([1.0] * 24, [1.0] * 25, [1.0] * 12),
            ([1.0] * 24, [1.0] * 24, [1.0] * 11),
        ],
    )
    def test_bad_lengths_rejected(self, weekday, weekend, monthly):
        with pytest.raises(ValueError):
            synthesize_demand_profile(weekday, weekend, monthly)


class TestCapacity:
    def test_constant_capacity(self):
        profile = capacity_profile(22.0, 2)
        assert profile.shape == (HOURS_PER_YEAR,)
        assert np.all(profile == 44.0)

    def test_missing_values_are_zero(self):
        assert capacity_profile(None, 3).sum() == 0  # type: ignore[arg-type]

    def test_zero_profile(self):
        assert zero_profile().sum() == 0
