"""Tests for engine.grid.resolver: import/export after solar and battery."""

from __future__ import annotations

import numpy as np
import pytest

from engine.grid import (
    demand_post_battery,
    excess_post_battery,
    grid_export,
    grid_import,
    residual_demand,
)


class TestImport:
    def test_demand_post_battery(self):
        np.testing.assert_allclose(demand_post_battery([[5.0, 3.0]], [[2.0, 3.0]]), [[3.0, 0.0]])

    def test_no_battery_counts_as_zero(self):
        np.testing.assert_allclose(demand_post_battery([[5.0, 3.0]], None), [[5.0, 3.0]])

    def test_import_capped(self):
        np.testing.assert_allclose(grid_import([[50.0, 150.0]], 100.0), [[50.0, 100.0]])

    def test_residual_unmet(self):
        demand = np.array([[50.0, 150.0]])
        imported = grid_import(demand, 100.0)
        np.testing.assert_allclose(residual_demand(demand, imported), [[0.0, 50.0]])

    def test_residual_not_clamped(self):
        assert residual_demand([[1.0]], [[3.0]])[0, 0] == -2.0

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            grid_import([[1.0]], -1.0)


class TestExport:
    def test_excess_post_battery(self):
        np.testing.assert_allclose(excess_post_battery([[5.0, 0.0]], [[2.0, 0.0]]), [[3.0, 0.0]])

    def test_no_battery(self):
        np.testing.assert_allclose(excess_post_battery([[5.0]], None), [[5.0]])

    def test_export_capped(self):
        np.testing.assert_allclose(grid_export([[20.0, 80.0]], 50.0), [[20.0, 50.0]])

    def test_export_never_exceeds_excess(self):
        excess = excess_post_battery(np.full((2, 24), 10.0), np.full((2, 24), 4.0))
        exported = grid_export(excess, 100.0)
        assert np.all(exported <= excess)

    def test_mismatched_shapes(self):
        assert excess_post_battery(np.ones((3, 10)), np.ones((2, 10))).shape == (2, 10)
