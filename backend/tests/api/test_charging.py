"""Tests for charging profile, behaviour and hub API endpoints."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


# ======================================================================
# Charging profiles
# ======================================================================


class TestChargingProfiles:
    async def test_create_seeds_behaviour(self, client: AsyncClient, sample_profile):
        assert sample_profile["total_annual_kwh"] == pytest.approx(10_000.0)
        behaviour = sample_profile["behaviour"]
        assert len(behaviour["weekday_hourly_data"]) == 24
        assert len(behaviour["weekend_hourly_data"]) == 24
        assert len(behaviour["monthly_data"]) == 12
        assert sum(behaviour["monthly_data"]) == pytest.approx(10_000.0)
        assert behaviour["annual_growth_rates"][:3] == [0.0, 2.5, 5.0]
        assert len(behaviour["annual_growth_rates"]) == 30
        assert behaviour["selected_profile"] == "default"

    async def test_create_from_template(self, client: AsyncClient, sample_project):
        resp = await client.post(
            f"/api/v1/projects/{sample_project['id']}/charging-profiles",
            json={
                "profile_name": "Staff",
                "initial_number_of_vehicles": 10,
                "average_charging_percentage": 40,
                "average_battery_size": 60,
                "selected_profile": "workplace",
            },
        )
        assert resp.status_code == 201
        behaviour = resp.json()["behaviour"]
        assert behaviour["selected_profile"] == "workplace"
        assert behaviour["weekday_hourly_data"][0] == 0.0
        assert sum(behaviour["monthly_data"]) == pytest.approx(240.0)

    async def test_unknown_template_rejected(self, client: AsyncClient, sample_project):
        resp = await client.post(
            f"/api/v1/projects/{sample_project['id']}/charging-profiles",
            json={"profile_name": "X", "selected_profile": "nope"},
        )
        assert resp.status_code == 422

    async def test_list_templates(self, client: AsyncClient):
        resp = await client.get("/api/v1/charging-templates")
        assert resp.status_code == 200
        assert resp.json()[0] == "default"
        assert "fleet_depot" in resp.json()

    async def test_list_and_get(self, client: AsyncClient, sample_project, sample_profile):
        resp = await client.get(f"/api/v1/projects/{sample_project['id']}/charging-profiles")
        assert [p["id"] for p in resp.json()] == [sample_profile["id"]]
        resp = await client.get(f"/api/v1/charging-profiles/{sample_profile['id']}")
        assert resp.status_code == 200

    async def test_update_leaves_behaviour(self, client: AsyncClient, sample_profile):
        resp = await client.patch(
            f"/api/v1/charging-profiles/{sample_profile['id']}",
            json={"initial_number_of_vehicles": 40},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_annual_kwh"] == pytest.approx(20_000.0)
        assert sum(data["behaviour"]["monthly_data"]) == pytest.approx(10_000.0)

    async def test_delete_unlinks_hub(self, client: AsyncClient, sample_profile, sample_hub):
        resp = await client.delete(f"/api/v1/charging-profiles/{sample_profile['id']}")
        assert resp.status_code == 204
        hub = (await client.get(f"/api/v1/charging-hubs/{sample_hub['id']}")).json()
        assert hub["charging_profile_id"] is None

    async def test_not_found(self, client: AsyncClient):
        resp = await client.get(f"/api/v1/charging-profiles/{uuid.uuid4()}")
        assert resp.status_code == 404


# ======================================================================
# Behaviour
# ======================================================================


class TestBehaviour:
    async def test_update_arrays(self, client: AsyncClient, sample_profile):
        pid = sample_profile["id"]
        resp = await client.put(
            f"/api/v1/charging-profiles/{pid}/behaviour",
            json={"monthly_data": [100.0] * 12},
        )
        assert resp.status_code == 200
        assert resp.json()["monthly_data"] == [100.0] * 12
        assert len(resp.json()["weekday_hourly_data"]) == 24

    async def test_wrong_length_rejected(self, client: AsyncClient, sample_profile):
        resp = await client.put(
            f"/api/v1/charging-profiles/{sample_profile['id']}/behaviour",
            json={"weekday_hourly_data": [1.0] * 23},
        )
        assert resp.status_code == 422

    async def test_calibrate_monthly(self, client: AsyncClient, sample_profile):
        pid = sample_profile["id"]
        await client.put(
            f"/api/v1/charging-profiles/{pid}/behaviour",
            json={"monthly_data": [1.0] * 6 + [3.0] * 6},
        )
        resp = await client.post(
            f"/api/v1/charging-profiles/{pid}/behaviour/calibrate",
            json={"targets": ["monthly"]},
        )
        assert resp.status_code == 200
        monthly = resp.json()["monthly_data"]
        assert sum(monthly) == pytest.approx(10_000.0)
        assert monthly[6] == pytest.approx(3 * monthly[0])

    async def test_calibrate_weekday_weekend(self, client: AsyncClient, sample_profile):
        pid = sample_profile["id"]
        await client.put(
            f"/api/v1/charging-profiles/{pid}/behaviour",
            json={"weekday_hourly_data": [2.0] * 24, "weekend_hourly_data": [1.0] * 24},
        )
        resp = await client.post(f"/api/v1/charging-profiles/{pid}/behaviour/calibrate", json={})
        data = resp.json()
        assert sum(data["weekday_hourly_data"]) == pytest.approx(10_000.0 / 365)
        assert sum(data["weekend_hourly_data"]) == pytest.approx(10_000.0 / 365)

    async def test_apply_template(self, client: AsyncClient, sample_profile):
        resp = await client.post(
            f"/api/v1/charging-profiles/{sample_profile['id']}/behaviour/template",
            json={"template": "home_overnight", "weekday_weekend_scale": -50},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["selected_profile"] == "home_overnight"
        assert data["weekday_weekend_scale"] == -50
        assert sum(data["weekend_hourly_data"]) == pytest.approx(
            sum(data["weekday_hourly_data"]) * 0.5
        )

    @pytest.mark.parametrize(
        "body, index, expected",
        [
            ({"curve": "linear", "rate": 3.0}, 2, 6.0),
            ({"curve": "exponential", "rate": 10.0}, 2, 0.21),
            ({"curve": "s_curve", "max_growth": 100.0, "midpoint": 10}, 9, 50.0),
        ],
    )
    async def test_growth_presets(self, client: AsyncClient, sample_profile, body, index, expected):
        resp = await client.post(
            f"/api/v1/charging-profiles/{sample_profile['id']}/behaviour/growth", json=body
        )
        assert resp.status_code == 200
        rates = resp.json()["annual_growth_rates"]
        assert len(rates) == 30
        assert rates[0] == 0.0
        assert rates[index] == pytest.approx(expected)


# ======================================================================
# Charging hubs
# ======================================================================


class TestChargingHubs:
    async def test_create(self, client: AsyncClient, sample_hub, sample_profile):
        assert sample_hub["charger_power"] == 22.0
        assert sample_hub["priority"] == 1
        assert sample_hub["charging_profile_id"] == sample_profile["id"]
        assert sample_hub["demand_profile_annual_demand"] is None

    async def test_profile_from_other_project(self, client: AsyncClient, sample_profile):
        other = (await client.post("/api/v1/projects/", json={"name": "Other"})).json()
        resp = await client.post(
            f"/api/v1/projects/{other['id']}/charging-hubs",
            json={
                "hub_name": "H",
                "charger_power": 7,
                "number_of_chargers": 1,
                "charging_profile_id": sample_profile["id"],
            },
        )
        assert resp.status_code == 404

    async def test_list_ordered_by_priority(self, client: AsyncClient, sample_project, sample_hub):
        pid = sample_project["id"]
        await client.post(
            f"/api/v1/projects/{pid}/charging-hubs",
            json={"hub_name": "First", "charger_power": 7, "number_of_chargers": 1, "priority": 1},
        )
        await client.patch(f"/api/v1/charging-hubs/{sample_hub['id']}", json={"priority": 5})
        resp = await client.get(f"/api/v1/projects/{pid}/charging-hubs")
        assert [h["hub_name"] for h in resp.json()] == ["First", "Yard"]

    async def test_update(self, client: AsyncClient, sample_hub):
        resp = await client.patch(
            f"/api/v1/charging-hubs/{sample_hub['id']}", json={"number_of_chargers": 4}
        )
        assert resp.status_code == 200
        assert resp.json()["number_of_chargers"] == 4

    async def test_profiles_before_analysis(self, client: AsyncClient, sample_hub):
        resp = await client.get(f"/api/v1/charging-hubs/{sample_hub['id']}/profiles")
        assert resp.status_code == 200
        assert resp.json()["demand_profile"] is None

    async def test_delete(self, client: AsyncClient, sample_hub):
        resp = await client.delete(f"/api/v1/charging-hubs/{sample_hub['id']}")
        assert resp.status_code == 204
        assert (await client.get(f"/api/v1/charging-hubs/{sample_hub['id']}")).status_code == 404

    async def test_negative_power_rejected(self, client: AsyncClient, sample_project):
        resp = await client.post(
            f"/api/v1/projects/{sample_project['id']}/charging-hubs",
            json={"hub_name": "Bad", "charger_power": -1, "number_of_chargers": 1},
        )
        assert resp.status_code == 422
