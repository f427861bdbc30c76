"""Tests for engine.weather.pvgis_client with a mocked HTTP transport."""

from __future__ import annotations

import httpx
import numpy as np
import pytest

from engine.weather import fetch_reference_curve, parse_hourly_output, pvgis_aspect

HOURS_PER_YEAR = 8760


def _payload(hours: int, year: int = 2019, value: float = 100.0) -> dict:
    rows = []
    start = np.datetime64(f"{year}-01-01T00:00")
    for h in range(hours):
        stamp = (start + np.timedelta64(h, "h")).astype(object)
        rows.append({"time": stamp.strftime("%Y%m%d:%H10"), "P": value})
    return {"outputs": {"hourly": rows}}


class TestAspect:
    @pytest.mark.parametrize(
        "azimuth, aspect",
        [(180, 0), (90, -90), (270, 90), (0, -180), (45, -135), (315, 135)],
    )
    def test_conversion(self, azimuth, aspect):
        assert pvgis_aspect(azimuth) == aspect


class TestParse:
    def test_non_leap_year(self):
        values = parse_hourly_output(_payload(HOURS_PER_YEAR))
        assert values.shape == (HOURS_PER_YEAR,)
        assert values.sum() == pytest.approx(100.0 * HOURS_PER_YEAR)

    def test_leap_day_removed(self):
        payload = _payload(HOURS_PER_YEAR + 24, year=2020)
        for row in payload["outputs"]["hourly"]:
            if row["time"][4:8] == "0229":
                row["P"] = 999.0
        values = parse_hourly_output(payload)
        assert values.shape == (HOURS_PER_YEAR,)
        assert values.max() == 100.0

    def test_missing_table(self):
        with pytest.raises(ValueError):
            parse_hourly_output({"inputs": {}})

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            parse_hourly_output(_payload(100))


@pytest.mark.asyncio
class TestFetch:
    async def test_query_parameters(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            seen["path"] = request.url.path
            return httpx.Response(200, json=_payload(HOURS_PER_YEAR))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            curve = await fetch_reference_curve(
                40.4, -3.7, 90, 30, base_url="https://pvgis.test/api", client=client
            )

        assert curve.shape == (HOURS_PER_YEAR,)
        assert seen["path"] == "/api/seriescalc"
        assert seen["aspect"] == "-90"
        assert seen["angle"] == "30"
        assert seen["peakpower"] == "1"
        assert seen["loss"] == "0"
        assert seen["outputformat"] == "json"

    async def test_http_error_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "boom"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_reference_curve(40.4, -3.7, 180, 30, client=client)
