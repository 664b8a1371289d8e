"""
Sampler Adapter 모듈 단위 테스트
"""

import pytest
import aiohttp
from unittest.mock import AsyncMock, patch
from envalert.adapters.sampler.http_sampler import HttpMetricSampler, parse_location, parse_snapshot
from envalert.core.errors import UpstreamFetchError


class TestParsing:
    """응답 문서 변환 테스트"""

    def test_parse_lat_lon_location(self):
        loc = parse_location({"location": {"lat": 21.0, "lng": 105.8}})
        assert (loc.lat, loc.lon) == (21.0, 105.8)

    def test_parse_geojson_point(self):
        loc = parse_location({"location": {"type": "Point", "coordinates": [105.8, 21.0]}})
        assert (loc.lat, loc.lon) == (21.0, 105.8)

    def test_invalid_location_is_none(self):
        assert parse_location({}) is None
        assert parse_location({"location": {"lat": "x", "lon": 1}}) is None
        assert parse_location({"location": {"type": "Point", "coordinates": []}}) is None

    def test_parse_snapshot(self):
        doc = {"stationId": "HN01", "stationName": "Hà Nội", "aqi": {"epaUS": {"index": 160}}}
        snap = parse_snapshot(doc)
        assert snap.station_id == "HN01"
        assert snap.station_name == "Hà Nội"
        assert snap.location is None
        assert snap.values["aqi"]["epaUS"]["index"] == 160

    def test_snapshot_without_station_is_dropped(self):
        assert parse_snapshot({"aqi": 10}) is None


class TestHttpMetricSampler:
    """HTTP 샘플러 테스트"""

    @pytest.fixture
    def sampler(self):
        return HttpMetricSampler("http://telemetry.local/api/", max_retries=0)

    def test_base_url_trailing_slash_removed(self, sampler):
        assert sampler.base_url == "http://telemetry.local/api"

    @pytest.mark.asyncio
    async def test_fetch_wrapped_data(self, sampler):
        body = {"data": [{"stationId": "S1", "aqi": 10}, {"id": "S2"}, {"noid": True}, "junk"]}
        with patch.object(sampler, "_get", new=AsyncMock(return_value=body)) as get:
            snaps = await sampler.fetch_current("AIR_QUALITY")

        get.assert_awaited_once_with("/air-quality/current")
        assert [s.station_id for s in snaps] == ["S1", "S2"]

    @pytest.mark.asyncio
    async def test_fetch_bare_list(self, sampler):
        with patch.object(sampler, "_get", new=AsyncMock(return_value=[{"stationId": "W1"}])) as get:
            snaps = await sampler.fetch_current("WEATHER")

        get.assert_awaited_once_with("/weather/current")
        assert len(snaps) == 1

    @pytest.mark.asyncio
    async def test_unsupported_domain_returns_empty(self, sampler):
        with patch.object(sampler, "_get", new=AsyncMock()) as get:
            assert await sampler.fetch_current("DISASTER") == []
        get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_client_error_becomes_upstream_error(self, sampler):
        with patch.object(sampler, "_get", new=AsyncMock(side_effect=aiohttp.ClientError("down"))):
            with pytest.raises(UpstreamFetchError):
                await sampler.fetch_current("AIR_QUALITY")

    @pytest.mark.asyncio
    async def test_malformed_body_is_upstream_error(self, sampler):
        with patch.object(sampler, "_get", new=AsyncMock(return_value={"data": "nope"})):
            with pytest.raises(UpstreamFetchError):
                await sampler.fetch_current("AIR_QUALITY")
