"""
AlertService 단위 테스트

이 모듈은 자동 / 수동 경보 생성, 중복 억제, 조회, 통계를 테스트합니다.
"""

import asyncio
import itertools
from datetime import timedelta
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock
from envalert.adapters.storage import SQLiteAlertStore, SQLiteUserRegistry
from envalert.core.errors import DispatchError, NotFoundError, ValidationError
from envalert.core.models import Breach, DispatchResult
from envalert.services import (
    AlertService, DeduplicationGuard, GeoAudienceResolver, NotificationDispatcher, TokenLifecycleManager,
)
from tests.helpers import make_rule, make_snapshot


def _breach(station="S1", value=200.0, level="HIGH", with_location=True):
    return Breach(
        rule=make_rule(level=level),
        snapshot=make_snapshot(station, {"aqi": value}, lat=21.03, lon=105.85, with_location=with_location),
        observed_value=value,
    )


@pytest_asyncio.fixture
async def stores(temp_db_path):
    alerts = SQLiteAlertStore(temp_db_path)
    users = SQLiteUserRegistry(temp_db_path)
    await alerts.init()
    await users.init()
    await users.upsert_user("near1", "ExponentPushToken[n1]", lat=21.03, lon=105.85)
    await users.upsert_user("near2", "ExponentPushToken[n2]", lat=21.05, lon=105.86)
    await users.upsert_user("far", "ExponentPushToken[far]", lat=10.8, lon=106.6)
    return alerts, users


def _service(stores, transport, clock, **kwargs):
    alerts, users = stores
    dispatcher = NotificationDispatcher(transport)
    ids = itertools.count(1)
    return AlertService(
        alerts=alerts,
        dedup=DeduplicationGuard(alerts, window_hours=2, clock=clock),
        audience=GeoAudienceResolver(users, area_radius_km=10, buffer_km=5),
        dispatcher=dispatcher,
        tokens=TokenLifecycleManager(users, dispatcher),
        clock=clock,
        id_factory=lambda: f"a{next(ids)}",
        **kwargs,
    )


class TestCreateAutoAlert:
    """자동 경보 생성 테스트"""

    @pytest.mark.asyncio
    async def test_auto_alert_targets_area(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)

        record = await service.create_auto_alert(_breach())

        assert record.is_automatic
        assert record.station_id == "S1"
        assert record.sent_count == 2
        assert record.expires_at - record.sent_at == timedelta(hours=4)
        assert record.source_data.value == 200.0
        assert record.source_data.threshold == 150.0
        assert record.area is not None
        sent_tokens = mock_transport.send.await_args.args[0]
        assert sorted(sent_tokens) == ["ExponentPushToken[n1]", "ExponentPushToken[n2]"]
        assert await service.get(record.id) == record

    @pytest.mark.asyncio
    async def test_duplicate_within_window_suppressed(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)

        first = await service.create_auto_alert(_breach())
        clock.advance(minutes=30)
        second = await service.create_auto_alert(_breach())
        other_level = await service.create_auto_alert(_breach(level="CRITICAL"))

        assert first is not None
        assert second is None
        assert other_level is not None
        assert mock_transport.send.await_count == 2

    @pytest.mark.asyncio
    async def test_realert_after_window(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)

        await service.create_auto_alert(_breach())
        clock.advance(hours=2, minutes=1)

        assert await service.create_auto_alert(_breach()) is not None

    @pytest.mark.asyncio
    async def test_concurrent_same_key_creates_one(self, stores, clock):
        transport = AsyncMock()

        async def _slow_send(tokens, payload, dry_run=False):
            await asyncio.sleep(0.01)
            return DispatchResult(success_count=len(tokens), failed_tokens=[])

        transport.send.side_effect = _slow_send
        service = _service(stores, transport, clock)

        results = await asyncio.gather(*(service.create_auto_alert(_breach()) for _ in range(3)))

        assert sum(r is not None for r in results) == 1
        assert (await service.statistics())["total"] == 1

    @pytest.mark.asyncio
    async def test_station_without_location_broadcasts(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)

        record = await service.create_auto_alert(_breach(with_location=False))

        assert record.area is None
        assert record.sent_count == 3

    @pytest.mark.asyncio
    async def test_failed_tokens_cleared_after_dispatch(self, stores, clock):
        alerts, users = stores
        transport = AsyncMock()
        transport.send.return_value = DispatchResult(success_count=1, failed_tokens=["ExponentPushToken[n2]"])
        service = _service(stores, transport, clock)

        record = await service.create_auto_alert(_breach())

        assert record.sent_count == 1
        assert await users.get_token("near2") is None
        assert await users.get_token("near1") == "ExponentPushToken[n1]"

    @pytest.mark.asyncio
    async def test_dispatch_failure_still_records_alert(self, stores, clock):
        transport = AsyncMock()
        transport.send.side_effect = DispatchError("push service down")
        service = _service(stores, transport, clock)

        with pytest.raises(DispatchError):
            await service.create_auto_alert(_breach())

        stored = await service.get("a1")
        assert stored.sent_count == 0
        assert stored.station_id == "S1"
        assert (await service.statistics())["total"] == 1

    @pytest.mark.asyncio
    async def test_failed_dispatch_still_suppresses_next_tick(self, stores, mock_transport, clock):
        failing = AsyncMock()
        failing.send.side_effect = DispatchError("push service down")
        with pytest.raises(DispatchError):
            await _service(stores, failing, clock).create_auto_alert(_breach())

        clock.advance(minutes=10)
        service = _service(stores, mock_transport, clock)

        assert await service.create_auto_alert(_breach()) is None
        mock_transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_timeout_maps_to_dispatch_error(self, stores, clock):
        transport = AsyncMock()

        async def _hang(tokens, payload, dry_run=False):
            await asyncio.sleep(1)

        transport.send.side_effect = _hang
        service = _service(stores, transport, clock, call_timeout_sec=0.01)

        with pytest.raises(DispatchError):
            await service.create_auto_alert(_breach())

    @pytest.mark.asyncio
    async def test_dry_run_is_forwarded(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock, dry_run=True)

        await service.create_auto_alert(_breach())

        assert mock_transport.send.await_args.kwargs["dry_run"] is True


class TestCreateManual:
    """수동 경보 생성 테스트"""

    @pytest.mark.asyncio
    async def test_manual_without_area_broadcasts(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)

        record = await service.create_manual(
            {"level": "CRITICAL", "domain_type": "DISASTER", "title": "Bão", "message": "Bão số 3"},
            created_by="admin",
        )

        assert not record.is_automatic
        assert record.created_by == "admin"
        assert record.sent_count == 3
        assert record.expires_at is None

    @pytest.mark.asyncio
    async def test_manual_is_not_deduplicated(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)
        payload = {"level": "LOW", "domain_type": "ENVIRONMENTAL", "title": "t", "message": "m"}

        a = await service.create_manual(payload, created_by="admin")
        b = await service.create_manual(payload, created_by="admin")

        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_manual_validation(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)

        with pytest.raises(ValidationError):
            await service.create_manual({"level": "HUGE", "domain_type": "DISASTER", "title": "t", "message": "m"},
                                         created_by="admin")
        mock_transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("creator", [None, "", "   "])
    async def test_manual_requires_creator(self, stores, mock_transport, clock, creator):
        service = _service(stores, mock_transport, clock)

        with pytest.raises(ValidationError):
            await service.create_manual({"level": "LOW", "domain_type": "DISASTER", "title": "t", "message": "m"},
                                        created_by=creator)
        mock_transport.send.assert_not_awaited()
        assert (await service.statistics())["total"] == 0

    @pytest.mark.asyncio
    async def test_manual_dispatch_failure_keeps_record(self, stores, clock):
        transport = AsyncMock()
        transport.send.side_effect = DispatchError("push service down")
        service = _service(stores, transport, clock)

        with pytest.raises(DispatchError):
            await service.create_manual({"level": "HIGH", "domain_type": "DISASTER", "title": "t", "message": "m"},
                                        created_by="admin")

        stored = await service.get("a1")
        assert stored.created_by == "admin"
        assert stored.sent_count == 0


class TestQueries:
    """조회 / 통계 테스트"""

    @pytest.mark.asyncio
    async def test_get_missing(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)
        with pytest.raises(NotFoundError):
            await service.get("nope")

    @pytest.mark.asyncio
    async def test_statistics_and_active(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)
        await service.create_auto_alert(_breach("S1"))
        await service.create_auto_alert(_breach("S2", level="CRITICAL"))
        await service.create_manual({"level": "LOW", "domain_type": "DISASTER", "title": "t", "message": "m"},
                                    created_by="admin")

        clock.advance(hours=5)
        stats = await service.statistics()
        active = await service.list_active()

        assert stats["total"] == 3
        assert stats["activeCount"] == 1
        assert stats["byLevel"] == {"LOW": 1, "MEDIUM": 0, "HIGH": 1, "CRITICAL": 1}
        assert [a.domain_type for a in active] == ["DISASTER"]

    @pytest.mark.asyncio
    async def test_list_alerts_clamps_paging(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)
        await service.create_auto_alert(_breach("S1"))

        page = await service.list_alerts(page=0, limit=500, domain_type="AIR_QUALITY")

        assert page["page"] == 1
        assert page["limit"] == 100
        assert page["total"] == 1
        assert len(page["data"]) == 1

    @pytest.mark.asyncio
    async def test_trend(self, stores, mock_transport, clock):
        service = _service(stores, mock_transport, clock)
        await service.create_auto_alert(_breach("S1"))
        clock.advance(days=1)
        await service.create_auto_alert(_breach("S1"))
        await service.create_auto_alert(_breach("S2"))

        trend = await service.trend()

        assert trend == [{"date": "2026-03-01", "count": 1}, {"date": "2026-03-02", "count": 2}]
