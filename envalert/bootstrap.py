"""
Composition root for envalert.

This module wires settings, adapters, services and schedulers into a
single Engine object shared by the HTTP API and the background loops.
"""

from dataclasses import dataclass
from typing import Optional
from envalert.adapters.push import ExpoPushTransport, LogPushTransport
from envalert.adapters.sampler import HttpMetricSampler
from envalert.adapters.storage import SQLiteAlertStore, SQLiteRuleStore, SQLiteUserRegistry
from envalert.observability.logging_setup import get_logger
from envalert.orchestrators import AlertScheduler, TokenSweepScheduler
from envalert.ports.push import PushTransportPort
from envalert.ports.sampler import MetricSamplerPort
from envalert.services import (
    AlertService, DeduplicationGuard, GeoAudienceResolver, NotificationDispatcher,
    ThresholdStore, TokenLifecycleManager,
)
from envalert.settings import Settings

log = get_logger("envalert.bootstrap")


@dataclass
class Engine:
    """조립된 서비스 묶음"""
    settings: Settings
    rule_store: SQLiteRuleStore
    alert_store: SQLiteAlertStore
    users: SQLiteUserRegistry
    sampler: MetricSamplerPort
    transport: PushTransportPort
    thresholds: ThresholdStore
    dispatcher: NotificationDispatcher
    tokens: TokenLifecycleManager
    alerts: AlertService
    scheduler: AlertScheduler
    sweeper: TokenSweepScheduler

    async def init(self) -> None:
        """스키마를 만들고 필요하면 기본 규칙을 넣습니다."""
        await self.rule_store.init()
        await self.alert_store.init()
        await self.users.init()
        if self.settings.storage.seed_defaults:
            await self.thresholds.seed_defaults()

    async def close(self) -> None:
        for resource in (self.sampler, self.transport):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()


def build_transport(settings: Settings) -> PushTransportPort:
    """dry_run이거나 provider가 log이면 로그 전송기를 사용합니다."""
    if settings.dry_run or settings.push.provider == "log":
        log.info("로그 푸시 전송기 사용")
        return LogPushTransport()
    return ExpoPushTransport(
        url=settings.push.url,
        timeout=settings.push.timeout_sec,
        batch_size=settings.push.batch_size,
        access_token=settings.push.access_token,
    )


def build_engine(settings: Settings,
                 sampler: Optional[MetricSamplerPort] = None,
                 transport: Optional[PushTransportPort] = None) -> Engine:
    """
    설정으로 엔진을 조립합니다.

    Args:
        settings: 서비스 설정
        sampler: 측정값 샘플러 (없으면 HTTP 샘플러)
        transport: 푸시 전송기 (없으면 설정에 따라 선택)

    Returns:
        Engine (init() 호출 필요)
    """
    eng = settings.engine
    db_path = settings.storage.db_path

    rule_store = SQLiteRuleStore(db_path)
    alert_store = SQLiteAlertStore(db_path)
    users = SQLiteUserRegistry(db_path)

    sampler = sampler or HttpMetricSampler(
        settings.upstream.base_url,
        timeout=settings.upstream.timeout_sec,
        max_retries=settings.upstream.max_retries,
    )
    transport = transport or build_transport(settings)

    thresholds = ThresholdStore(rule_store)
    dispatcher = NotificationDispatcher(transport, locale=eng.locale)
    tokens = TokenLifecycleManager(users, dispatcher, batch_size=settings.token_sweep.batch_size, locale=eng.locale)
    alerts = AlertService(
        alert_store,
        DeduplicationGuard(alert_store, window_hours=eng.dedup_window_hours),
        GeoAudienceResolver(users, area_radius_km=eng.area_radius_km, buffer_km=eng.audience_buffer_km),
        dispatcher,
        tokens,
        auto_alert_ttl_hours=eng.auto_alert_ttl_hours,
        call_timeout_sec=eng.call_timeout_sec,
        dry_run=settings.dry_run,
    )
    scheduler = AlertScheduler(
        thresholds, sampler, alerts,
        interval_sec=eng.tick_interval_sec,
        tick_timeout_sec=eng.tick_timeout_sec,
        call_timeout_sec=eng.call_timeout_sec,
        max_concurrency=eng.max_concurrency,
    )
    sweeper = TokenSweepScheduler(tokens, interval_sec=settings.token_sweep.interval_sec)

    return Engine(
        settings=settings,
        rule_store=rule_store,
        alert_store=alert_store,
        users=users,
        sampler=sampler,
        transport=transport,
        thresholds=thresholds,
        dispatcher=dispatcher,
        tokens=tokens,
        alerts=alerts,
        scheduler=scheduler,
        sweeper=sweeper,
    )
