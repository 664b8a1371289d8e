"""
Alert creation and querying for envalert.

This module runs the per-breach alert sequence (dedup check, audience,
dispatch, token feedback, persistence), creates operator-authored manual
alerts and serves the alert history and statistics queries.
"""

import uuid
from datetime import timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from envalert.common.clock import Clock, utc_now
from envalert.common.retry import with_timeout
from envalert.common.validation import parse_model
from envalert.core.content import build_push_payload
from envalert.core.errors import DispatchError, NotFoundError, UpstreamFetchError, ValidationError
from envalert.core.models import (
    ALERT_LEVELS, AlertRecord, AudienceMember, Breach, ManualAlertCreate, SourceData,
)
from envalert.observability.logging_setup import get_logger
from envalert.observability import metrics
from envalert.ports.alert_store import AlertRecordStorePort
from envalert.services.audience import GeoAudienceResolver
from envalert.services.dedup import DeduplicationGuard
from envalert.services.dispatcher import NotificationDispatcher
from envalert.services.token_lifecycle import TokenLifecycleManager

log = get_logger("envalert.alerts")

TREND_DAYS = 30
ACTIVE_LIMIT = 10


class AlertService:
    """경보 생성 / 조회 서비스"""

    def __init__(self,
                 alerts: AlertRecordStorePort,
                 dedup: DeduplicationGuard,
                 audience: GeoAudienceResolver,
                 dispatcher: NotificationDispatcher,
                 tokens: TokenLifecycleManager,
                 auto_alert_ttl_hours: float = 4.0,
                 call_timeout_sec: float = 30.0,
                 dry_run: bool = False,
                 clock: Clock = utc_now,
                 id_factory: Callable[[], str] = lambda: str(uuid.uuid4())):
        """
        초기화합니다.

        Args:
            alerts: 경보 기록 저장소
            dedup: 중복 억제기
            audience: 수신자 결정기
            dispatcher: 알림 발송기
            tokens: 토큰 정리기
            auto_alert_ttl_hours: 자동 경보 만료 시간 (시간)
            call_timeout_sec: 외부 호출별 타임아웃 (초)
            dry_run: True이면 실제 발송 없이 검증만
            clock: 현재 시각 함수
            id_factory: 경보 ID 생성 함수
        """
        self.alerts = alerts
        self.dedup = dedup
        self.audience = audience
        self.dispatcher = dispatcher
        self.tokens = tokens
        self.auto_alert_ttl = timedelta(hours=auto_alert_ttl_hours)
        self.call_timeout_sec = call_timeout_sec
        self.dry_run = dry_run
        self.clock = clock
        self.id_factory = id_factory

    async def _deliver(self, record: AlertRecord) -> AlertRecord:
        """
        수신자 결정 → 발송 → 실패 토큰 정리 → 기록 저장

        발송 전체가 실패해도 기록은 sent_count=0으로 저장한 뒤 오류를 다시 올립니다.
        """
        try:
            members: List[AudienceMember] = await with_timeout(
                self.audience.resolve_audience(record.area),
                self.call_timeout_sec,
                lambda: UpstreamFetchError("수신자 조회 시간 초과"),
            )
            result = await with_timeout(
                self.dispatcher.dispatch([m.token for m in members], build_push_payload(record), dry_run=self.dry_run),
                self.call_timeout_sec,
                lambda: DispatchError("알림 발송 시간 초과"),
            )
        except (DispatchError, UpstreamFetchError) as e:
            await self._persist(record.model_copy(update={"sent_count": 0}))
            log.error(f"경보 발송 실패, 기록만 저장 id:{record.id} type:{record.domain_type} error:{e}")
            raise

        await self.tokens.on_dispatch_failures(result.failed_tokens, members)

        record = record.model_copy(update={"sent_count": result.success_count})
        await self._persist(record)
        log.info(f"경보 발송 id:{record.id} type:{record.domain_type} level:{record.level} "
                 f"audience:{len(members)} sent:{record.sent_count}")
        return record

    async def _persist(self, record: AlertRecord) -> None:
        await self.alerts.create(record)
        metrics.alerts_created.labels(
            domain=record.domain_type, level=record.level,
            kind="auto" if record.is_automatic else "manual",
        ).inc()

    async def create_auto_alert(self, breach: Breach) -> Optional[AlertRecord]:
        """
        임계값 초과 하나를 자동 경보로 발송합니다.

        같은 키의 처리는 잠금으로 직렬화되며, 중복 기간 안이면 아무것도 하지 않습니다.

        Args:
            breach: 임계값 초과 정보

        Returns:
            생성된 AlertRecord, 억제된 경우 None
        """
        rule, snapshot = breach.rule, breach.snapshot
        async with self.dedup.claim(rule.domain_type, rule.level, snapshot.station_id):
            if await self.dedup.should_suppress(rule.domain_type, rule.level, snapshot.station_id):
                metrics.alerts_duplicate.labels(domain=rule.domain_type).inc()
                log.debug(f"중복 경보 억제 type:{rule.domain_type} level:{rule.level} station:{snapshot.station_id}")
                return None

            now = self.clock()
            title, message = self.dispatcher.format_auto_alert(breach)
            record = AlertRecord(
                id=self.id_factory(),
                level=rule.level,
                domain_type=rule.domain_type,
                title=title,
                message=message,
                advice=rule.advice_template,
                area=self.audience.build_area(snapshot),
                sent_at=now,
                expires_at=now + self.auto_alert_ttl,
                sent_count=0,
                is_automatic=True,
                source_data=SourceData(
                    metric=rule.metric,
                    value=breach.observed_value,
                    threshold=rule.threshold_value,
                    operator=rule.operator,
                    timestamp=now,
                ),
                station_id=snapshot.station_id,
            )
            return await self._deliver(record)

    async def create_manual(self, payload: Union[Mapping[str, Any], ManualAlertCreate],
                            created_by: str) -> AlertRecord:
        """
        운영자가 작성한 경보를 발송합니다.

        영역이 없으면 토큰이 있는 모든 활성 사용자에게 발송합니다.

        Args:
            payload: 경보 내용
            created_by: 작성한 운영자 ID (필수)

        Raises:
            ValidationError: 입력 검증 실패 또는 작성자 누락
        """
        if not created_by or not created_by.strip():
            raise ValidationError("created_by: 수동 경보에는 작성자 ID가 필요합니다")
        data = parse_model(ManualAlertCreate, payload)
        record = AlertRecord(
            id=self.id_factory(),
            sent_at=self.clock(),
            is_automatic=False,
            created_by=created_by,
            **data.model_dump(exclude={"area"}),
            area=data.area,
        )
        return await self._deliver(record)

    async def get(self, alert_id: str) -> AlertRecord:
        record = await self.alerts.get(alert_id)
        if record is None:
            raise NotFoundError(f"경보를 찾을 수 없습니다: {alert_id}")
        return record

    async def list_alerts(self, page: int = 1, limit: int = 10, level: Optional[str] = None,
                          domain_type: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
        """경보 이력 페이지 {data, total, page, limit}"""
        page, limit = max(1, page), max(1, min(limit, 100))
        data, total = await self.alerts.list_alerts(
            page=page, limit=limit, level=level, domain_type=domain_type, status=status, now=self.clock()
        )
        return {"data": data, "total": total, "page": page, "limit": limit}

    async def list_active(self) -> List[AlertRecord]:
        """만료되지 않은 최근 경보 (최대 10건)"""
        return await self.alerts.list_active(self.clock(), ACTIVE_LIMIT)

    async def statistics(self) -> Dict[str, Any]:
        """{total, activeCount, byLevel}"""
        total = await self.alerts.count_all()
        _, active = await self.alerts.list_alerts(page=1, limit=1, status="active", now=self.clock())
        by_level = await self.alerts.count_by_level()
        return {
            "total": total,
            "activeCount": active,
            "byLevel": {level: by_level.get(level, 0) for level in ALERT_LEVELS},
        }

    async def trend(self, days: int = TREND_DAYS) -> List[Dict[str, Any]]:
        """최근 days일 일자별 경보 수"""
        return await self.alerts.count_per_day_last_n_days(days, self.clock())
