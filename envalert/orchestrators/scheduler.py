"""
Alert scheduler for envalert.

This module runs the periodic threshold check: fetch active rules, sample
current metrics per monitored domain, evaluate, and hand each breach to
the alert service. Domains fail independently; ticks never overlap.
"""

import asyncio
import time
from collections import defaultdict
from typing import Any, Dict, List, Optional
from envalert.common.clock import Clock, utc_now
from envalert.common.retry import with_timeout
from envalert.core.errors import FatalSchedulerError, SchedulerBusyError, UpstreamFetchError
from envalert.core.evaluator import ThresholdEvaluator
from envalert.core.models import MONITORED_DOMAINS, Breach, DomainReport, ThresholdRule, TickReport
from envalert.observability import metrics
from envalert.observability.logging_setup import get_logger, with_context
from envalert.ports.sampler import MetricSamplerPort
from envalert.services.alerts import AlertService
from envalert.services.threshold_store import ThresholdStore

log = get_logger("envalert.scheduler")


class AlertScheduler:
    """주기적 임계값 검사 스케줄러"""

    def __init__(self,
                 thresholds: ThresholdStore,
                 sampler: MetricSamplerPort,
                 alerts: AlertService,
                 *,
                 interval_sec: float = 600,
                 tick_timeout_sec: float = 300,
                 call_timeout_sec: float = 30,
                 max_concurrency: int = 8,
                 evaluator: Optional[ThresholdEvaluator] = None,
                 clock: Clock = utc_now):
        """
        초기화합니다.

        Args:
            thresholds: 임계값 규칙 서비스
            sampler: 측정값 샘플러
            alerts: 경보 서비스
            interval_sec: 틱 간격 (초)
            tick_timeout_sec: 틱 전체 제한 시간 (초)
            call_timeout_sec: 외부 호출별 제한 시간 (초)
            max_concurrency: 도메인 내 동시 처리 breach 수
            evaluator: 임계값 평가기
            clock: 현재 시각 함수
        """
        self.thresholds = thresholds
        self.sampler = sampler
        self.alerts = alerts
        self.interval_sec = interval_sec
        self.tick_timeout_sec = tick_timeout_sec
        self.call_timeout_sec = call_timeout_sec
        self.max_concurrency = max(1, max_concurrency)
        self.evaluator = evaluator or ThresholdEvaluator()
        self.clock = clock

        self._busy = asyncio.Lock()
        self._running = False
        self.last_report: Optional[TickReport] = None

        log.info(f"경보 스케줄러 초기화됨 interval:{interval_sec}s concurrency:{self.max_concurrency}")

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    async def start(self) -> None:
        """
        스케줄러 루프를 시작합니다.

        간격마다 틱을 실행하며, 틱 오류는 로그만 남기고 다음 틱을 기다립니다.
        """
        self._running = True
        log.info("경보 스케줄러 시작됨")

        while self._running:
            await asyncio.sleep(self.interval_sec)
            if not self._running:
                break
            try:
                await self.run_tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error(f"스케줄러 틱 오류 error:{str(e)}")

    def stop(self) -> None:
        self._running = False
        log.info("경보 스케줄러 중지 요청")

    async def run_tick(self) -> TickReport:
        """
        틱 하나를 실행합니다.

        이미 실행 중인 틱이 있으면 건너뜁니다 (skipped=True).

        Returns:
            TickReport

        Raises:
            FatalSchedulerError: 규칙 조회 실패 또는 틱 시간 초과
        """
        if self._busy.locked():
            log.warning("이전 틱이 아직 실행 중이어서 건너뜁니다")
            metrics.ticks_total.labels(outcome="skipped").inc()
            return TickReport(started_at=self.clock(), finished_at=self.clock(), skipped=True)

        async with self._busy:
            t0 = time.perf_counter()
            try:
                with with_context(tick=self.clock().isoformat()):
                    report = await with_timeout(
                        self._tick(),
                        self.tick_timeout_sec,
                        lambda: FatalSchedulerError(f"틱 제한 시간({self.tick_timeout_sec}s) 초과"),
                    )
            except FatalSchedulerError:
                metrics.ticks_total.labels(outcome="fatal").inc()
                raise
            finally:
                metrics.tick_seconds.observe(time.perf_counter() - t0)

            outcome = "partial" if report.failed_domains else "ok"
            metrics.ticks_total.labels(outcome=outcome).inc()
            self.last_report = report
            return report

    async def trigger_now(self) -> Dict[str, Any]:
        """
        수동으로 틱을 실행합니다.

        Returns:
            {"message": ..., "failedDomains": [...]} (실패한 도메인이 있으면 메시지로도 알림)

        Raises:
            SchedulerBusyError: 이미 틱이 실행 중
            FatalSchedulerError: 틱 실패
        """
        log.info("수동 임계값 검사 요청")
        report = await self.run_tick()
        if report.skipped:
            raise SchedulerBusyError("임계값 검사가 이미 실행 중입니다")
        if report.failed_domains:
            log.warning(f"수동 임계값 검사 일부 실패 failed_domains:{report.failed_domains}")
            return {"message": "Threshold check completed with failed domains",
                    "failedDomains": report.failed_domains}
        return {"message": "Threshold check triggered successfully", "failedDomains": []}

    async def _tick(self) -> TickReport:
        report = TickReport(started_at=self.clock())

        try:
            rules = await with_timeout(
                self.thresholds.list_active(),
                self.call_timeout_sec,
                lambda: FatalSchedulerError("활성 규칙 조회 시간 초과"),
            )
        except FatalSchedulerError:
            raise
        except Exception as e:
            raise FatalSchedulerError(f"활성 규칙 조회 실패: {e}") from e

        metrics.active_rules.set(len(rules))
        by_domain: Dict[str, List[ThresholdRule]] = defaultdict(list)
        for rule in rules:
            by_domain[rule.domain_type].append(rule)

        log.info(f"틱 시작 active_rules:{len(rules)}")

        for domain in MONITORED_DOMAINS:
            report.domains[domain] = await self._process_domain(domain, by_domain.get(domain, []))

        report.finished_at = self.clock()
        log.info(f"틱 완료 failed_domains:{report.failed_domains}")
        return report

    async def _process_domain(self, domain: str, rules: List[ThresholdRule]) -> DomainReport:
        """
        도메인 하나를 처리합니다.

        도메인 안의 오류는 기록만 하고 다른 도메인 처리를 막지 않습니다.
        """
        result = DomainReport(domain_type=domain)
        if not rules:
            return result

        try:
            snapshots = await with_timeout(
                self.sampler.fetch_current(domain),
                self.call_timeout_sec,
                lambda: UpstreamFetchError(f"{domain} 측정값 조회 시간 초과"),
            )
            result.snapshots = len(snapshots)
            metrics.snapshots_fetched.labels(domain=domain).inc(len(snapshots))

            breaches = self.evaluator.evaluate(rules, snapshots)
            result.breaches = len(breaches)
            for b in breaches:
                metrics.breaches_detected.labels(domain=domain, level=b.rule.level).inc()

            sem = asyncio.Semaphore(self.max_concurrency)

            async def _bounded(breach: Breach) -> bool:
                async with sem:
                    return await self._handle_breach(breach)

            outcomes = await asyncio.gather(*(_bounded(b) for b in breaches), return_exceptions=True)

            errors = [o for o in outcomes if isinstance(o, Exception)]
            result.created = sum(1 for o in outcomes if o is True)
            result.suppressed = sum(1 for o in outcomes if o is False)
            if errors:
                raise errors[0]

        except asyncio.CancelledError:
            raise
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            metrics.domain_failures.labels(domain=domain).inc()
            log.error(f"도메인 처리 실패 domain:{domain} error:{result.error}")

        log.info(f"도메인 처리 domain:{domain} snapshots:{result.snapshots} breaches:{result.breaches} "
                 f"created:{result.created} suppressed:{result.suppressed}")
        return result

    async def _handle_breach(self, breach: Breach) -> bool:
        """breach 하나를 처리합니다 (생성되면 True, 억제되면 False)."""
        record = await self.alerts.create_auto_alert(breach)
        return record is not None
