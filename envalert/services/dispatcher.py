"""
Notification dispatch for envalert.

This module wraps the push transport, normalizes its results and
formats automatic alert content.
"""

import time
from typing import Sequence, Tuple
from envalert.core.content import AlertContentTemplate
from envalert.core.labels import DEFAULT_LOCALE
from envalert.core.models import Breach, DispatchResult, PushPayload
from envalert.observability.logging_setup import get_logger
from envalert.observability import metrics
from envalert.ports.push import PushTransportPort

log = get_logger("envalert.dispatcher")


class NotificationDispatcher:
    """푸시 알림 발송기"""

    def __init__(self, transport: PushTransportPort, locale: str = DEFAULT_LOCALE):
        """
        초기화합니다.

        Args:
            transport: 푸시 전송 포트
            locale: 알림 문구 언어
        """
        self.transport = transport
        self.template = AlertContentTemplate(locale)

    def format_auto_alert(self, breach: Breach) -> Tuple[str, str]:
        """자동 경보 제목 / 본문"""
        return self.template.auto_alert(breach)

    async def dispatch(self, tokens: Sequence[str], payload: PushPayload, dry_run: bool = False) -> DispatchResult:
        """
        토큰 목록으로 알림을 발송합니다.

        일부 실패는 예외가 아니라 failed_tokens로 보고됩니다.

        Args:
            tokens: 디바이스 토큰
            payload: 알림 페이로드
            dry_run: 실제 발송 없이 검증만 수행

        Returns:
            DispatchResult (0 <= success_count <= len(tokens))

        Raises:
            DispatchError: 전송 계층 전체 실패
        """
        tokens = list(tokens)
        if not tokens:
            log.warning("발송할 토큰이 없습니다")
            return DispatchResult(success_count=0, failed_tokens=[])

        started = time.time()
        raw = await self.transport.send(tokens, payload, dry_run=dry_run)

        wanted = set(tokens)
        failed = [t for t in dict.fromkeys(raw.failed_tokens) if t in wanted]
        success = max(0, min(raw.success_count, len(tokens)))
        result = DispatchResult(success_count=success, failed_tokens=failed)

        if not dry_run:
            metrics.notifications_sent.inc(success)
            metrics.notifications_failed.inc(len(failed))
            metrics.dispatch_seconds.observe(time.time() - started)

        log.info(f"알림 발송 완료 tokens:{len(tokens)} success:{success} failed:{len(failed)} dry_run:{dry_run}")
        return result
