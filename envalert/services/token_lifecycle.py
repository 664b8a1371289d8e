"""
Push token lifecycle management for envalert.

Invalid tokens are removed in two ways: reactively from the failures of
a real dispatch, and proactively by a periodic dry-run sweep over every
stored token.
"""

import asyncio
from typing import Dict, List, Sequence
from envalert.core.errors import DispatchError, SchedulerBusyError
from envalert.core.labels import DEFAULT_LOCALE
from envalert.core.content import AlertContentTemplate
from envalert.core.models import AudienceMember, SweepReport
from envalert.observability.logging_setup import get_logger
from envalert.observability import metrics
from envalert.ports.audience import UserAudienceRegistryPort
from envalert.services.dispatcher import NotificationDispatcher

log = get_logger("envalert.tokens")


class TokenLifecycleManager:
    """푸시 토큰 정리"""

    def __init__(self, registry: UserAudienceRegistryPort, dispatcher: NotificationDispatcher,
                 batch_size: int = 100, locale: str = DEFAULT_LOCALE):
        """
        초기화합니다.

        Args:
            registry: 사용자 레지스트리
            dispatcher: 알림 발송기 (dry-run 검증용)
            batch_size: 검증 배치 크기
            locale: 검증 메시지 언어
        """
        self.registry = registry
        self.dispatcher = dispatcher
        self.batch_size = max(1, batch_size)
        self.template = AlertContentTemplate(locale)
        self._busy = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._busy.locked()

    async def on_dispatch_failures(self, failed_tokens: Sequence[str], audience: Sequence[AudienceMember]) -> int:
        """
        발송 실패 토큰의 소유자 토큰을 제거합니다.

        저장된 토큰이 그 사이에 바뀐 경우 제거하지 않습니다. 레지스트리 오류는 로그만 남깁니다.

        Args:
            failed_tokens: 발송에 실패한 토큰
            audience: 방금 발송한 수신자 목록

        Returns:
            제거된 토큰 수
        """
        if not failed_tokens:
            return 0

        owners: Dict[str, List[str]] = {}
        for member in audience:
            owners.setdefault(member.token, []).append(member.user_id)

        cleared = 0
        for token in dict.fromkeys(failed_tokens):
            for user_id in owners.get(token, []):
                try:
                    if await self.registry.clear_token(user_id, token):
                        cleared += 1
                except Exception as e:
                    log.error(f"토큰 제거 실패 user_id:{user_id} error:{str(e)}")

        if cleared:
            metrics.tokens_cleared.labels(reason="dispatch").inc(cleared)
            log.info(f"발송 실패 토큰 제거 failed:{len(failed_tokens)} cleared:{cleared}")
        return cleared

    async def sweep(self) -> SweepReport:
        """
        저장된 모든 토큰을 dry-run으로 검증하고 무효 토큰을 제거합니다.

        Returns:
            SweepReport (cleaned_count = 정리 전 토큰 수 - 정리 후 토큰 수)

        Raises:
            SchedulerBusyError: 이미 정리 중
        """
        if self._busy.locked():
            raise SchedulerBusyError("토큰 정리가 이미 진행 중입니다")

        async with self._busy:
            before = await self.registry.count_tokens()
            members = await self.registry.find_all_active_with_tokens()
            log.info(f"토큰 정리 시작 stored:{before} active_holders:{len(members)}")

            payload = self.template.validation_payload()
            invalid = 0

            for i in range(0, len(members), self.batch_size):
                batch = members[i:i + self.batch_size]
                tokens = [m.token for m in batch]
                try:
                    result = await self.dispatcher.dispatch(tokens, payload, dry_run=True)
                except DispatchError as e:
                    log.error(f"토큰 검증 배치 실패 offset:{i} size:{len(batch)} error:{str(e)}")
                    continue

                if not result.failed_tokens:
                    continue

                failed = set(result.failed_tokens)
                stale = [m for m in batch if m.token in failed]
                invalid += len(stale)
                await self.registry.clear_tokens(
                    [m.user_id for m in stale],
                    [m.token for m in stale],
                )

            after = await self.registry.count_tokens()
            report = SweepReport(checked=len(members), invalid=invalid, cleaned_count=max(0, before - after))

            metrics.tokens_cleared.labels(reason="sweep").inc(report.cleaned_count)
            metrics.stored_tokens.set(after)
            log.info(f"토큰 정리 완료 checked:{report.checked} invalid:{report.invalid} cleaned:{report.cleaned_count}")
            return report
