"""
Periodic push token sweep for envalert.
"""

import asyncio
from typing import Any, Dict
from envalert.observability.logging_setup import get_logger
from envalert.services.token_lifecycle import TokenLifecycleManager

log = get_logger("envalert.sweeper")


class TokenSweepScheduler:
    """무효 토큰 정기 정리 스케줄러"""

    def __init__(self, tokens: TokenLifecycleManager, interval_sec: float = 86400):
        """
        초기화합니다.

        Args:
            tokens: 토큰 정리기
            interval_sec: 정리 간격 (초)
        """
        self.tokens = tokens
        self.interval_sec = interval_sec
        self._running = False

    async def start(self) -> None:
        """정리 루프를 시작합니다."""
        self._running = True
        log.info(f"토큰 정리 스케줄러 시작됨 interval:{self.interval_sec}s")

        while self._running:
            await asyncio.sleep(self.interval_sec)
            if not self._running:
                break
            try:
                await self.tokens.sweep()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error(f"토큰 정리 오류 error:{str(e)}")

    def stop(self) -> None:
        self._running = False

    async def trigger_now(self) -> Dict[str, Any]:
        """
        즉시 토큰 정리를 실행합니다.

        Raises:
            SchedulerBusyError: 이미 정리 중
        """
        report = await self.tokens.sweep()
        return {"message": "Token cleanup completed", "cleanedCount": report.cleaned_count}
