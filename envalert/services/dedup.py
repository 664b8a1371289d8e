"""
Duplicate alert suppression for envalert.

An automatic alert for the same (domain_type, level, station_id) key is
suppressed while a previous automatic alert for that key is still inside
the dedup window. Manual alerts never take part.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Dict, Optional, Tuple
from envalert.common.clock import Clock, utc_now
from envalert.ports.alert_store import AlertRecordStorePort

DedupKey = Tuple[str, str, str]


class DeduplicationGuard:
    """자동 경보 중복 억제"""

    def __init__(self, alerts: AlertRecordStorePort, window_hours: float = 2.0, clock: Clock = utc_now):
        """
        초기화합니다.

        Args:
            alerts: 경보 기록 저장소
            window_hours: 기본 중복 판정 기간 (시간)
            clock: 현재 시각 함수
        """
        self.alerts = alerts
        self.window_hours = window_hours
        self.clock = clock
        self._locks: Dict[DedupKey, asyncio.Lock] = {}
        self._waiters: Dict[DedupKey, int] = {}

    async def should_suppress(self, domain_type: str, level: str, station_id: str,
                              within_hours: Optional[float] = None) -> bool:
        """
        같은 키의 자동 경보가 기간 내에 발송되었는지 확인합니다.

        Args:
            domain_type: 경보 도메인
            level: 경보 레벨
            station_id: 관측소 ID
            within_hours: 판정 기간 (기본값은 생성 시 설정)

        Returns:
            억제해야 하면 True
        """
        hours = self.window_hours if within_hours is None else within_hours
        since = self.clock() - timedelta(hours=hours)
        return await self.alerts.find_duplicate(domain_type, level, station_id, since) is not None

    @asynccontextmanager
    async def claim(self, domain_type: str, level: str, station_id: str) -> AsyncIterator[None]:
        """
        키별 잠금을 잡습니다.

        확인부터 기록 저장까지 이 블록 안에서 수행해야 같은 키의 경보가 두 번 나가지 않습니다.
        """
        key = (domain_type, level, station_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    @property
    def held_keys(self) -> int:
        return len(self._locks)
