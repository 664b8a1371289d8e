"""
Alert record store port interface.

This module defines the repository protocol for alert records, exposing
only the queries deduplication and statistics need.
"""

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple
from envalert.core.models import AlertRecord


class AlertRecordStorePort(Protocol):
    """경보 기록 저장소 포트 인터페이스"""

    async def create(self, record: AlertRecord) -> AlertRecord:
        ...

    async def get(self, alert_id: str) -> Optional[AlertRecord]:
        ...

    async def find_duplicate(self, domain_type: str, level: str, station_id: str,
                             since: datetime) -> Optional[AlertRecord]:
        """
        since 이후에 발송된 같은 키의 자동 경보를 조회합니다.

        수동 경보는 대상이 아닙니다.
        """
        ...

    async def list_active(self, now: datetime, limit: int = 10) -> List[AlertRecord]:
        """만료되지 않은 경보를 최신순으로 조회합니다."""
        ...

    async def list_alerts(self, *, page: int = 1, limit: int = 10, level: Optional[str] = None,
                          domain_type: Optional[str] = None, status: Optional[str] = None,
                          now: Optional[datetime] = None) -> Tuple[List[AlertRecord], int]:
        ...

    async def count_all(self) -> int:
        ...

    async def count_by_level(self) -> Dict[str, int]:
        ...

    async def count_per_day_last_n_days(self, n: int, now: datetime) -> List[Dict[str, object]]:
        """최근 n일간 일자별 경보 수 [{date, count}]"""
        ...
