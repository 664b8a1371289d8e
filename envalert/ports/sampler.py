"""
Metric sampler port interface.

This module defines the protocol for fetching current station readings.
"""

from typing import List, Protocol
from envalert.core.models import MetricSnapshot


class MetricSamplerPort(Protocol):
    """측정값 샘플러 포트 인터페이스"""

    async def fetch_current(self, domain_type: str) -> List[MetricSnapshot]:
        """
        도메인의 현재 측정값을 가져옵니다.

        활성 관측소별 최신 값 하나씩 반환하며, 최근 데이터가 없는 관측소는 제외됩니다.

        Args:
            domain_type: AIR_QUALITY | WEATHER

        Returns:
            MetricSnapshot 목록

        Raises:
            UpstreamFetchError: 상위 서비스 호출 실패
        """
        ...
