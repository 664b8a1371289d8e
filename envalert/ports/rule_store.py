"""
Threshold rule store port interface.

This module defines the persistence protocol behind ThresholdStore.
"""

from typing import List, Optional, Protocol
from envalert.core.models import ThresholdRule


class ThresholdRuleStorePort(Protocol):
    """임계값 규칙 저장소 포트 인터페이스"""

    async def insert(self, rule: ThresholdRule) -> ThresholdRule:
        """
        규칙을 추가합니다.

        Raises:
            ConflictError: (domain_type, metric, operator, threshold_value) 중복
        """
        ...

    async def get(self, rule_id: str) -> Optional[ThresholdRule]:
        ...

    async def list(self, active_only: bool = False) -> List[ThresholdRule]:
        ...

    async def update(self, rule: ThresholdRule) -> bool:
        """
        규칙을 갱신합니다.

        Raises:
            ConflictError: 다른 규칙과 고유 키가 겹침
        """
        ...

    async def delete(self, rule_id: str) -> bool:
        ...

    async def count(self) -> int:
        ...
