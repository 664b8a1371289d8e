"""
User audience registry port interface.

This module defines the protocol for looking up notification recipients
and clearing invalid device tokens.
"""

from typing import List, Optional, Protocol, Sequence
from envalert.core.models import AudienceMember, Polygon


class UserAudienceRegistryPort(Protocol):
    """사용자 수신자 레지스트리 포트 인터페이스"""

    async def find_within_buffer(self, polygon: Polygon, buffer_km: float) -> List[AudienceMember]:
        """
        폴리곤에서 buffer_km 이내에 마지막 위치가 있는 활성 사용자를 조회합니다.

        Args:
            polygon: 경보 영역
            buffer_km: 추가 안전 여유 (킬로미터)
        """
        ...

    async def find_all_active_with_tokens(self) -> List[AudienceMember]:
        """토큰이 있는 모든 활성 사용자를 조회합니다."""
        ...

    async def clear_token(self, user_id: str, token: Optional[str] = None) -> bool:
        """
        사용자의 토큰을 제거합니다.

        token이 주어지면 저장된 토큰이 같을 때만 제거합니다 (이미 바뀐 경우 무시).
        """
        ...

    async def clear_tokens(self, user_ids: Sequence[str], tokens: Optional[Sequence[str]] = None) -> int:
        """
        여러 사용자의 토큰을 제거합니다.

        Returns:
            실제로 제거된 토큰 수
        """
        ...

    async def count_tokens(self) -> int:
        """저장된 토큰 수를 반환합니다."""
        ...
