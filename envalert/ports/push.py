"""
Push transport port interface.

This module defines the protocol for bulk push notification delivery.
"""

from typing import Protocol, Sequence
from envalert.core.models import DispatchResult, PushPayload


class PushTransportPort(Protocol):
    """푸시 전송 포트 인터페이스"""

    async def send(self, tokens: Sequence[str], payload: PushPayload, dry_run: bool = False) -> DispatchResult:
        """
        여러 디바이스에 알림을 발송합니다.

        Args:
            tokens: 디바이스 토큰 목록
            payload: 제목 / 본문 / 데이터
            dry_run: True이면 실제 발송 없이 토큰만 검증

        Returns:
            성공 수와 실패 토큰 목록

        Raises:
            DispatchError: 전송 계층 전체 실패
        """
        ...
