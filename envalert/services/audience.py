"""
Geographic audience resolution for envalert.

This module builds alert areas around stations and resolves the set of
users (with push tokens) that should receive an alert.
"""

from typing import List, Optional
from envalert.core.geo_buffer import build_buffer_polygon
from envalert.core.models import AudienceMember, MetricSnapshot, Polygon
from envalert.observability.logging_setup import get_logger
from envalert.ports.audience import UserAudienceRegistryPort

log = get_logger("envalert.audience")


class GeoAudienceResolver:
    """경보 영역 / 수신자 결정"""

    def __init__(self, registry: UserAudienceRegistryPort,
                 area_radius_km: float = 10.0, buffer_km: float = 5.0):
        """
        초기화합니다.

        Args:
            registry: 사용자 레지스트리
            area_radius_km: 관측소 중심 경보 영역 반경 (킬로미터)
            buffer_km: 영역 바깥 추가 여유 (킬로미터)
        """
        self.registry = registry
        self.area_radius_km = area_radius_km
        self.buffer_km = buffer_km

    def build_area(self, snapshot: MetricSnapshot) -> Optional[Polygon]:
        """관측소 위치로 경보 영역을 만듭니다 (위치가 없으면 None = 전체 발송)."""
        if snapshot.location is None:
            return None
        return build_buffer_polygon(snapshot.location.lat, snapshot.location.lon, self.area_radius_km)

    async def resolve_audience(self, area: Optional[Polygon],
                               extra_buffer_km: Optional[float] = None) -> List[AudienceMember]:
        """
        경보 수신자를 결정합니다.

        Args:
            area: 경보 영역 (None이면 토큰이 있는 모든 활성 사용자)
            extra_buffer_km: 추가 여유 거리 (기본값은 생성 시 설정)

        Returns:
            토큰 기준으로 중복이 제거된 수신자 목록
        """
        if area is None:
            members = await self.registry.find_all_active_with_tokens()
        else:
            buffer_km = self.buffer_km if extra_buffer_km is None else extra_buffer_km
            members = await self.registry.find_within_buffer(area, buffer_km)

        seen = set()
        audience: List[AudienceMember] = []
        for m in members:
            if not isinstance(m.token, str) or not m.token or m.token in seen:
                continue
            seen.add(m.token)
            audience.append(m)

        log.debug(f"수신자 결정 broadcast:{area is None} count:{len(audience)}")
        return audience
