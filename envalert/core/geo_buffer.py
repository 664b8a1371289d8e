"""
Approximate buffer polygons for envalert.

A rectangular ring around a station is used as a low-cost stand-in for a
circular buffer. At the ~10 km scale used for audience targeting the
error is acceptable.
"""

import math
from typing import Tuple
from envalert.core.models import Polygon

# 위도 1도 ≈ 111km
KM_PER_DEGREE = 111.0


def buffer_deltas(lat: float, radius_km: float) -> Tuple[float, float]:
    """
    반경(km)을 위도/경도 델타(도)로 변환합니다.

    Args:
        lat: 기준 위도
        radius_km: 반경 (킬로미터)

    Returns:
        (delta_lat, delta_lon)
    """
    if radius_km < 0:
        raise ValueError(f"반경은 음수일 수 없습니다: {radius_km}")
    delta_lat = radius_km / KM_PER_DEGREE
    delta_lon = radius_km / (KM_PER_DEGREE * math.cos(lat * math.pi / 180))
    return delta_lat, abs(delta_lon)


def build_buffer_polygon(lat: float, lon: float, radius_km: float = 10.0) -> Polygon:
    """
    관측소 좌표를 중심으로 사각형 버퍼 폴리곤을 생성합니다.

    Args:
        lat: 위도
        lon: 경도
        radius_km: 반경 (킬로미터)

    Returns:
        [lon, lat] 순서의 닫힌 5점 링을 가진 Polygon
    """
    d_lat, d_lon = buffer_deltas(lat, radius_km)
    return Polygon(
        coordinates=[[
            [lon - d_lon, lat - d_lat],
            [lon + d_lon, lat - d_lat],
            [lon + d_lon, lat + d_lat],
            [lon - d_lon, lat + d_lat],
            [lon - d_lon, lat - d_lat],  # 링 닫기
        ]]
    )
