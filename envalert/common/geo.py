"""
Geographic utilities for envalert.

This module provides geographic calculations including
distance calculation, point-in-polygon testing and the
within-distance predicate used for audience targeting.
"""

import math
from typing import Sequence, Tuple

# 지구 반지름 (킬로미터)
EARTH_RADIUS_KM = 6371.0

LonLat = Tuple[float, float]


def point_in_polygon(point: LonLat, polygon: Sequence[Sequence[float]]) -> bool:
    """
    점이 폴리곤 내부에 있는지 Ray casting 알고리즘으로 확인합니다.

    Args:
        point: 확인할 점 (경도, 위도)
        polygon: 폴리곤의 꼭짓점들 [(경도, 위도), ...]

    Returns:
        점이 폴리곤 내부에 있으면 True, 외부에 있으면 False
    """
    if len(polygon) < 3:
        return False

    x, y = point
    n = len(polygon)
    inside = False

    p1x, p1y = polygon[0]
    for i in range(1, n + 1):
        p2x, p2y = polygon[i % n]
        if min(p1y, p2y) < y <= max(p1y, p2y) and x <= max(p1x, p2x):
            if p1x == p2x:
                inside = not inside
            else:
                xinters = (y - p1y) * (p2x - p1x) / (p2y - p1y) + p1x
                if x <= xinters:
                    inside = not inside
        p1x, p1y = p2x, p2y

    return inside


def calculate_bounding_box(polygon: Sequence[Sequence[float]]) -> Tuple[float, float, float, float]:
    """
    폴리곤의 경계 상자를 계산합니다.

    Returns:
        (min_lon, min_lat, max_lon, max_lat)
    """
    if not polygon:
        return (0, 0, 0, 0)

    lons = [p[0] for p in polygon]
    lats = [p[1] for p in polygon]

    return (min(lons), min(lats), max(lons), max(lats))


def distance_to_segment_km(point: LonLat, a: Sequence[float], b: Sequence[float]) -> float:
    """
    점에서 선분 a-b까지의 최단 거리 (킬로미터).

    점을 원점으로 하는 등장방형 투영을 사용하므로 수십 km 이내에서만 정확합니다.
    """
    lon0, lat0 = point
    k = math.cos(math.radians(lat0))

    def project(p: Sequence[float]) -> Tuple[float, float]:
        return (math.radians(p[0] - lon0) * k * EARTH_RADIUS_KM,
                math.radians(p[1] - lat0) * EARTH_RADIUS_KM)

    ax, ay = project(a)
    bx, by = project(b)
    dx, dy = bx - ax, by - ay
    seg_len2 = dx * dx + dy * dy

    if seg_len2 == 0:
        return math.hypot(ax, ay)

    t = max(0.0, min(1.0, -(ax * dx + ay * dy) / seg_len2))
    return math.hypot(ax + t * dx, ay + t * dy)


def distance_to_polygon_km(point: LonLat, polygon: Sequence[Sequence[float]]) -> float:
    """
    점에서 폴리곤까지의 거리 (내부이면 0).

    Args:
        point: (경도, 위도)
        polygon: 닫힌 링 [(경도, 위도), ...]
    """
    if point_in_polygon(point, polygon):
        return 0.0
    return min(
        distance_to_segment_km(point, polygon[i], polygon[(i + 1) % len(polygon)])
        for i in range(len(polygon))
    )


def is_point_within_distance(point: LonLat, polygon: Sequence[Sequence[float]], buffer_km: float) -> bool:
    """
    점이 폴리곤 또는 폴리곤 주변 buffer_km 이내에 있는지 확인합니다.

    Args:
        point: 확인할 점 (경도, 위도)
        polygon: 폴리곤의 꼭짓점들 [(경도, 위도), ...]
        buffer_km: 버퍼 거리 (킬로미터)
    """
    if not polygon:
        return False
    return distance_to_polygon_km(point, polygon) <= max(0.0, buffer_km)
