"""
hypothesis를 활용한 버퍼 폴리곤 테스트
"""

import math
import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from envalert.core.geo_buffer import KM_PER_DEGREE, buffer_deltas, build_buffer_polygon
from envalert.core.models import Polygon

lats = st.floats(min_value=-85, max_value=85, allow_nan=False)
lons = st.floats(min_value=-179, max_value=179, allow_nan=False)
radii = st.floats(min_value=0, max_value=100, allow_nan=False)


class TestBuildBufferPolygon:
    """build_buffer_polygon 테스트"""

    def test_hanoi_example(self):
        """하노이 기준 10km 사각형"""
        poly = build_buffer_polygon(21.0285, 105.8542, 10)
        d_lat = 10 / 111
        d_lon = 10 / (111 * math.cos(21.0285 * math.pi / 180))

        ring = poly.ring
        assert len(ring) == 5
        assert ring[0] == ring[-1]
        assert ring[0] == pytest.approx([105.8542 - d_lon, 21.0285 - d_lat])
        assert ring[1] == pytest.approx([105.8542 + d_lon, 21.0285 - d_lat])
        assert ring[2] == pytest.approx([105.8542 + d_lon, 21.0285 + d_lat])
        assert ring[3] == pytest.approx([105.8542 - d_lon, 21.0285 + d_lat])

    def test_default_radius_is_ten_km(self):
        assert build_buffer_polygon(10, 100) == build_buffer_polygon(10, 100, 10.0)

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            build_buffer_polygon(10, 100, -1)

    @given(lat=lats, lon=lons, r=radii)
    def test_symmetric_around_center(self, lat, lon, r):
        """중심 기준 대칭"""
        ring = build_buffer_polygon(lat, lon, r).ring
        xs = [p[0] for p in ring[:4]]
        ys = [p[1] for p in ring[:4]]
        assert (min(xs) + max(xs)) / 2 == pytest.approx(lon, abs=1e-9)
        assert (min(ys) + max(ys)) / 2 == pytest.approx(lat, abs=1e-9)

    @given(lat=lats, lon=lons, r1=radii, r2=radii)
    def test_monotonic_in_radius(self, lat, lon, r1, r2):
        """반경이 크면 폴리곤도 크거나 같다"""
        small, large = sorted((r1, r2))
        a = build_buffer_polygon(lat, lon, small).ring
        b = build_buffer_polygon(lat, lon, large).ring
        assert b[2][0] >= a[2][0] and b[2][1] >= a[2][1]
        assert b[0][0] <= a[0][0] and b[0][1] <= a[0][1]

    def test_longitude_delta_grows_with_latitude(self):
        """위도 60도의 경도 폭이 위도 10도보다 넓다"""
        low = buffer_deltas(10, 5)
        high = buffer_deltas(60, 5)
        assert high[1] > low[1]
        assert high[0] == low[0] == pytest.approx(0.045, abs=1e-3)

    @given(lat=lats, r=radii)
    def test_delta_lat_independent_of_latitude(self, lat, r):
        d_lat, d_lon = buffer_deltas(lat, r)
        assert d_lat == pytest.approx(r / KM_PER_DEGREE)
        assert d_lon >= d_lat - 1e-12


class TestPolygonModel:
    """Polygon 모델 검증 테스트"""

    def test_open_ring_rejected(self):
        with pytest.raises(ValidationError):
            Polygon(coordinates=[[[0, 0], [1, 0], [1, 1], [0, 1]]])

    def test_multiple_rings_rejected(self):
        ring = [[0, 0], [1, 0], [1, 1], [0, 0]]
        with pytest.raises(ValidationError):
            Polygon(coordinates=[ring, ring])

    def test_too_few_points_rejected(self):
        with pytest.raises(ValidationError):
            Polygon(coordinates=[[[0, 0], [1, 1], [0, 0]]])

    def test_geojson_shape(self):
        poly = build_buffer_polygon(0, 0, 1)
        dumped = poly.model_dump()
        assert dumped["type"] == "Polygon"
        assert len(dumped["coordinates"]) == 1
