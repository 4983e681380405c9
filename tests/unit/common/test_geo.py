"""
hypothesis를 활용한 geo 모듈 테스트

이 모듈은 거리, 점-다각형 포함, 도착 지점 계산의
속성 기반 테스트를 수행합니다.
"""

import math
import pytest
from hypothesis import given, strategies as st, example

from zonewatch.common.geo import (
    destination_point,
    haversine_distance_m,
    point_in_polygon,
    validate_coordinates,
)

lat_st = st.floats(min_value=-85.0, max_value=85.0, allow_nan=False)
lng_st = st.floats(min_value=-179.0, max_value=179.0, allow_nan=False)
point_st = st.tuples(lat_st, lng_st)

UNIT_SQUARE = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)]


class TestHaversine:
    """Haversine 거리 테스트"""

    @given(a=point_st, b=point_st)
    def test_symmetry(self, a, b):
        """거리는 대칭이다"""
        assert math.isclose(haversine_distance_m(a, b), haversine_distance_m(b, a),
                            rel_tol=1e-9, abs_tol=1e-6)

    @given(a=point_st)
    def test_zero_distance(self, a):
        """같은 점 사이 거리는 0"""
        assert haversine_distance_m(a, a) == 0.0

    @given(a=point_st, b=point_st)
    def test_non_negative(self, a, b):
        """거리는 음수가 아니다"""
        assert haversine_distance_m(a, b) >= 0.0

    def test_one_degree_on_equator(self):
        """적도 위 경도 1도 거리"""
        assert haversine_distance_m((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111_194.93, abs=1.0)

    def test_antipodal_points(self):
        """대척점 거리는 반둘레"""
        assert haversine_distance_m((0.0, 0.0), (0.0, 180.0)) == pytest.approx(math.pi * 6_371_000.0)


class TestPointInPolygon:
    """점-다각형 포함 테스트"""

    @given(
        x=st.floats(min_value=0.01, max_value=0.99),
        y=st.floats(min_value=0.01, max_value=0.99),
        shift=st.integers(min_value=0, max_value=3),
        reverse=st.booleans(),
    )
    def test_inside_invariant_under_vertex_order(self, x, y, shift, reverse):
        """꼭짓점 시작 위치/방향과 무관하게 내부 판정"""
        ring = UNIT_SQUARE[shift:] + UNIT_SQUARE[:shift]
        if reverse:
            ring = list(reversed(ring))
        assert point_in_polygon((x, y), ring) is True

    @given(
        x=st.floats(min_value=1.01, max_value=50.0),
        y=st.floats(min_value=-50.0, max_value=50.0),
        shift=st.integers(min_value=0, max_value=3),
    )
    def test_outside_invariant_under_vertex_order(self, x, y, shift):
        """외부 점은 어떤 회전에서도 외부"""
        ring = UNIT_SQUARE[shift:] + UNIT_SQUARE[:shift]
        assert point_in_polygon((x, y), ring) is False

    def test_degenerate_ring(self):
        """꼭짓점이 3개 미만이면 항상 외부"""
        assert point_in_polygon((0.5, 0.5), []) is False
        assert point_in_polygon((0.5, 0.5), [(0.0, 0.0), (1.0, 1.0)]) is False

    def test_closed_ring_is_accepted(self):
        """첫 꼭짓점이 반복된 링도 동일하게 판정"""
        closed = UNIT_SQUARE + [UNIT_SQUARE[0]]
        assert point_in_polygon((0.5, 0.5), closed) is True
        assert point_in_polygon((1.5, 0.5), closed) is False

    def test_concave_polygon(self):
        """오목 다각형의 홈 부분은 외부"""
        ring = [(0.0, 0.0), (0.0, 4.0), (4.0, 4.0), (4.0, 0.0), (2.0, 2.0)]
        assert point_in_polygon((3.0, 3.0), ring) is True
        assert point_in_polygon((2.0, 0.5), ring) is False


class TestDestinationPoint:
    """도착 지점 계산 테스트"""

    @given(lat=lat_st, lng=lng_st, bearing=st.floats(min_value=0.0, max_value=720.0))
    def test_zero_distance_returns_start(self, lat, lng, bearing):
        """거리 0이면 시작점"""
        dlat, dlng = destination_point(lat, lng, bearing, 0.0)
        assert abs(dlat - lat) < 1e-6
        assert abs(dlng - lng) < 1e-6

    @given(lat=lat_st, lng=lng_st,
           bearing=st.floats(min_value=0.0, max_value=359.0),
           distance_km=st.floats(min_value=0.01, max_value=100.0))
    @example(lat=32.2, lng=-7.9, bearing=90.0, distance_km=8.0)
    def test_distance_round_trip(self, lat, lng, bearing, distance_km):
        """도착 지점까지의 Haversine 거리는 입력 거리와 같다"""
        dest = destination_point(lat, lng, bearing, distance_km)
        assert haversine_distance_m((lat, lng), dest) == pytest.approx(distance_km * 1000.0, rel=1e-6)

    @given(lat=lat_st, lng=lng_st, distance_km=st.floats(min_value=0.0, max_value=50.0))
    def test_bearing_wraps_at_360(self, lat, lng, distance_km):
        """방위각 360은 0과 같다"""
        assert destination_point(lat, lng, 360.0, distance_km) == destination_point(lat, lng, 0.0, distance_km)

    def test_north_increases_latitude(self):
        """북쪽 방향은 위도 증가"""
        dlat, dlng = destination_point(10.0, 10.0, 0.0, 1.0)
        assert dlat > 10.0
        assert dlng == pytest.approx(10.0)

    def test_east_increases_longitude(self):
        """동쪽 방향은 경도 증가"""
        dlat, dlng = destination_point(0.0, 0.0, 90.0, 10.0)
        assert dlng > 0.0
        assert dlat == pytest.approx(0.0, abs=1e-9)


class TestValidateCoordinates:
    """좌표 유효성 검사 테스트"""

    @given(lat=st.floats(min_value=-90, max_value=90), lng=st.floats(min_value=-180, max_value=180))
    def test_valid_range(self, lat, lng):
        assert validate_coordinates(lat, lng) is True

    @pytest.mark.parametrize("lat,lng", [(90.1, 0.0), (-90.1, 0.0), (0.0, 180.1), (0.0, -180.1)])
    def test_out_of_range(self, lat, lng):
        assert validate_coordinates(lat, lng) is False
