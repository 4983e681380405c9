"""
Geographic utilities for ZoneWatch.

This module provides the geometry kernel used by zone evaluation:
great-circle distance, point-in-polygon testing, and the spherical
destination-point calculation.

All points are (latitude, longitude) tuples in degrees.
"""

import math
from typing import Sequence, Tuple

LatLng = Tuple[float, float]

# 지구 반지름
EARTH_RADIUS_M = 6_371_000.0
EARTH_RADIUS_KM = 6371.0

def haversine_distance_m(a: LatLng, b: LatLng) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (미터).

    Args:
        a: 첫 번째 지점 (위도, 경도)
        b: 두 번째 지점 (위도, 경도)

    Returns:
        두 지점 간의 거리 (미터)
    """
    lat1 = math.radians(a[0])
    lat2 = math.radians(b[0])
    dlat = lat2 - lat1
    dlng = math.radians(b[1] - a[1])

    # Haversine 공식
    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2)
    # 부동소수 오차로 1을 넘는 경우 방지
    h = min(1.0, h)

    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))

def point_in_polygon(point: LatLng, ring: Sequence[LatLng]) -> bool:
    """
    점이 폴리곤 내부에 있는지 Ray casting (even-odd) 알고리즘으로 확인합니다.

    링은 암묵적으로 닫혀 있으며 첫 꼭짓점을 마지막에 반복할 필요가 없습니다.
    경계 위의 점은 내부/외부 어느 쪽으로든 판정될 수 있습니다.

    Args:
        point: 확인할 점 (위도, 경도)
        ring: 폴리곤의 꼭짓점들 [(위도, 경도), ...]

    Returns:
        점이 폴리곤 내부에 있으면 True
    """
    n = len(ring)
    if n < 3:
        return False

    x, y = point
    inside = False

    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        # (yi > y) != (yj > y) 이면 yi != yj 이므로 0 나눗셈 없음
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i

    return inside

def destination_point(lat: float, lng: float, bearing_deg: float, distance_km: float) -> LatLng:
    """
    시작점, 방위각(0°=북쪽, 시계방향), 거리로 도착 지점을 계산합니다.

    Args:
        lat: 시작 위도
        lng: 시작 경도
        bearing_deg: 방위각 (도)
        distance_km: 거리 (킬로미터)

    Returns:
        도착 지점 (위도, 경도)
    """
    lat_rad = math.radians(lat)
    lng_rad = math.radians(lng)
    bearing_rad = math.radians(bearing_deg % 360.0)
    angular = distance_km / EARTH_RADIUS_KM

    new_lat_rad = math.asin(
        math.sin(lat_rad) * math.cos(angular) +
        math.cos(lat_rad) * math.sin(angular) * math.cos(bearing_rad)
    )
    new_lng_rad = lng_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(angular) * math.cos(lat_rad),
        math.cos(angular) - math.sin(lat_rad) * math.sin(new_lat_rad)
    )

    return (math.degrees(new_lat_rad), math.degrees(new_lng_rad))

def validate_coordinates(lat: float, lng: float) -> bool:
    """
    좌표가 유효한지 확인합니다.

    Args:
        lat: 위도
        lng: 경도

    Returns:
        좌표가 유효하면 True
    """
    return -90 <= lat <= 90 and -180 <= lng <= 180
