"""
Gas plume zone calculation for ZoneWatch.

This module derives the danger circle and the wind-driven alert plume
polygon for a gas source point from the current wind conditions.
"""

from typing import Optional
from zonewatch.core.models import CircleGeometry, GasSource, GasZone, PolygonGeometry, Wind
from zonewatch.common.geo import destination_point

# 플룸 모델 상수 (호출별 조정 불가)
INITIAL_RADIUS_M = 100.0        # 위험 반경 하한
DISPERSION_FACTOR = 0.5         # 위험 반경 확산 계수
DISPERSION_NUMERATOR_M = 500.0
MIN_WIND_SPEED_MPS = 1.0        # 풍속 하한
PLUME_LENGTH_KM = 8.0
SPREAD_ANGLE_DEG = 30.0
SIDE_RAY_FACTOR = 1.1

def danger_radius_m(wind_speed_mps: float) -> float:
    """
    풍속에 따른 위험 원 반경을 계산합니다.

    풍속이 클수록 확산이 빨라 반경이 작아지며 100m에 수렴합니다.

    Args:
        wind_speed_mps: 풍속 (m/s)

    Returns:
        위험 반경 (미터)
    """
    effective = max(wind_speed_mps, MIN_WIND_SPEED_MPS)
    return INITIAL_RADIUS_M + DISPERSION_FACTOR * DISPERSION_NUMERATOR_M / effective

def plume_polygon(lat: float, lng: float, wind_direction_deg: float) -> PolygonGeometry:
    """
    바람이 불어가는 방향으로 삼각형 플룸 폴리곤을 생성합니다.

    Args:
        lat: 가스원 위도
        lng: 가스원 경도
        wind_direction_deg: 바람이 불어가는 방향 (도)

    Returns:
        [가스원, 좌측, 중앙, 우측] 꼭짓점 폴리곤
    """
    half_spread = SPREAD_ANGLE_DEG / 2
    left_bearing = (wind_direction_deg - half_spread + 360) % 360
    right_bearing = (wind_direction_deg + half_spread) % 360

    center_end = destination_point(lat, lng, wind_direction_deg, PLUME_LENGTH_KM)
    left_end = destination_point(lat, lng, left_bearing, PLUME_LENGTH_KM * SIDE_RAY_FACTOR)
    right_end = destination_point(lat, lng, right_bearing, PLUME_LENGTH_KM * SIDE_RAY_FACTOR)

    return PolygonGeometry(ring=((lat, lng), left_end, center_end, right_end))

def calculate_gas_zone(source: GasSource, wind: Optional[Wind]) -> Optional[GasZone]:
    """
    가스원의 이번 사이클 위험/경계 영역을 계산합니다.

    바람 정보가 없거나 풍속이 0 이하이면 영역이 없는 것으로 처리합니다.

    Args:
        source: 가스원
        wind: 현재 바람 정보

    Returns:
        계산된 GasZone 또는 None
    """
    if wind is None or wind.speed_mps <= 0:
        return None

    lat, lng = source.position
    return GasZone(
        id=source.id,
        name=source.name,
        position=source.position,
        wind_speed_mps=wind.speed_mps,
        wind_direction_deg=wind.direction_deg,
        danger=CircleGeometry(center=source.position, radius_m=danger_radius_m(wind.speed_mps)),
        alert=plume_polygon(lat, lng, wind.direction_deg),
    )
