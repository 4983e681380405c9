"""
Zone containment evaluation for ZoneWatch.

This module evaluates one device position against the zone snapshot
of the current cycle, applying danger-over-alert precedence.
"""

from typing import Optional, Sequence
from zonewatch.core.models import (
    ContainmentResult,
    GasZone,
    LatLng,
    Level,
    ResolvedZone,
    ViolatingZone,
)
from zonewatch.common.geo import haversine_distance_m, point_in_polygon

def geometry_contains(geometry, point: LatLng) -> bool:
    """
    형상이 점을 포함하는지 확인합니다.

    Args:
        geometry: CircleGeometry 또는 PolygonGeometry (None이면 포함하지 않음)
        point: 확인할 점 (위도, 경도)

    Returns:
        포함 여부
    """
    if geometry is None:
        return False
    if geometry.kind == "circle":
        return haversine_distance_m(point, geometry.center) <= geometry.radius_m
    if geometry.kind == "polygon":
        return point_in_polygon(point, geometry.ring)
    raise ValueError(f"unknown geometry kind: {geometry.kind}")

def _zone_geometries(zone: ResolvedZone):
    """영역 종류별 (위험, 경계) 형상을 반환합니다."""
    if zone.source == "machine":
        return zone.danger, zone.alert
    if zone.source == "gas":
        # GasSource(미계산)는 danger/alert 속성이 없으므로 여기서 걸러짐
        if not isinstance(zone, GasZone):
            raise ValueError(f"gas source {zone.id} has no resolved geometry")
        return zone.danger, zone.alert
    raise ValueError(f"unknown zone source: {zone.source}")

def _violating(zone: ResolvedZone, level: Level) -> ViolatingZone:
    return ViolatingZone(zone_id=zone.id, zone_name=zone.name, level=level, source=zone.source)

def evaluate_containment(point: LatLng, zones: Sequence[ResolvedZone]) -> ContainmentResult:
    """
    한 위치를 모든 영역에 대해 평가합니다.

    위험 영역 일치 시 즉시 중단하며, 경계 영역은 마지막 일치가 유지됩니다.
    위험이 경계보다 우선합니다 (in_danger이면 in_alert는 False).

    Args:
        point: 디바이스 위치 (위도, 경도)
        zones: 이번 사이클의 영역 스냅샷 (가스 영역은 계산 완료 상태)

    Returns:
        포함 평가 결과
    """
    in_danger = False
    in_alert = False
    violating: Optional[ViolatingZone] = None

    for zone in zones:
        danger, alert = _zone_geometries(zone)

        if geometry_contains(danger, point):
            in_danger = True
            violating = _violating(zone, "danger")
            break

        if not in_danger and geometry_contains(alert, point):
            in_alert = True
            violating = _violating(zone, "alert")

    if in_danger:
        in_alert = False

    return ContainmentResult(in_danger=in_danger, in_alert=in_alert, violating_zone=violating)
