"""
Core domain models for ZoneWatch.

This module defines the core domain models using Pydantic v2
for type safety and validation.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

LatLng = Tuple[float, float]

# 레벨/출처 타입 정의
Level = Literal["danger", "alert"]
ZoneSource = Literal["machine", "gas"]

class Position(BaseModel):
    """디바이스 위치 샘플 (불변)"""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp: datetime

    @property
    def point(self) -> LatLng:
        return (self.latitude, self.longitude)

class Device(BaseModel):
    """추적 디바이스 모델"""
    id: str
    name: str
    last_position: Position
    battery_percent: Optional[float] = None
    altitude_m: Optional[float] = None
    accuracy_m: Optional[float] = None

class CircleGeometry(BaseModel):
    """원형 영역 (중심 + 반경 미터)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["circle"] = "circle"
    center: LatLng
    radius_m: float = Field(ge=0)

class PolygonGeometry(BaseModel):
    """다각형 영역 (암묵적으로 닫힌 링)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["polygon"] = "polygon"
    ring: Tuple[LatLng, ...]

    @field_validator("ring")
    @classmethod
    def _at_least_three(cls, v):
        if len(v) < 3:
            raise ValueError("polygon ring needs at least 3 vertices")
        return v

ZoneGeometry = Annotated[Union[CircleGeometry, PolygonGeometry], Field(discriminator="kind")]

class MachineZone(BaseModel):
    """고정 설비 주변의 위험/경계 영역"""
    model_config = ConfigDict(frozen=True)

    source: Literal["machine"] = "machine"
    id: str
    name: str
    shape: Literal["polygon", "circle"]
    danger: Optional[ZoneGeometry] = None
    alert: Optional[ZoneGeometry] = None

class GasSource(BaseModel):
    """가스 누출 지점 (저장 형태, 형상은 저장하지 않음)"""
    model_config = ConfigDict(frozen=True)

    source: Literal["gas"] = "gas"
    id: str
    name: str
    position: LatLng

class GasZone(BaseModel):
    """풍향/풍속으로 계산된 가스 영역 (사이클 단위 스냅샷)"""
    model_config = ConfigDict(frozen=True)

    source: Literal["gas"] = "gas"
    id: str
    name: str
    position: LatLng
    wind_speed_mps: float
    wind_direction_deg: float
    danger: CircleGeometry
    alert: PolygonGeometry

# 저장소에서 읽는 영역
Zone = Annotated[Union[MachineZone, GasSource], Field(discriminator="source")]
# 평가에 사용하는 영역
ResolvedZone = Union[MachineZone, GasZone]

class Wind(BaseModel):
    """현재 바람 정보"""
    speed_mps: float
    direction_deg: float

class ViolatingZone(BaseModel):
    """디바이스가 위반 중인 영역"""
    model_config = ConfigDict(frozen=True)

    zone_id: str
    zone_name: str
    level: Level
    source: ZoneSource

class ContainmentResult(BaseModel):
    """디바이스 영역 포함 평가 결과"""
    in_danger: bool = False
    in_alert: bool = False
    violating_zone: Optional[ViolatingZone] = None

class Violation(BaseModel):
    """영역 위반 기록"""
    id: Optional[str] = None
    device_id: str
    device_name: str
    zone_id: str
    zone_name: str
    level: Level
    source: ZoneSource
    latitude: float
    longitude: float
    entered_at: datetime
    exited_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None

class OpenViolation(BaseModel):
    """트래커가 메모리에 유지하는 진행 중 위반"""
    violation_id: Optional[str] = None
    zone_id: str
    level: Level
    entered_at: datetime
    synced: bool = True

class TrackerEvent(BaseModel):
    """트래커가 생성한 위반 전이 이벤트"""
    kind: Literal["opened", "closed"]
    device_id: str
    zone_id: str
    level: Level
    violation_id: Optional[str] = None
    duration_seconds: Optional[int] = None

class DeviceStatus(BaseModel):
    """UI 노출용 디바이스 상태"""
    device_id: str
    device_name: str
    latitude: float
    longitude: float
    in_danger: bool
    in_alert: bool
    zone_id: Optional[str] = None
    zone_name: Optional[str] = None
    battery_percent: Optional[float] = None

class CycleReport(BaseModel):
    """폴링 사이클 결과 집계"""
    started_at: datetime
    finished_at: datetime
    feed_ok: bool
    device_count: int = 0
    in_danger: List[DeviceStatus] = Field(default_factory=list)
    in_alert: List[DeviceStatus] = Field(default_factory=list)
    statuses: List[DeviceStatus] = Field(default_factory=list)
    gas_zones_resolved: int = 0
    gas_zones_skipped: int = 0
    low_battery: int = 0

    @property
    def any_in_danger(self) -> bool:
        return bool(self.in_danger)

    @property
    def any_in_alert(self) -> bool:
        return bool(self.in_alert)

class AnalyticsSummary(BaseModel):
    """기간별 위반 통계"""
    total_violations: int = 0
    danger_violations: int = 0
    alert_violations: int = 0
    total_devices_tracked: int = 0
    avg_battery_level: int = 0
