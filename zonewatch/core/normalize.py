"""
Normalization functions for ZoneWatch.

This module contains pure functions for converting raw position feed
records into internal domain models.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from .models import Device, Position
from zonewatch.common.geo import validate_coordinates
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.normalize")

def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None and v != "":
            return v
    return None

def _optional_float(value: Any) -> Optional[float]:
    """'85%', 85, '12.5' 같은 값을 float로 변환합니다. 실패 시 None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        if not value or value.upper() == "N/A":
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    """
    ISO 8601 타임스탬프를 timezone-aware datetime으로 변환합니다.

    시간대가 없으면 UTC로 간주하며, 파싱 실패 시 default(없으면 현재 UTC)를 사용합니다.
    """
    fallback = default or datetime.now(timezone.utc)
    if value is None:
        return fallback
    if isinstance(value, datetime):
        ts = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            log.warning(f"타임스탬프 파싱 실패: {value!r}")
            return fallback
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts

def to_device(raw: Dict[str, Any], *, now: Optional[datetime] = None) -> Device:
    """
    위치 피드 레코드를 Device로 변환합니다.

    camelCase(deviceId 등)와 FollowMee 형식(DeviceID, Latitude 등) 키를 모두 처리합니다.

    Args:
        raw: 원시 위치 레코드
        now: 타임스탬프 누락 시 사용할 시각

    Returns:
        Device 모델

    Raises:
        ValueError: ID 또는 좌표가 없거나 유효하지 않은 경우
    """
    device_id = _first(raw, "deviceId", "device_id", "DeviceID")
    if device_id is None:
        raise ValueError("missing device id")

    lat = _optional_float(_first(raw, "latitude", "Latitude"))
    lng = _optional_float(_first(raw, "longitude", "Longitude"))
    if lat is None or lng is None:
        raise ValueError(f"missing coordinates for device {device_id}")
    if not validate_coordinates(lat, lng):
        raise ValueError(f"invalid coordinates for device {device_id}: ({lat}, {lng})")

    name = _first(raw, "deviceName", "device_name", "DeviceName") or str(device_id)
    timestamp = parse_timestamp(_first(raw, "timestamp", "timestampISO8601", "Date"), now)

    return Device(
        id=str(device_id),
        name=str(name),
        last_position=Position(latitude=lat, longitude=lng, timestamp=timestamp),
        battery_percent=_optional_float(_first(raw, "batteryPercent", "battery", "Battery")),
        altitude_m=_optional_float(_first(raw, "altitudeMeters", "altitude_m", "Altitude(m)")),
        accuracy_m=_optional_float(_first(raw, "accuracyMeters", "accuracy_m", "Accuracy")),
    )
