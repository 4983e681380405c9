"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import tempfile
import os
import uuid
from datetime import datetime, timezone
from typing import Dict, List
from unittest.mock import AsyncMock
from zonewatch.settings import Settings
from zonewatch.core.models import (
    CircleGeometry,
    Device,
    GasSource,
    MachineZone,
    PolygonGeometry,
    Position,
    Violation,
)


T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryViolationStore:
    """테스트용 메모리 위반 저장소"""

    def __init__(self):
        self.rows: Dict[str, Violation] = {}
        self.create_calls = 0
        self.close_calls = 0
        self.fail_create = False
        self.fail_close = False

    async def create_violation(self, violation: Violation) -> str:
        self.create_calls += 1
        if self.fail_create:
            raise RuntimeError("store unavailable")
        vid = uuid.uuid4().hex
        self.rows[vid] = violation.model_copy(update={"id": vid})
        return vid

    async def close_violation(self, violation_id: str, exited_at: datetime, duration_seconds: int) -> bool:
        self.close_calls += 1
        if self.fail_close:
            raise RuntimeError("store unavailable")
        row = self.rows.get(violation_id)
        if row is None or row.exited_at is not None:
            return False
        self.rows[violation_id] = row.model_copy(
            update={"exited_at": exited_at, "duration_seconds": duration_seconds}
        )
        return True

    async def list_open_violations(self) -> List[Violation]:
        return sorted((v for v in self.rows.values() if v.exited_at is None),
                      key=lambda v: v.entered_at)


def make_device(device_id: str, lat: float, lng: float, ts: datetime = T0,
                name: str = None, battery: float = None) -> Device:
    """테스트용 디바이스 생성"""
    return Device(
        id=device_id,
        name=name or device_id,
        last_position=Position(latitude=lat, longitude=lng, timestamp=ts),
        battery_percent=battery,
    )


def make_circle_zone(zone_id: str, center, danger_m: float, alert_m: float, name: str = None) -> MachineZone:
    """테스트용 원형 설비 영역 생성"""
    return MachineZone(
        id=zone_id,
        name=name or zone_id,
        shape="circle",
        danger=CircleGeometry(center=center, radius_m=danger_m),
        alert=CircleGeometry(center=center, radius_m=alert_m),
    )


@pytest.fixture
def device_factory():
    """디바이스 생성 함수"""
    return make_device


@pytest.fixture
def circle_zone_factory():
    """원형 설비 영역 생성 함수"""
    return make_circle_zone


@pytest.fixture
def t0():
    """기준 시각"""
    return T0


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


@pytest.fixture
def violation_store():
    """테스트용 메모리 위반 저장소"""
    return InMemoryViolationStore()


@pytest.fixture
def mock_notifier():
    """테스트용 알림 발송기"""
    notifier = AsyncMock()
    notifier.notify.return_value = True
    return notifier


@pytest.fixture
def machine_circle_zone():
    """(10, 10) 중심, 위험 500m / 경계 1000m 원형 영역"""
    return make_circle_zone("machine-1", (10.0, 10.0), 500.0, 1000.0, name="Crusher")


@pytest.fixture
def machine_polygon_zone():
    """정사각형 다각형 위험/경계 영역"""
    return MachineZone(
        id="machine-poly",
        name="Press",
        shape="polygon",
        danger=PolygonGeometry(ring=((0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0))),
        alert=PolygonGeometry(ring=((-1.0, -1.0), (-1.0, 2.0), (2.0, 2.0), (2.0, -1.0))),
    )


@pytest.fixture
def gas_source():
    """테스트용 가스원"""
    return GasSource(id="gas-1", name="Ammonia Tank", position=(32.2, -7.9))


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
