"""
Device history store port interface.
"""

from typing import List, Protocol
from zonewatch.core.models import Device

class HistoryStorePort(Protocol):
    """디바이스 이력 저장소 포트 인터페이스"""

    async def log_device_history(self, devices: List[Device]) -> None:
        """디바이스 위치 이력을 기록합니다."""
        ...
