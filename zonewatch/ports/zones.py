"""
Zone store port interface.

This module defines the protocol for loading configured zones.
"""

from typing import List, Protocol
from zonewatch.core.models import Zone

class ZoneStorePort(Protocol):
    """영역 저장소 포트 인터페이스"""

    async def list_zones(self) -> List[Zone]:
        """
        저장된 모든 영역을 반환합니다.

        설비 영역은 형상 그대로, 가스원은 위치와 이름만 포함합니다.
        """
        ...
