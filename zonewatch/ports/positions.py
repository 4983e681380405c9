"""
Device position feed port interface.

This module defines the protocol for pulling device positions.
"""

from typing import List, Protocol

class PositionFeedPort(Protocol):
    """디바이스 위치 피드 포트 인터페이스"""

    async def fetch_device_positions(self) -> List[dict]:
        """
        모든 디바이스의 최신 위치를 가져옵니다.

        Returns:
            원시 위치 레코드 목록 (deviceId, deviceName, latitude, longitude,
            timestamp, batteryPercent?, altitudeMeters?, accuracyMeters?)

        Raises:
            네트워크/파싱 오류
        """
        ...
