"""
Weather feed port interface.

This module defines the protocol for current wind lookups.
"""

from typing import Protocol
from zonewatch.core.models import Wind

class WeatherPort(Protocol):
    """날씨 피드 포트 인터페이스"""

    async def fetch_weather(self, lat: float, lng: float) -> Wind:
        """
        지점의 현재 바람 정보를 가져옵니다.

        Args:
            lat: 위도
            lng: 경도

        Returns:
            풍속(m/s)과 풍향(도)

        Raises:
            조회 실패 시 예외
        """
        ...
