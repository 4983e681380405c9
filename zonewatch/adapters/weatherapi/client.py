"""
WeatherAPI.com client for ZoneWatch.

This module provides a client for current wind conditions
used to derive gas plume zones.
"""

import aiohttp
from typing import Dict, Optional
from zonewatch.core.models import Wind
from zonewatch.observability.logging_setup import get_logger
from zonewatch.common.retry import is_retryable_http_error, retry_with_backoff

log = get_logger("zonewatch.weather")

KPH_PER_MPS = 3.6

class WeatherApiClient:
    """현재 날씨(바람) API 클라이언트"""

    def __init__(self,
                 base_url: str,
                 api_key: str,
                 timeout: int = 10,
                 max_retries: int = 2,
                 backoff_initial: float = 0.5,
                 backoff_max: float = 5.0):
        """
        초기화합니다.

        Args:
            base_url: API 기본 URL (예: https://api.weatherapi.com/v1)
            api_key: API 키
            timeout: 요청 타임아웃 (초)
            max_retries: 최대 재시도 횟수
            backoff_initial: 재시도 기본 지연 (초)
            backoff_max: 재시도 최대 지연 (초)
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.session: Optional[aiohttp.ClientSession] = None

        log.info("날씨 API 클라이언트 초기화됨")

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(self, endpoint: str, params: Dict[str, str]) -> Dict:
        if not self.session:
            raise RuntimeError("세션이 초기화되지 않았습니다. async with를 사용하세요.")

        url = f"{self.base_url}{endpoint}"

        async def _request():
            async with self.session.get(url, params=params) as response:
                response.raise_for_status()
                return await response.json()

        return await retry_with_backoff(
            _request,
            max_retries=self.max_retries,
            base_delay=self.backoff_initial,
            max_delay=self.backoff_max,
            retry_if=is_retryable_http_error,
        )

    async def fetch_weather(self, lat: float, lng: float) -> Wind:
        """
        지점의 현재 바람 정보를 가져옵니다.

        Args:
            lat: 위도
            lng: 경도

        Returns:
            Wind (풍속 m/s, 풍향 도)

        Raises:
            요청 실패 또는 응답에 바람 정보가 없는 경우 예외
        """
        data = await self._make_request("/current.json", {
            "key": self.api_key,
            "q": f"{lat},{lng}",
            "aqi": "no",
        })

        current = data.get("current") if isinstance(data, dict) else None
        if not current or "wind_kph" not in current or "wind_degree" not in current:
            raise ValueError("weather response has no wind data")

        wind = Wind(
            speed_mps=float(current["wind_kph"]) / KPH_PER_MPS,
            direction_deg=float(current["wind_degree"]),
        )
        log.debug(f"바람 정보 가져옴 lat:{lat} lng:{lng} speed:{wind.speed_mps:.2f} dir:{wind.direction_deg}")
        return wind
