"""
FollowMee API client for ZoneWatch.

This module provides a client for pulling the latest position
of every device registered on a FollowMee account.
"""

import aiohttp
from typing import Dict, List, Optional
from zonewatch.observability.logging_setup import get_logger
from zonewatch.common.retry import is_retryable_http_error, retry_with_backoff

log = get_logger("zonewatch.followmee")

class FollowMeeClient:
    """FollowMee 디바이스 위치 API 클라이언트"""

    def __init__(self,
                 base_url: str,
                 api_key: str,
                 username: str,
                 timeout: int = 10,
                 max_retries: int = 2,
                 backoff_initial: float = 0.5,
                 backoff_max: float = 5.0):
        """
        초기화합니다.

        Args:
            base_url: FollowMee 기본 URL
            api_key: API 키
            username: 계정 사용자명
            timeout: 요청 타임아웃 (초)
            max_retries: 최대 재시도 횟수
            backoff_initial: 재시도 기본 지연 (초)
            backoff_max: 재시도 최대 지연 (초)
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.username = username
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.session: Optional[aiohttp.ClientSession] = None

        log.info("FollowMee 클라이언트 초기화됨")

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        self.session = aiohttp.ClientSession(
            headers={"Accept": "application/json"},
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(self, endpoint: str, params: Dict[str, str]) -> Dict:
        """
        GET 요청을 수행합니다.

        Args:
            endpoint: API 엔드포인트
            params: 쿼리 매개변수

        Returns:
            응답 데이터
        """
        if not self.session:
            raise RuntimeError("세션이 초기화되지 않았습니다. async with를 사용하세요.")

        url = f"{self.base_url}{endpoint}"

        async def _request():
            async with self.session.get(url, params=params) as response:
                response.raise_for_status()
                # FollowMee는 text/html로 JSON을 내려주는 경우가 있음
                return await response.json(content_type=None)

        return await retry_with_backoff(
            _request,
            max_retries=self.max_retries,
            base_delay=self.backoff_initial,
            max_delay=self.backoff_max,
            retry_if=is_retryable_http_error,
        )

    async def fetch_device_positions(self) -> List[dict]:
        """
        모든 디바이스의 최신 위치를 가져옵니다.

        Returns:
            원시 디바이스 레코드 목록 (DeviceID, DeviceName, Latitude, Longitude, Date, ...)

        Raises:
            요청/파싱 실패 시 예외
        """
        data = await self._make_request("/api/info.aspx", {
            "key": self.api_key,
            "username": self.username,
            "function": "devicelist",
        })

        if not isinstance(data, dict):
            raise ValueError(f"unexpected FollowMee response type: {type(data).__name__}")

        devices = data.get("Data")
        if devices is None:
            devices = data.get("Device", [])
        if not isinstance(devices, list):
            raise ValueError("FollowMee response has no device list")

        log.debug(f"디바이스 위치 가져옴 count:{len(devices)}")
        return devices
