"""
Retry utilities for ZoneWatch.

This module provides retry and backoff utilities
for calls to the external HTTP feeds.
"""

import asyncio
import random
from typing import Callable, Awaitable, Optional, TypeVar
import aiohttp

T = TypeVar('T')

def is_retryable_http_error(exc: Exception) -> bool:
    """
    재시도할 가치가 있는 오류인지 판단합니다.

    4xx 응답(잘못된 API 키, 잘못된 요청 등)은 다시 보내도 결과가 같으므로
    재시도하지 않습니다. 429(요청 과다)는 예외로 재시도합니다.

    Args:
        exc: 발생한 예외

    Returns:
        재시도 여부
    """
    if isinstance(exc, aiohttp.ClientResponseError):
        return not (400 <= exc.status < 500) or exc.status == 429
    return True

def retry_budget_sec(request_timeout: float,
                     max_retries: int,
                     base_delay: float,
                     max_delay: float) -> float:
    """
    재시도를 모두 소진할 때까지 걸릴 수 있는 최대 시간을 계산합니다 (지터 제외).

    Args:
        request_timeout: 요청 1회 타임아웃 (초)
        max_retries: 최대 재시도 횟수
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)

    Returns:
        최대 소요 시간 (초)
    """
    delays = sum(min(max_delay, base_delay * (2 ** i)) for i in range(max_retries))
    return request_timeout * (max_retries + 1) + delays

async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retry_if: Optional[Callable[[Exception], bool]] = None
) -> T:
    """
    지수 백오프와 함께 함수를 재시도합니다.

    Args:
        func: 재시도할 비동기 함수
        max_retries: 최대 재시도 횟수
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: 지터 적용 여부
        retry_if: 예외별 재시도 여부 판단 함수 (None이면 모든 예외 재시도)

    Returns:
        함수 실행 결과

    Raises:
        마지막 시도에서 발생한 예외
    """
    last_exception = None

    for attempt in range(1, max_retries + 2):  # 최초 1회 + max_retries
        try:
            return await func()
        except Exception as e:
            last_exception = e

            if attempt > max_retries:
                break
            if retry_if is not None and not retry_if(e):
                break

            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))

            if jitter:
                delay = delay * (0.5 + random.random() * 0.5)

            await asyncio.sleep(delay)

    raise last_exception
