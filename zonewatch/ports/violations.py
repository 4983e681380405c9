"""
Violation store port interface.

This module defines the protocol for violation persistence.
"""

from datetime import datetime
from typing import List, Protocol
from zonewatch.core.models import Violation

class ViolationStorePort(Protocol):
    """위반 기록 저장소 포트 인터페이스"""

    async def create_violation(self, violation: Violation) -> str:
        """
        위반 기록을 생성합니다.

        Args:
            violation: 생성할 위반 (id 없음)

        Returns:
            생성된 위반 ID
        """
        ...

    async def close_violation(self, violation_id: str, exited_at: datetime, duration_seconds: int) -> bool:
        """
        위반 기록을 종료합니다.

        Args:
            violation_id: 위반 ID
            exited_at: 이탈 시각
            duration_seconds: 체류 시간 (초)

        Returns:
            성공 여부
        """
        ...

    async def list_open_violations(self) -> List[Violation]:
        """종료되지 않은 위반 목록을 반환합니다."""
        ...
