"""
Notification sink port interface.

This module defines the protocol for best-effort violation alerts.
"""

from typing import Protocol

class NotificationPort(Protocol):
    """알림 발송 포트 인터페이스"""

    async def notify(self, device_name: str, zone_name: str, level: str,
                     phone_number: str, timestamp: str) -> bool:
        """
        위반 알림을 발송합니다.

        Returns:
            발송 성공 여부
        """
        ...
