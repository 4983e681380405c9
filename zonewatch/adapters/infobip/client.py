"""
Infobip SMS client for ZoneWatch.

This module sends best-effort SMS alerts when a device enters
a danger or alert zone.
"""

import re
import aiohttp
from typing import Optional
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.sms")

_PHONE_PREFIX = re.compile(r"^\+|^00")

def clean_phone_number(phone: str) -> str:
    """선행 '+' 또는 '00'을 제거합니다."""
    return _PHONE_PREFIX.sub("", phone.strip())

def format_alert_text(device_name: str, zone_name: str, level: str, timestamp: str) -> str:
    """
    SMS 경보 본문을 생성합니다.

    Args:
        device_name: 디바이스 이름
        zone_name: 영역 이름
        level: "danger" 또는 "alert"
        timestamp: 발생 시각 문자열

    Returns:
        경보 메시지
    """
    footer = ("DANGER ZONE - Immediate action required!" if level == "danger"
              else "ALERT ZONE - Caution advised")
    return (
        "SAFETY ALERT\n\n"
        f"Device: {device_name}\n"
        f"Zone: {zone_name}\n"
        f"Type: {level.upper()}\n"
        f"Time: {timestamp}\n\n"
        f"{footer}"
    )

class InfobipSmsClient:
    """Infobip SMS API 클라이언트"""

    def __init__(self, base_url: str, api_key: str, sender: str, timeout: int = 10):
        """
        초기화합니다.

        Args:
            base_url: Infobip 기본 URL
            api_key: API 키
            sender: 발신 번호/이름
            timeout: 요청 타임아웃 (초)
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

        log.info("Infobip SMS 클라이언트 초기화됨")

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key and self.sender)

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        self.session = aiohttp.ClientSession(
            headers={
                "Authorization": f"App {self.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None

    async def send_text(self, to: str, text: str) -> bool:
        """
        SMS 문자를 발송합니다. 실패는 예외 대신 False로 반환합니다.

        Args:
            to: 수신 번호
            text: 본문

        Returns:
            발송 성공 여부
        """
        if not self.configured:
            log.error("SMS 서비스가 설정되지 않았습니다")
            return False
        if not self.session:
            log.error("SMS 세션이 초기화되지 않았습니다")
            return False

        payload = {
            "messages": [{
                "destinations": [{"to": clean_phone_number(to)}],
                "from": self.sender,
                "text": text,
            }]
        }

        try:
            async with self.session.post(f"{self.base_url}/sms/2/text/advanced", json=payload) as response:
                if response.status >= 400:
                    body = await response.text()
                    log.error(f"SMS API 오류 status:{response.status} body:{body[:200]}")
                    return False
            log.info(f"SMS 발송 성공 to:{clean_phone_number(to)}")
            return True
        except Exception as e:
            log.error(f"SMS 발송 실패 error:{str(e)}")
            return False

    async def notify(self, device_name: str, zone_name: str, level: str,
                     phone_number: str, timestamp: str) -> bool:
        """위반 경보 SMS를 발송합니다."""
        return await self.send_text(phone_number, format_alert_text(device_name, zone_name, level, timestamp))
