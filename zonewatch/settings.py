# zonewatch/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field
from zonewatch.common.retry import retry_budget_sec

class PositionFeed(BaseModel):
    base_url: str = "https://www.followmee.com"
    api_key: str = ""
    username: str = ""
    timeout_sec: int = 5

class WeatherFeed(BaseModel):
    base_url: str = "https://api.weatherapi.com/v1"
    api_key: str = ""
    timeout_sec: int = 5

class Sms(BaseModel):
    enabled: bool = False
    base_url: str = ""
    api_key: str = ""
    sender: str = ""
    phone_number: str = ""
    danger_zone_alerts: bool = True
    alert_zone_alerts: bool = True
    timeout_sec: int = 10

class Polling(BaseModel):
    interval_sec: float = 30.0
    call_timeout_sec: float = 20.0            # 피드 호출 전체 (재시도 포함) 타임아웃
    battery_threshold: int = 20               # 저배터리 기준 (%)
    close_on_shutdown: bool = False           # False면 재시작 시 스토어에서 복구

class Storage(BaseModel):
    db_path: str = "/data/zonewatch.db"

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "ZoneWatch"
    build_version: str = "0.1.0"
    build_date: str = "2026-01-01"
    log_level: str = "INFO"

class Reliability(BaseModel):
    http_max_retries: int = 2
    backoff_initial_sec: float = 0.5
    backoff_max_sec: float = 5.0

class Settings(BaseModel):
    dry_run: bool = False

    # 하위 섹션 (기본값/팩토리로 누락 방지)
    position_feed: PositionFeed = Field(default_factory=PositionFeed)
    weather: WeatherFeed = Field(default_factory=WeatherFeed)
    sms: Sms = Field(default_factory=Sms)
    polling: Polling = Field(default_factory=Polling)
    storage: Storage = Field(default_factory=Storage)
    observability: Observability = Field(default_factory=Observability)
    reliability: Reliability = Field(default_factory=Reliability)

    def notify_enabled_for(self, level: str) -> bool:
        """해당 레벨의 위반 생성 시 SMS 발송 여부를 반환합니다."""
        if not self.sms.enabled or not self.sms.phone_number:
            return False
        if level == "danger":
            return self.sms.danger_zone_alerts
        if level == "alert":
            return self.sms.alert_zone_alerts
        return False

    def feed_retry_budget_sec(self) -> float:
        """위치/날씨 피드 호출이 재시도를 모두 소진할 때까지의 최대 시간 (초)"""
        r = self.reliability
        return max(
            retry_budget_sec(feed.timeout_sec, r.http_max_retries, r.backoff_initial_sec, r.backoff_max_sec)
            for feed in (self.position_feed, self.weather)
        )
