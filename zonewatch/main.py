# zonewatch/main.py
import os, asyncio, signal
from contextlib import AsyncExitStack
from zonewatch.settings import Settings
from zonewatch.observability.logging_setup import setup_logging_dev, get_logger
from zonewatch.observability.server import start_http
from zonewatch.adapters.followmee import FollowMeeClient
from zonewatch.adapters.weatherapi import WeatherApiClient
from zonewatch.adapters.infobip import InfobipSmsClient
from zonewatch.adapters.storage import SQLiteHistoryStore, SQLiteViolationStore, SQLiteZoneStore
from zonewatch.core.tracker import ViolationTracker
from zonewatch.orchestrators import PollingOrchestrator

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()
    # 플래그
    s.dry_run = _b("DRY_RUN", s.dry_run)

    # 위치 피드 (FollowMee)
    s.position_feed.base_url = os.getenv("FOLLOWMEE_BASE_URL", s.position_feed.base_url)
    s.position_feed.api_key = os.getenv("FOLLOWMEE_API_KEY", s.position_feed.api_key)
    s.position_feed.username = os.getenv("FOLLOWMEE_USERNAME", s.position_feed.username)

    # 날씨
    s.weather.base_url = os.getenv("WEATHER_API_BASE_URL", s.weather.base_url)
    s.weather.api_key = os.getenv("WEATHER_API_KEY", s.weather.api_key)

    # SMS (Infobip)
    s.sms.enabled = _b("SMS_ENABLED", s.sms.enabled)
    s.sms.base_url = os.getenv("INFOBIP_BASE_URL", s.sms.base_url)
    s.sms.api_key = os.getenv("INFOBIP_API_KEY", s.sms.api_key)
    s.sms.sender = os.getenv("INFOBIP_SMS_FROM", s.sms.sender)
    s.sms.phone_number = os.getenv("ALERT_PHONE", s.sms.phone_number)
    s.sms.danger_zone_alerts = _b("SMS_DANGER_ALERTS", s.sms.danger_zone_alerts)
    s.sms.alert_zone_alerts = _b("SMS_ALERT_ALERTS", s.sms.alert_zone_alerts)

    # 폴링
    s.polling.interval_sec = float(os.getenv("POLL_INTERVAL_SEC", s.polling.interval_sec))
    s.polling.call_timeout_sec = float(os.getenv("CALL_TIMEOUT_SEC", s.polling.call_timeout_sec))
    s.polling.battery_threshold = int(os.getenv("BATTERY_THRESHOLD", s.polling.battery_threshold))
    s.polling.close_on_shutdown = _b("CLOSE_ON_SHUTDOWN", s.polling.close_on_shutdown)

    # 저장소
    s.storage.db_path = os.getenv("DB_PATH", s.storage.db_path)

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("METRICS_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)

    # 신뢰성
    s.reliability.http_max_retries = int(os.getenv("HTTP_MAX_RETRIES", s.reliability.http_max_retries))

    return s

async def main():
    s = build_settings()
    setup_logging_dev(s.observability.log_level)
    log = get_logger("zonewatch.main")
    log.info("설정 로드 완료")
    budget = s.feed_retry_budget_sec()
    if s.polling.call_timeout_sec < budget:
        log.warning(f"호출 타임아웃이 재시도 시간보다 짧음 call_timeout:{s.polling.call_timeout_sec} retry_budget:{budget}")

    violations = SQLiteViolationStore(s.storage.db_path); await violations.init()
    zones = SQLiteZoneStore(s.storage.db_path); await zones.init()
    history = SQLiteHistoryStore(s.storage.db_path); await history.init()

    async with AsyncExitStack() as stack:
        feed = await stack.enter_async_context(FollowMeeClient(
            base_url=s.position_feed.base_url,
            api_key=s.position_feed.api_key,
            username=s.position_feed.username,
            timeout=s.position_feed.timeout_sec,
            max_retries=s.reliability.http_max_retries,
            backoff_initial=s.reliability.backoff_initial_sec,
            backoff_max=s.reliability.backoff_max_sec,
        ))
        weather = await stack.enter_async_context(WeatherApiClient(
            base_url=s.weather.base_url,
            api_key=s.weather.api_key,
            timeout=s.weather.timeout_sec,
            max_retries=s.reliability.http_max_retries,
            backoff_initial=s.reliability.backoff_initial_sec,
            backoff_max=s.reliability.backoff_max_sec,
        ))

        notifier = None
        if s.sms.enabled and not s.dry_run:
            notifier = await stack.enter_async_context(InfobipSmsClient(
                base_url=s.sms.base_url,
                api_key=s.sms.api_key,
                sender=s.sms.sender,
                timeout=s.sms.timeout_sec,
            ))
            log.info("SMS 알림 활성화됨")

        tracker = ViolationTracker(
            violations,
            notifier,
            phone_number=s.sms.phone_number,
            call_timeout_sec=s.polling.call_timeout_sec,
        )
        orch = PollingOrchestrator(
            feed, weather, zones, tracker,
            history=history,
            interval_sec=s.polling.interval_sec,
            call_timeout_sec=s.polling.call_timeout_sec,
            battery_threshold=s.polling.battery_threshold,
            notify_policy=s.notify_enabled_for,
            close_on_shutdown=s.polling.close_on_shutdown,
        )
        log.info("오케스트레이터 생성 완료")

        http_task = await start_http(s, orch, violations, history, zones)
        log.info("HTTP 서버 시작됨")

        stop = asyncio.Future()
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
                except NotImplementedError: pass
        except RuntimeError: pass

        log.info("오케스트레이터 시작")
        orch.start_background()
        await stop
        await orch.stop()
        http_task.cancel()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
