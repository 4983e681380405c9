"""
Polling orchestrator for ZoneWatch.

This module implements the scheduled polling loop: fetch device
positions, resolve gas plume zones from live wind, evaluate every
device against the zone snapshot, feed the violation tracker, and
publish the aggregate danger/alert report.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple, TypeVar
from zonewatch.core.containment import evaluate_containment
from zonewatch.core.models import (
    ContainmentResult,
    CycleReport,
    Device,
    DeviceStatus,
    GasSource,
    ResolvedZone,
    Wind,
    Zone,
)
from zonewatch.core.normalize import to_device
from zonewatch.core.plume import calculate_gas_zone
from zonewatch.core.tracker import ViolationTracker
from zonewatch.ports.positions import PositionFeedPort
from zonewatch.ports.weather import WeatherPort
from zonewatch.ports.zones import ZoneStorePort
from zonewatch.ports.history import HistoryStorePort
from zonewatch.observability import metrics
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.orchestrator")

T = TypeVar("T")

class PollingOrchestrator:
    """폴링 오케스트레이터 (위치 수집 → 영역 평가 → 위반 추적)"""

    def __init__(self,
                 feed: PositionFeedPort,
                 weather: WeatherPort,
                 zone_store: ZoneStorePort,
                 tracker: ViolationTracker,
                 *,
                 history: Optional[HistoryStorePort] = None,
                 interval_sec: float = 30.0,
                 call_timeout_sec: float = 20.0,
                 battery_threshold: int = 20,
                 notify_policy: Optional[Callable[[str], bool]] = None,
                 close_on_shutdown: bool = False):
        """
        초기화합니다.

        Args:
            feed: 디바이스 위치 피드
            weather: 날씨 피드
            zone_store: 영역 저장소
            tracker: 위반 트래커 (오케스트레이터가 소유)
            history: 디바이스 이력 저장소 (선택)
            interval_sec: 폴링 주기 (초)
            call_timeout_sec: 외부 호출 타임아웃 (초)
            battery_threshold: 저배터리 기준 (%)
            notify_policy: 레벨별 알림 발송 여부 판단 함수
            close_on_shutdown: 종료 시 진행 중 위반을 모두 닫을지 여부
        """
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")

        self.feed = feed
        self.weather = weather
        self.zone_store = zone_store
        self.tracker = tracker
        self.history = history
        self.interval = interval_sec
        self.call_timeout = call_timeout_sec
        self.battery_threshold = battery_threshold
        self.notify_policy = notify_policy
        self.close_on_shutdown = close_on_shutdown

        # 세션 동안 유지되는 디바이스 최신 위치
        self.devices: Dict[str, Device] = {}
        self.last_report: Optional[CycleReport] = None
        self._zones: List[Zone] = []
        # 이번 사이클에서 오래된 샘플이 들어온 디바이스 (이력 기록 제외)
        self._stale_ids: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

        self.start_time = time.time()

        log.info("오케스트레이터 초기화됨")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """
        오케스트레이터를 시작합니다.

        진행 중 위반을 복구한 뒤, 한 사이클이 끝나야 다음 사이클이 시작되는
        폴링 루프를 실행합니다.
        """
        await self.restore_open_violations()
        log.info("폴링 루프 시작됨", interval=self.interval)

        while True:
            t0 = time.monotonic()
            try:
                await self.run_cycle()
            except Exception as e:
                metrics.cycle_errors.inc()
                log.exception(f"폴링 사이클 오류 error:{str(e)}")

            metrics.uptime_seconds.set(time.time() - self.start_time)
            elapsed = time.monotonic() - t0
            await asyncio.sleep(max(0.0, self.interval - elapsed))

    def start_background(self) -> asyncio.Task:
        """폴링 루프를 백그라운드 태스크로 실행합니다."""
        if self.running:
            return self._task
        self._task = asyncio.create_task(self.start(), name="zonewatch-polling")
        return self._task

    async def stop(self) -> None:
        """폴링 루프를 취소하고 종료를 기다립니다."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self.close_on_shutdown:
            events = await self.tracker.close_all()
            log.info("종료 시 진행 중 위반 정리", count=len(events))

        log.info("오케스트레이터 정지됨")

    async def restore_open_violations(self) -> int:
        """저장소의 미종료 위반으로 트래커 상태를 복구합니다."""
        try:
            open_violations = await self._call(self.tracker.store.list_open_violations())
        except Exception as e:
            log.warning(f"진행 중 위반 복구 실패 error:{str(e)}")
            return 0
        return self.tracker.restore(open_violations)

    async def _call(self, aw: Awaitable[T]) -> T:
        """외부 호출에 타임아웃을 적용합니다. 타임아웃은 실패로 처리됩니다."""
        return await asyncio.wait_for(aw, timeout=self.call_timeout)

    async def fetch_devices(self, now: datetime) -> Tuple[List[Device], bool]:
        """
        위치 피드에서 디바이스를 가져와 최신 위치를 갱신합니다.

        이전에 본 것보다 오래된 샘플은 무시하고 마지막 위치를 유지합니다.

        Returns:
            (이번 사이클 디바이스 목록, 피드 성공 여부)
        """
        try:
            raw_records = await self._call(self.feed.fetch_device_positions())
        except Exception as e:
            metrics.feed_failures.labels(feed="positions").inc()
            log.warning(f"위치 피드 조회 실패, 이번 사이클 건너뜀 error:{str(e)}")
            return [], False

        metrics.positions_received.inc(len(raw_records))
        self._stale_ids = set()
        seen: Dict[str, Device] = {}
        for raw in raw_records:
            try:
                device = to_device(raw, now=now)
            except (ValueError, TypeError) as e:
                metrics.positions_rejected.labels(reason="invalid").inc()
                log.warning(f"위치 레코드 무시 error:{str(e)}")
                continue

            known = self.devices.get(device.id)
            if known is not None and device.last_position.timestamp < known.last_position.timestamp:
                metrics.positions_rejected.labels(reason="stale").inc()
                log.debug("오래된 위치 샘플 무시", device_id=device.id)
                self._stale_ids.add(device.id)
                device = known
            else:
                self.devices[device.id] = device
            seen[device.id] = device

        return list(seen.values()), True

    async def load_zones(self) -> List[Zone]:
        """영역 목록을 가져옵니다. 실패 시 직전 목록을 재사용합니다."""
        try:
            self._zones = list(await self._call(self.zone_store.list_zones()))
        except Exception as e:
            metrics.feed_failures.labels(feed="zones").inc()
            log.warning(f"영역 조회 실패, 직전 영역 사용 count:{len(self._zones)} error:{str(e)}")
        return self._zones

    async def _fetch_wind(self, source: GasSource) -> Optional[Wind]:
        lat, lng = source.position
        try:
            return await self._call(self.weather.fetch_weather(lat, lng))
        except Exception as e:
            metrics.feed_failures.labels(feed="weather").inc()
            log.warning(f"날씨 조회 실패, 가스원 영역 없음 zone_id:{source.id} error:{str(e)}")
            return None

    async def resolve_zones(self, zones: List[Zone]) -> Tuple[List[ResolvedZone], int, int]:
        """
        이번 사이클의 영역 스냅샷을 만듭니다.

        가스원은 사이클당 한 번 바람 정보로 계산되며, 실패하면 이번 사이클에서 제외됩니다.
        영역 순서는 입력 순서를 유지합니다.

        Returns:
            (평가용 영역 목록, 계산된 가스 영역 수, 제외된 가스원 수)
        """
        gas_sources = [z for z in zones if z.source == "gas"]
        winds = await asyncio.gather(*(self._fetch_wind(s) for s in gas_sources))
        wind_by_id = {s.id: w for s, w in zip(gas_sources, winds)}

        resolved: List[ResolvedZone] = []
        resolved_gas = 0
        skipped_gas = 0
        for zone in zones:
            if zone.source == "machine":
                resolved.append(zone)
            elif zone.source == "gas":
                gas_zone = calculate_gas_zone(zone, wind_by_id.get(zone.id))
                if gas_zone is None:
                    skipped_gas += 1
                    continue
                resolved_gas += 1
                resolved.append(gas_zone)
            else:
                raise ValueError(f"unknown zone source: {zone.source}")

        metrics.gas_zones_active.set(resolved_gas)
        return resolved, resolved_gas, skipped_gas

    def _should_notify(self, result: ContainmentResult) -> bool:
        if self.notify_policy is None or result.violating_zone is None:
            return False
        return self.notify_policy(result.violating_zone.level)

    async def _track(self, device: Device, result: ContainmentResult, now: datetime) -> None:
        try:
            await self.tracker.update(device, result, now=now, notify=self._should_notify(result))
        except Exception as e:
            log.error(f"위반 추적 오류 device_id:{device.id} error:{str(e)}")

    async def _log_history(self, devices: List[Device]) -> None:
        if self.history is None or not devices:
            return
        try:
            await self._call(self.history.log_device_history(devices))
        except Exception as e:
            metrics.store_failures.labels(op="history").inc()
            log.warning(f"디바이스 이력 기록 실패 error:{str(e)}")

    async def run_cycle(self, now: Optional[datetime] = None) -> CycleReport:
        """
        폴링 사이클 한 번을 끝까지 실행합니다.

        Args:
            now: 사이클 기준 시각 (None이면 현재 UTC)

        Returns:
            사이클 결과 집계
        """
        now = now or datetime.now(timezone.utc)

        with metrics.cycle_seconds.time():
            devices, feed_ok = await self.fetch_devices(now)
            if not feed_ok:
                report = CycleReport(started_at=now, finished_at=datetime.now(timezone.utc), feed_ok=False)
                self.last_report = report
                return report

            zones = await self.load_zones()
            resolved, resolved_gas, skipped_gas = await self.resolve_zones(zones)

            with metrics.evaluate_seconds.time():
                results = {d.id: evaluate_containment(d.last_position.point, resolved) for d in devices}

            # 디바이스별로 독립 처리 (트래커 맵은 디바이스 ID로 분리됨)
            await asyncio.gather(*(self._track(d, results[d.id], now) for d in devices))
            await self._log_history([d for d in devices if d.id not in self._stale_ids])

            statuses = [self._status(d, results[d.id]) for d in devices]
            report = CycleReport(
                started_at=now,
                finished_at=datetime.now(timezone.utc),
                feed_ok=True,
                device_count=len(devices),
                in_danger=[s for s in statuses if s.in_danger],
                in_alert=[s for s in statuses if s.in_alert],
                statuses=statuses,
                gas_zones_resolved=resolved_gas,
                gas_zones_skipped=skipped_gas,
                low_battery=sum(
                    1 for d in devices
                    if d.battery_percent is not None and d.battery_percent < self.battery_threshold
                ),
            )

        self.last_report = report
        metrics.cycles_total.inc()
        metrics.devices_tracked.set(report.device_count)
        metrics.devices_in_danger.set(len(report.in_danger))
        metrics.devices_in_alert.set(len(report.in_alert))

        if report.in_danger or report.in_alert:
            log.info("사이클 완료 (위반 있음)",
                     devices=report.device_count,
                     in_danger=len(report.in_danger),
                     in_alert=len(report.in_alert))
        else:
            log.debug("사이클 완료", devices=report.device_count)
        return report

    @staticmethod
    def _status(device: Device, result: ContainmentResult) -> DeviceStatus:
        zone = result.violating_zone
        return DeviceStatus(
            device_id=device.id,
            device_name=device.name,
            latitude=device.last_position.latitude,
            longitude=device.last_position.longitude,
            in_danger=result.in_danger,
            in_alert=result.in_alert,
            zone_id=zone.zone_id if zone else None,
            zone_name=zone.zone_name if zone else None,
            battery_percent=device.battery_percent,
        )
