"""
Violation lifecycle tracking for ZoneWatch.

This module keeps, per device, the currently open violation and
opens, continues, or closes violation records from each cycle's
containment result. At most one violation is open per device.
"""

import asyncio
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from zonewatch.core.models import (
    ContainmentResult,
    Device,
    OpenViolation,
    TrackerEvent,
    Violation,
    ViolatingZone,
)
from zonewatch.ports.violations import ViolationStorePort
from zonewatch.ports.notify import NotificationPort
from zonewatch.observability import metrics
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.tracker")

def duration_seconds(entered_at: datetime, exited_at: datetime) -> int:
    """체류 시간(초)을 내림으로 계산합니다. 시계 역전 시 0."""
    return max(0, math.floor((exited_at - entered_at).total_seconds()))

class ViolationTracker:
    """디바이스별 진행 중 위반을 관리하는 트래커"""

    def __init__(self,
                 store: ViolationStorePort,
                 notifier: Optional[NotificationPort] = None,
                 *,
                 phone_number: str = "",
                 call_timeout_sec: float = 10.0):
        """
        초기화합니다.

        Args:
            store: 위반 기록 저장소
            notifier: 알림 발송기 (None이면 알림 없음)
            phone_number: 알림 수신 번호
            call_timeout_sec: 외부 호출 타임아웃 (초)
        """
        self.store = store
        self.notifier = notifier
        self.phone_number = phone_number
        self.call_timeout = call_timeout_sec
        self._open: Dict[str, OpenViolation] = {}

    @property
    def open_count(self) -> int:
        return len(self._open)

    def get_open(self, device_id: str) -> Optional[OpenViolation]:
        """디바이스의 진행 중 위반을 반환합니다."""
        return self._open.get(device_id)

    def restore(self, violations: Iterable[Violation]) -> int:
        """
        저장소의 미종료 위반으로 상태를 복구합니다 (재시작 시).

        같은 디바이스에 여러 건이 있으면 가장 최근 진입 건을 사용합니다.

        Args:
            violations: 종료되지 않은 위반 목록

        Returns:
            복구된 디바이스 수
        """
        for v in sorted(violations, key=lambda v: v.entered_at):
            self._open[v.device_id] = OpenViolation(
                violation_id=v.id,
                zone_id=v.zone_id,
                level=v.level,
                entered_at=v.entered_at,
            )
        metrics.open_violations.set(len(self._open))
        log.info("진행 중 위반 복구됨", count=len(self._open))
        return len(self._open)

    async def update(self,
                     device: Device,
                     result: ContainmentResult,
                     *,
                     now: Optional[datetime] = None,
                     notify: bool = False) -> List[TrackerEvent]:
        """
        한 디바이스의 이번 사이클 평가 결과를 반영합니다.

        - 위반 영역 없음: 진행 중 위반이 있으면 종료
        - 같은 영역 계속: 아무것도 하지 않음 (미동기화 건은 생성 재시도)
        - 새 영역 진입/다른 영역으로 이동: 새 위반 생성 후 이전 위반 종료

        Args:
            device: 평가한 디바이스
            result: 포함 평가 결과
            now: 기준 시각 (None이면 현재 UTC)
            notify: 새 위반 생성 시 알림 발송 여부

        Returns:
            발생한 이벤트 목록
        """
        now = now or datetime.now(timezone.utc)
        events: List[TrackerEvent] = []
        current = self._open.get(device.id)
        zone = result.violating_zone

        if zone is None:
            if current is not None:
                del self._open[device.id]
                events.append(await self._close(device.id, current, now))
            metrics.open_violations.set(len(self._open))
            return events

        if current is not None and current.zone_id == zone.zone_id:
            if not current.synced:
                await self._retry_create(device, zone, current)
            return events

        entry = await self._create(device, zone, now)
        if current is not None:
            events.append(await self._close(device.id, current, now))
        # 저장 실패와 무관하게 포인터 갱신 (중복 생성 방지)
        self._open[device.id] = entry
        metrics.open_violations.set(len(self._open))
        events.append(TrackerEvent(
            kind="opened",
            device_id=device.id,
            zone_id=zone.zone_id,
            level=zone.level,
            violation_id=entry.violation_id,
        ))

        if notify:
            await self._notify(device, zone, now)

        return events

    async def close_all(self, now: Optional[datetime] = None) -> List[TrackerEvent]:
        """모든 진행 중 위반을 종료합니다."""
        now = now or datetime.now(timezone.utc)
        events = []
        for device_id in list(self._open):
            entry = self._open.pop(device_id)
            events.append(await self._close(device_id, entry, now))
        metrics.open_violations.set(0)
        return events

    def _record(self, device: Device, zone: ViolatingZone, entered_at: datetime) -> Violation:
        pos = device.last_position
        return Violation(
            device_id=device.id,
            device_name=device.name,
            zone_id=zone.zone_id,
            zone_name=zone.zone_name,
            level=zone.level,
            source=zone.source,
            latitude=pos.latitude,
            longitude=pos.longitude,
            entered_at=entered_at,
        )

    async def _create(self, device: Device, zone: ViolatingZone, now: datetime) -> OpenViolation:
        entry = OpenViolation(zone_id=zone.zone_id, level=zone.level, entered_at=now, synced=False)
        try:
            entry.violation_id = await asyncio.wait_for(
                self.store.create_violation(self._record(device, zone, now)),
                timeout=self.call_timeout,
            )
            entry.synced = True
            metrics.violations_opened.labels(level=zone.level, source=zone.source).inc()
            log.info("위반 생성됨",
                     device_id=device.id,
                     zone_id=zone.zone_id,
                     level=zone.level,
                     violation_id=entry.violation_id)
        except Exception as e:
            metrics.store_failures.labels(op="create").inc()
            log.error("위반 생성 실패",
                      device_id=device.id,
                      zone_id=zone.zone_id,
                      error=str(e))
        return entry

    async def _retry_create(self, device: Device, zone: ViolatingZone, entry: OpenViolation) -> None:
        try:
            entry.violation_id = await asyncio.wait_for(
                self.store.create_violation(self._record(device, zone, entry.entered_at)),
                timeout=self.call_timeout,
            )
            entry.synced = True
            metrics.violations_opened.labels(level=zone.level, source=zone.source).inc()
            log.info("미동기화 위반 저장 재시도 성공", device_id=device.id, violation_id=entry.violation_id)
        except Exception as e:
            metrics.store_failures.labels(op="create").inc()
            log.warning("미동기화 위반 저장 재시도 실패", device_id=device.id, error=str(e))

    async def _close(self, device_id: str, entry: OpenViolation, now: datetime) -> TrackerEvent:
        duration = duration_seconds(entry.entered_at, now)
        event = TrackerEvent(
            kind="closed",
            device_id=device_id,
            zone_id=entry.zone_id,
            level=entry.level,
            violation_id=entry.violation_id,
            duration_seconds=duration,
        )

        if not entry.synced or entry.violation_id is None:
            log.warning("저장되지 않은 위반 종료 건너뜀", device_id=device_id, zone_id=entry.zone_id)
            return event

        try:
            ok = await asyncio.wait_for(
                self.store.close_violation(entry.violation_id, now, duration),
                timeout=self.call_timeout,
            )
        except Exception as e:
            ok = False
            log.error("위반 종료 오류", violation_id=entry.violation_id, error=str(e))

        if ok:
            metrics.violations_closed.labels(level=entry.level).inc()
            log.info("위반 종료됨",
                     device_id=device_id,
                     violation_id=entry.violation_id,
                     duration_seconds=duration)
        else:
            metrics.store_failures.labels(op="close").inc()
            log.error("위반 종료 실패", violation_id=entry.violation_id)
        return event

    async def _notify(self, device: Device, zone: ViolatingZone, now: datetime) -> None:
        if self.notifier is None or not self.phone_number:
            return
        try:
            ok = await asyncio.wait_for(
                self.notifier.notify(device.name, zone.zone_name, zone.level,
                                     self.phone_number, now.isoformat()),
                timeout=self.call_timeout,
            )
        except Exception as e:
            ok = False
            log.warning("알림 발송 오류", device_id=device.id, error=str(e))
        if not ok:
            metrics.notify_failures.inc()
