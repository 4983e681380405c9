"""
HTTP endpoints for ZoneWatch.

This module implements health, readiness, metrics and info endpoints,
plus the live zone status and violation analytics consumed by the
dashboard UI.
"""

from datetime import datetime
from typing import Literal, Optional
from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import TypeAdapter, ValidationError
import time
from zonewatch.settings import Settings
from zonewatch.core.models import AnalyticsSummary, Zone
from zonewatch.adapters.storage.sqlite_zones import new_zone_id
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.http")

_zone_adapter = TypeAdapter(Zone)

def create_app(settings: Settings,
               orchestrator=None,
               violation_store=None,
               history_store=None,
               zone_store=None) -> FastAPI:
    """
    FastAPI 애플리케이션을 생성합니다.

    Args:
        settings: 애플리케이션 설정
        orchestrator: 폴링 오케스트레이터 (상태 조회용, 선택)
        violation_store: 위반 저장소 (조회/통계용, 선택)
        history_store: 디바이스 이력 저장소 (통계용, 선택)
        zone_store: 영역 저장소 (영역 관리용, 선택)
    """
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="ZoneWatch Geofencing Service"
    )

    start_time = time.time()

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트 (폴링 루프 동작 여부)"""
        running = orchestrator is not None and orchestrator.running
        return JSONResponse({
            "status": "ready" if running else "not_ready",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        }, status_code=200 if running else 503)

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        try:
            return Response(
                generate_latest(),
                media_type=CONTENT_TYPE_LATEST
            )
        except Exception as e:
            log.error(f"메트릭 생성 오류: {e}")
            raise HTTPException(status_code=500, detail="Metrics generation failed")

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "poll_interval_sec": settings.polling.interval_sec,
        })

    @app.get("/status")
    async def status():
        """마지막 폴링 사이클의 위험/경계 상태"""
        report = orchestrator.last_report if orchestrator is not None else None
        if report is None:
            # 아직 사이클이 없으면 상태 미확인
            return JSONResponse({"status": "unknown", "any_in_danger": False, "any_in_alert": False})
        body = report.model_dump(mode="json")
        body["status"] = "ok" if report.feed_ok else "stale"
        body["any_in_danger"] = report.any_in_danger
        body["any_in_alert"] = report.any_in_alert
        body["open_violations"] = orchestrator.tracker.open_count
        return JSONResponse(body)

    @app.get("/violations")
    async def violations(start: Optional[datetime] = None,
                         end: Optional[datetime] = None,
                         level: Optional[Literal["danger", "alert"]] = None,
                         limit: int = Query(default=500, ge=1, le=5000)):
        """기간/레벨별 위반 목록"""
        if violation_store is None:
            raise HTTPException(status_code=503, detail="violation store unavailable")
        try:
            rows = await violation_store.list_violations(start, end, level, limit)
        except Exception as e:
            log.error(f"위반 목록 조회 실패 error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch zone violations")
        return [r.model_dump(mode="json") for r in rows]

    @app.get("/violations/{violation_id}")
    async def violation_detail(violation_id: str):
        """위반 한 건 조회"""
        if violation_store is None:
            raise HTTPException(status_code=503, detail="violation store unavailable")
        try:
            row = await violation_store.get(violation_id)
        except Exception as e:
            log.error(f"위반 조회 실패 id:{violation_id} error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch zone violation")
        if row is None:
            raise HTTPException(status_code=404, detail="violation not found")
        return row.model_dump(mode="json")

    @app.get("/history")
    async def device_history(device_id: Optional[str] = None,
                             start: Optional[datetime] = None,
                             end: Optional[datetime] = None,
                             limit: int = Query(default=1000, ge=1, le=10000)):
        """디바이스 위치 이력 (최신순)"""
        if history_store is None:
            raise HTTPException(status_code=503, detail="history store unavailable")
        try:
            rows = await history_store.list_history(device_id, start, end, limit)
        except Exception as e:
            log.error(f"위치 이력 조회 실패 error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch device history")
        return rows

    @app.get("/analytics/summary")
    async def analytics_summary(start: Optional[datetime] = None,
                                end: Optional[datetime] = None):
        """기간별 위반/디바이스 통계"""
        if violation_store is None:
            raise HTTPException(status_code=503, detail="violation store unavailable")
        try:
            total, danger, alert = await violation_store.summary(start, end)
            devices, battery = (0, 0)
            if history_store is not None:
                devices, battery = await history_store.tracked_device_stats(start, end)
        except Exception as e:
            log.error(f"통계 조회 실패 error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch analytics summary")
        return AnalyticsSummary(
            total_violations=total,
            danger_violations=danger,
            alert_violations=alert,
            total_devices_tracked=devices,
            avg_battery_level=battery,
        ).model_dump()

    @app.get("/zones")
    async def list_zones():
        """저장된 영역 목록"""
        if zone_store is None:
            raise HTTPException(status_code=503, detail="zone store unavailable")
        try:
            zones = await zone_store.list_zones()
        except Exception as e:
            log.error(f"영역 목록 조회 실패 error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch zones")
        return [z.model_dump(mode="json") for z in zones]

    @app.post("/zones", status_code=201)
    async def save_zone(payload: dict = Body(...)):
        """영역을 저장합니다 (id가 없으면 새로 발급)."""
        if zone_store is None:
            raise HTTPException(status_code=503, detail="zone store unavailable")
        payload = dict(payload)
        payload.setdefault("id", new_zone_id())
        try:
            zone = _zone_adapter.validate_python(payload)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
        try:
            zone_id = await zone_store.save_zone(zone)
        except Exception as e:
            log.error(f"영역 저장 실패 error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to save zone")
        return {"id": zone_id}

    @app.delete("/zones/{zone_id}")
    async def delete_zone(zone_id: str):
        """영역을 삭제합니다."""
        if zone_store is None:
            raise HTTPException(status_code=503, detail="zone store unavailable")
        try:
            deleted = await zone_store.delete_zone(zone_id)
        except Exception as e:
            log.error(f"영역 삭제 실패 id:{zone_id} error:{str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete zone")
        if not deleted:
            raise HTTPException(status_code=404, detail="zone not found")
        return {"ok": True}

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "status": "/status",
                "violations": "/violations",
                "history": "/history",
                "analytics_summary": "/analytics/summary",
                "zones": "/zones"
            }
        })

    return app
