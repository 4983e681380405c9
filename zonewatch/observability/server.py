"""
HTTP server runner for ZoneWatch.

This module runs the FastAPI application as an asyncio task
alongside the polling loop.
"""

import asyncio
import uvicorn
from zonewatch.observability.health import create_app
from zonewatch.settings import Settings
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.observability")

async def start_http(settings: Settings,
                     orchestrator=None,
                     violation_store=None,
                     history_store=None,
                     zone_store=None,
                     host: str = "0.0.0.0") -> asyncio.Task:
    """
    HTTP 서버를 백그라운드 태스크로 시작합니다.

    Args:
        settings: 애플리케이션 설정
        orchestrator: 상태 조회용 오케스트레이터
        violation_store: 위반 저장소
        history_store: 디바이스 이력 저장소
        zone_store: 영역 저장소
        host: 바인딩할 호스트

    Returns:
        서버 태스크
    """
    app = create_app(settings, orchestrator, violation_store, history_store, zone_store)
    port = settings.observability.http_port
    log.info(f"HTTP 서버 시작 중 host:{host} port:{port}")

    server = uvicorn.Server(
        uvicorn.Config(app, host=host, port=port, log_level=settings.observability.log_level.lower())
    )
    return asyncio.create_task(server.serve())
