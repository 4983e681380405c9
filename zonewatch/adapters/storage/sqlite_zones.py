"""
SQLite-based zone store for ZoneWatch.

Machine zones are stored with their geometry as JSON; gas sources
are stored as a position and name only, since their geometry is
recomputed from live wind data every cycle.
"""

import aiosqlite
import json
import time
import uuid
from typing import List, Union
from pydantic import TypeAdapter, ValidationError
from zonewatch.core.models import GasSource, MachineZone, Zone
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.zones")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS zones (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    source TEXT NOT NULL,
    body TEXT NOT NULL,
    created_at REAL NOT NULL
);
"""

_zone_adapter = TypeAdapter(Zone)

def new_zone_id() -> str:
    return uuid.uuid4().hex

class SQLiteZoneStore:
    """SQLite 기반 영역 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteZoneStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteZoneStore 스키마 초기화 완료")

    async def save_zone(self, zone: Union[MachineZone, GasSource]) -> str:
        """
        영역을 저장합니다 (같은 ID면 덮어씀).

        Returns:
            영역 ID
        """
        body = zone.model_dump_json()
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO zones (id, name, source, body, created_at) VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, source = excluded.source, body = excluded.body",
                (zone.id, zone.name, zone.source, body, time.time())
            )
            await db.commit()
        log.info(f"영역 저장됨 id:{zone.id} source:{zone.source}")
        return zone.id

    async def delete_zone(self, zone_id: str) -> bool:
        """영역을 삭제합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("DELETE FROM zones WHERE id = ?", (zone_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def list_zones(self) -> List[Zone]:
        """
        저장된 영역을 최신 생성 순으로 반환합니다.

        파싱할 수 없는 행은 경고 후 건너뜁니다.
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT id, body FROM zones ORDER BY created_at DESC, id ASC")
            rows = await cursor.fetchall()

        zones: List[Zone] = []
        for zone_id, body in rows:
            try:
                zones.append(_zone_adapter.validate_python(json.loads(body)))
            except (ValidationError, ValueError) as e:
                log.warning(f"영역 파싱 실패 건너뜀 id:{zone_id} error:{e}")
        return zones
