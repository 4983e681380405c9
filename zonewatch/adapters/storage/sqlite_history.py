"""
SQLite-based device history store for ZoneWatch.

This module records every polled device position and provides
the per-period device statistics used by the analytics summary.
"""

import aiosqlite
from datetime import datetime
from typing import List, Optional, Tuple
from zonewatch.core.models import Device
from zonewatch.adapters.storage._time import to_db
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.history")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS device_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id TEXT NOT NULL,
    device_name TEXT NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    battery REAL,
    altitude_m REAL,
    accuracy_m REAL,
    timestamp TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_history_ts ON device_history(timestamp);
CREATE INDEX IF NOT EXISTS idx_history_device ON device_history(device_id);
"""

class SQLiteHistoryStore:
    """SQLite 기반 디바이스 이력 저장소"""

    def __init__(self, path: str):
        self.path = path
        log.info(f"SQLiteHistoryStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteHistoryStore 스키마 초기화 완료")

    async def log_device_history(self, devices: List[Device]) -> None:
        """
        디바이스 위치 이력을 기록합니다.

        Args:
            devices: 이번 사이클의 디바이스 목록
        """
        if not devices:
            return
        rows = [
            (d.id, d.name, d.last_position.latitude, d.last_position.longitude,
             d.battery_percent, d.altitude_m, d.accuracy_m, to_db(d.last_position.timestamp))
            for d in devices
        ]
        async with aiosqlite.connect(self.path) as db:
            await db.executemany(
                "INSERT INTO device_history (device_id, device_name, latitude, longitude, "
                "battery, altitude_m, accuracy_m, timestamp) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                rows
            )
            await db.commit()

    async def list_history(self,
                           device_id: Optional[str] = None,
                           start: Optional[datetime] = None,
                           end: Optional[datetime] = None,
                           limit: int = 1000) -> List[dict]:
        """기간/디바이스 조건으로 위치 이력을 최신순으로 조회합니다."""
        where, params = [], []
        if device_id:
            where.append("device_id = ?")
            params.append(device_id)
        if start is not None:
            where.append("timestamp >= ?")
            params.append(to_db(start))
        if end is not None:
            where.append("timestamp <= ?")
            params.append(to_db(end))
        sql = ("SELECT device_id, device_name, latitude, longitude, battery, altitude_m, "
               "accuracy_m, timestamp FROM device_history")
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
            return [dict(r) for r in rows]

    async def tracked_device_stats(self,
                                   start: Optional[datetime] = None,
                                   end: Optional[datetime] = None) -> Tuple[int, int]:
        """
        기간 내 추적된 디바이스 수와 평균 배터리를 계산합니다.

        Returns:
            (고유 디바이스 수, 평균 배터리 % 반올림)
        """
        where, params = [], []
        if start is not None:
            where.append("timestamp >= ?")
            params.append(to_db(start))
        if end is not None:
            where.append("timestamp <= ?")
            params.append(to_db(end))
        clause = (" WHERE " + " AND ".join(where)) if where else ""

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT COUNT(DISTINCT device_id), AVG(battery) FROM device_history{clause}",
                params
            )
            row = await cursor.fetchone()

        if not row:
            return (0, 0)
        unique, avg_battery = row
        return (unique or 0, int(round(avg_battery)) if avg_battery is not None else 0)
