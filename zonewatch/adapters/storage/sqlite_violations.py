"""
SQLite-based violation store for ZoneWatch.

This module implements the violation store port on SQLite,
plus the queries behind the violation list and analytics endpoints.
"""

import aiosqlite
import uuid
from datetime import datetime
from typing import List, Optional, Tuple
from zonewatch.core.models import Violation
from zonewatch.adapters.storage._time import to_db, from_db
from zonewatch.observability.logging_setup import get_logger

log = get_logger("zonewatch.violations")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS zone_violations (
    id TEXT PRIMARY KEY,
    device_id TEXT NOT NULL,
    device_name TEXT NOT NULL,
    zone_id TEXT NOT NULL,
    zone_name TEXT NOT NULL,
    zone_type TEXT NOT NULL,
    zone_source TEXT NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    entered_at TEXT NOT NULL,
    exited_at TEXT,
    duration_seconds INTEGER
);
CREATE INDEX IF NOT EXISTS idx_violations_entered ON zone_violations(entered_at);
CREATE INDEX IF NOT EXISTS idx_violations_open ON zone_violations(exited_at);
"""

_COLUMNS = ("id, device_id, device_name, zone_id, zone_name, zone_type, zone_source, "
            "latitude, longitude, entered_at, exited_at, duration_seconds")

def _row_to_violation(row) -> Violation:
    return Violation(
        id=row[0],
        device_id=row[1],
        device_name=row[2],
        zone_id=row[3],
        zone_name=row[4],
        level=row[5],
        source=row[6],
        latitude=row[7],
        longitude=row[8],
        entered_at=from_db(row[9]),
        exited_at=from_db(row[10]),
        duration_seconds=row[11],
    )

class SQLiteViolationStore:
    """SQLite 기반 위반 기록 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteViolationStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteViolationStore 스키마 초기화 완료")

    async def create_violation(self, violation: Violation) -> str:
        """
        위반 기록을 생성합니다.

        Args:
            violation: 생성할 위반

        Returns:
            생성된 위반 ID
        """
        vid = violation.id or uuid.uuid4().hex
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                f"INSERT INTO zone_violations ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (vid, violation.device_id, violation.device_name, violation.zone_id,
                 violation.zone_name, violation.level, violation.source,
                 violation.latitude, violation.longitude, to_db(violation.entered_at),
                 to_db(violation.exited_at), violation.duration_seconds)
            )
            await db.commit()
        return vid

    async def close_violation(self, violation_id: str, exited_at: datetime, duration_seconds: int) -> bool:
        """
        위반 기록을 종료합니다. 이미 종료된 건은 갱신하지 않습니다.

        Returns:
            갱신 성공 여부
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "UPDATE zone_violations SET exited_at = ?, duration_seconds = ? "
                "WHERE id = ? AND exited_at IS NULL",
                (to_db(exited_at), duration_seconds, violation_id)
            )
            await db.commit()
            if cursor.rowcount == 0:
                log.warning(f"종료할 위반을 찾을 수 없음: {violation_id}")
                return False
            return True

    async def get(self, violation_id: str) -> Optional[Violation]:
        """id로 위반 한 건을 조회합니다. 없으면 None."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM zone_violations WHERE id = ?", (violation_id,)
            )
            row = await cursor.fetchone()
            return _row_to_violation(row) if row else None

    async def list_open_violations(self) -> List[Violation]:
        """종료되지 않은 위반 목록을 진입 시각 순으로 반환합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM zone_violations WHERE exited_at IS NULL ORDER BY entered_at ASC"
            )
            rows = await cursor.fetchall()
            return [_row_to_violation(r) for r in rows]

    async def list_violations(self,
                              start: Optional[datetime] = None,
                              end: Optional[datetime] = None,
                              level: Optional[str] = None,
                              limit: int = 500) -> List[Violation]:
        """
        기간/레벨 조건으로 위반 목록을 최신순으로 조회합니다.

        Args:
            start: 진입 시각 하한
            end: 진입 시각 상한
            level: "danger" 또는 "alert"
            limit: 최대 건수

        Returns:
            위반 목록
        """
        where, params = self._range_clause(start, end)
        if level:
            where.append("zone_type = ?")
            params.append(level)
        sql = f"SELECT {_COLUMNS} FROM zone_violations"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY entered_at DESC LIMIT ?"
        params.append(limit)

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
            return [_row_to_violation(r) for r in rows]

    async def summary(self, start: Optional[datetime] = None,
                      end: Optional[datetime] = None) -> Tuple[int, int, int]:
        """
        기간 내 위반 건수를 집계합니다.

        Returns:
            (전체, 위험, 경계) 건수
        """
        where, params = self._range_clause(start, end)
        sql = ("SELECT COUNT(*), "
               "COALESCE(SUM(CASE WHEN zone_type = 'danger' THEN 1 ELSE 0 END), 0), "
               "COALESCE(SUM(CASE WHEN zone_type = 'alert' THEN 1 ELSE 0 END), 0) "
               "FROM zone_violations")
        if where:
            sql += " WHERE " + " AND ".join(where)

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(sql, params)
            row = await cursor.fetchone()
            return (row[0], row[1], row[2]) if row else (0, 0, 0)

    @staticmethod
    def _range_clause(start: Optional[datetime], end: Optional[datetime]):
        where: List[str] = []
        params: list = []
        if start is not None:
            where.append("entered_at >= ?")
            params.append(to_db(start))
        if end is not None:
            where.append("entered_at <= ?")
            params.append(to_db(end))
        return where, params
