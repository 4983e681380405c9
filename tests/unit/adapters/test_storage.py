"""
Storage Adapter 모듈 단위 테스트

이 모듈은 SQLite 기반 위반/영역/이력 저장소 어댑터들의 기능을 테스트합니다.
"""

import pytest
from datetime import timedelta

from zonewatch.adapters.storage import (
    SQLiteHistoryStore,
    SQLiteViolationStore,
    SQLiteZoneStore,
    new_zone_id,
)
from zonewatch.core.models import CircleGeometry, GasSource, MachineZone, PolygonGeometry, Violation


def _violation(t0, device_id="d1", zone_id="A", level="danger", offset_sec=0) -> Violation:
    return Violation(
        device_id=device_id,
        device_name=f"{device_id}-name",
        zone_id=zone_id,
        zone_name=f"{zone_id}-name",
        level=level,
        source="machine",
        latitude=10.0,
        longitude=10.0,
        entered_at=t0 + timedelta(seconds=offset_sec),
    )


class TestSQLiteViolationStore:
    """SQLite 위반 저장소 테스트"""

    @pytest.fixture
    async def store(self, temp_db_path):
        store = SQLiteViolationStore(temp_db_path)
        await store.init()
        return store

    async def test_create_and_get(self, store, t0):
        vid = await store.create_violation(_violation(t0))

        row = await store.get(vid)
        assert row.id == vid
        assert row.device_id == "d1"
        assert row.level == "danger"
        assert row.source == "machine"
        assert row.entered_at == t0
        assert row.exited_at is None
        assert row.duration_seconds is None

    async def test_close_once(self, store, t0):
        vid = await store.create_violation(_violation(t0))

        assert await store.close_violation(vid, t0 + timedelta(seconds=90), 90) is True
        # 이미 종료된 건은 다시 종료되지 않음
        assert await store.close_violation(vid, t0 + timedelta(seconds=120), 120) is False

        row = await store.get(vid)
        assert row.exited_at == t0 + timedelta(seconds=90)
        assert row.duration_seconds == 90

    async def test_close_unknown(self, store, t0):
        assert await store.close_violation("missing", t0, 0) is False

    async def test_get_unknown(self, store):
        assert await store.get("missing") is None

    async def test_list_open_violations(self, store, t0):
        first = await store.create_violation(_violation(t0, device_id="d1"))
        second = await store.create_violation(_violation(t0, device_id="d2", offset_sec=10))
        await store.close_violation(first, t0 + timedelta(seconds=30), 30)

        open_rows = await store.list_open_violations()
        assert [v.id for v in open_rows] == [second]

    async def test_list_violations_filters(self, store, t0):
        await store.create_violation(_violation(t0, level="danger"))
        await store.create_violation(_violation(t0, level="alert", offset_sec=60))
        await store.create_violation(_violation(t0, level="alert", offset_sec=120))

        assert len(await store.list_violations()) == 3
        alerts = await store.list_violations(level="alert")
        assert [v.entered_at for v in alerts] == [t0 + timedelta(seconds=120), t0 + timedelta(seconds=60)]
        ranged = await store.list_violations(start=t0 + timedelta(seconds=30), end=t0 + timedelta(seconds=90))
        assert len(ranged) == 1
        assert len(await store.list_violations(limit=2)) == 2

    async def test_summary(self, store, t0):
        await store.create_violation(_violation(t0, level="danger"))
        await store.create_violation(_violation(t0, level="alert", offset_sec=60))
        await store.create_violation(_violation(t0, level="alert", offset_sec=120))

        assert await store.summary() == (3, 1, 2)
        assert await store.summary(start=t0 + timedelta(seconds=30)) == (2, 0, 2)

    async def test_empty_summary(self, store):
        assert await store.summary() == (0, 0, 0)


class TestSQLiteZoneStore:
    """SQLite 영역 저장소 테스트"""

    @pytest.fixture
    async def store(self, temp_db_path):
        store = SQLiteZoneStore(temp_db_path)
        await store.init()
        return store

    async def test_save_and_list(self, store):
        machine = MachineZone(
            id=new_zone_id(), name="Press", shape="polygon",
            danger=PolygonGeometry(ring=((0.0, 0.0), (0.0, 1.0), (1.0, 1.0))),
            alert=CircleGeometry(center=(0.5, 0.5), radius_m=5000.0),
        )
        gas = GasSource(id=new_zone_id(), name="Tank", position=(32.2, -7.9))

        await store.save_zone(machine)
        await store.save_zone(gas)

        zones = {z.id: z for z in await store.list_zones()}
        assert zones[machine.id] == machine
        assert zones[gas.id] == gas
        assert zones[gas.id].source == "gas"

    async def test_save_overwrites(self, store):
        zone = GasSource(id="g1", name="Tank", position=(1.0, 1.0))
        await store.save_zone(zone)
        await store.save_zone(zone.model_copy(update={"name": "Renamed"}))

        zones = await store.list_zones()
        assert len(zones) == 1
        assert zones[0].name == "Renamed"

    async def test_delete(self, store):
        await store.save_zone(GasSource(id="g1", name="Tank", position=(1.0, 1.0)))

        assert await store.delete_zone("g1") is True
        assert await store.delete_zone("g1") is False
        assert await store.list_zones() == []

    def test_new_zone_id_is_unique(self):
        assert new_zone_id() != new_zone_id()


class TestSQLiteHistoryStore:
    """SQLite 디바이스 이력 저장소 테스트"""

    @pytest.fixture
    async def store(self, temp_db_path):
        store = SQLiteHistoryStore(temp_db_path)
        await store.init()
        return store

    async def test_stats(self, store, device_factory, t0):
        await store.log_device_history([
            device_factory("d1", 0.0, 0.0, ts=t0, battery=80),
            device_factory("d2", 0.0, 0.0, ts=t0, battery=51),
        ])
        await store.log_device_history([
            device_factory("d1", 0.0, 0.0, ts=t0 + timedelta(seconds=30), battery=79),
        ])

        unique, battery = await store.tracked_device_stats()
        assert unique == 2
        assert battery == 70

    async def test_stats_without_battery(self, store, device_factory, t0):
        await store.log_device_history([device_factory("d1", 0.0, 0.0, ts=t0)])
        assert await store.tracked_device_stats() == (1, 0)

    async def test_empty_stats(self, store):
        assert await store.tracked_device_stats() == (0, 0)

    async def test_list_history(self, store, device_factory, t0):
        await store.log_device_history([device_factory("d1", 1.0, 2.0, ts=t0, battery=50)])
        await store.log_device_history([device_factory("d1", 1.5, 2.5, ts=t0 + timedelta(seconds=30))])

        rows = await store.list_history(device_id="d1")
        assert [r["latitude"] for r in rows] == [1.5, 1.0]
        assert rows[1]["battery"] == 50

    async def test_empty_batch_is_ignored(self, store):
        await store.log_device_history([])
        assert await store.list_history() == []
