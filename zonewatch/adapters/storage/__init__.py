"""
Storage adapters for ZoneWatch hexagonal architecture.

This module contains SQLite-based stores for violations,
zones and device position history.
"""

from .sqlite_violations import SQLiteViolationStore
from .sqlite_zones import SQLiteZoneStore, new_zone_id
from .sqlite_history import SQLiteHistoryStore

__all__ = ["SQLiteViolationStore", "SQLiteZoneStore", "SQLiteHistoryStore", "new_zone_id"]
