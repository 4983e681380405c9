"""
Adapters for ZoneWatch hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import SQLiteViolationStore, SQLiteZoneStore, SQLiteHistoryStore
from .followmee.client import FollowMeeClient
from .weatherapi.client import WeatherApiClient
from .infobip.client import InfobipSmsClient

__all__ = [
    "SQLiteViolationStore",
    "SQLiteZoneStore",
    "SQLiteHistoryStore",
    "FollowMeeClient",
    "WeatherApiClient",
    "InfobipSmsClient",
]
