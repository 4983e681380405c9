"""
Port interfaces for ZoneWatch hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .positions import PositionFeedPort
from .weather import WeatherPort
from .violations import ViolationStorePort
from .notify import NotificationPort
from .zones import ZoneStorePort
from .history import HistoryStorePort

__all__ = [
    "PositionFeedPort",
    "WeatherPort",
    "ViolationStorePort",
    "NotificationPort",
    "ZoneStorePort",
    "HistoryStorePort",
]
