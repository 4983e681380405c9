"""
Core domain models and pure functions for ZoneWatch.

This module contains the domain models, the zone evaluation logic
and the violation tracker, independent of external I/O adapters.
"""

from .models import (
    CircleGeometry,
    ContainmentResult,
    Device,
    GasSource,
    GasZone,
    MachineZone,
    PolygonGeometry,
    Position,
    Violation,
    ViolatingZone,
    Wind,
)
from .normalize import to_device
from .plume import calculate_gas_zone
from .containment import evaluate_containment
from .tracker import ViolationTracker

__all__ = [
    "CircleGeometry", "ContainmentResult", "Device", "GasSource", "GasZone",
    "MachineZone", "PolygonGeometry", "Position", "Violation", "ViolatingZone",
    "Wind", "to_device", "calculate_gas_zone", "evaluate_containment",
    "ViolationTracker",
]
