"""
Orchestrators for ZoneWatch.

This module contains the polling orchestrator that coordinates
the flow between ports, adapters and the core tracker.
"""
from .orchestrator import PollingOrchestrator

__all__ = ["PollingOrchestrator"]
