"""
FollowMee position feed adapter for ZoneWatch.

This module provides the implementation of PositionFeedPort
backed by the FollowMee device-list API.
"""

from .client import FollowMeeClient

__all__ = ["FollowMeeClient"]
