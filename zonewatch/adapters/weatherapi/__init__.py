"""
Weather feed adapter for ZoneWatch.

This module provides the implementation of WeatherPort
backed by the WeatherAPI.com current conditions endpoint.
"""

from .client import WeatherApiClient

__all__ = ["WeatherApiClient"]
