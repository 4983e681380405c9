"""
Common utilities for ZoneWatch.

This module contains geodesy helpers and retry utilities shared
by the core and the adapters.
"""
