"""
ZoneWatch: device tracking and zone violation monitoring.
"""

__version__ = "0.1.0"
