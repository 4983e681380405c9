"""
SMS notification adapter for ZoneWatch.

This module provides the implementation of NotificationPort
backed by the Infobip SMS API.
"""

from .client import InfobipSmsClient, format_alert_text, clean_phone_number

__all__ = ["InfobipSmsClient", "format_alert_text", "clean_phone_number"]
