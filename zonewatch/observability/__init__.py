"""
Observability for ZoneWatch.

This module contains logging setup, Prometheus metrics and the
HTTP endpoints exposing health, status and analytics.
"""
