"""
Metrics definitions for ZoneWatch.

This module defines Prometheus metrics for monitoring
the polling and violation tracking pipeline.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
cycles_total = Counter(
    "polling_cycles_total",
    "Number of completed polling cycles"
)

cycle_errors = Counter(
    "polling_cycle_errors_total",
    "Number of polling cycles aborted by an unexpected error"
)

positions_received = Counter(
    "positions_received_total",
    "Number of device position records received from the feed"
)

positions_rejected = Counter(
    "positions_rejected_total",
    "Number of position records dropped during normalization",
    ["reason"]
)

feed_failures = Counter(
    "feed_failures_total",
    "External feed call failures",
    ["feed"]
)

store_failures = Counter(
    "store_failures_total",
    "Violation store write failures",
    ["op"]
)

notify_failures = Counter(
    "notify_failures_total",
    "Notification dispatch failures"
)

violations_opened = Counter(
    "violations_opened_total",
    "Number of violations opened",
    ["level", "source"]
)

violations_closed = Counter(
    "violations_closed_total",
    "Number of violations closed",
    ["level"]
)

# 히스토그램 메트릭
cycle_seconds = Histogram(
    "polling_cycle_duration_seconds",
    "Time spent in one polling cycle",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0]
)

evaluate_seconds = Histogram(
    "containment_duration_seconds",
    "Time spent evaluating containment for all devices",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5]
)

# 게이지 메트릭
devices_tracked = Gauge(
    "devices_tracked",
    "Devices seen in the last cycle"
)

devices_in_danger = Gauge(
    "devices_in_danger",
    "Devices inside a danger zone in the last cycle"
)

devices_in_alert = Gauge(
    "devices_in_alert",
    "Devices inside an alert zone in the last cycle"
)

open_violations = Gauge(
    "open_violations",
    "Currently open violations held by the tracker"
)

gas_zones_active = Gauge(
    "gas_zones_active",
    "Gas sources with resolved wind geometry in the last cycle"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
