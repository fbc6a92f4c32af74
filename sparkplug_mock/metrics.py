"""Prometheus metrics for the simulator runtime."""
from __future__ import annotations

from prometheus_client import Counter, Gauge

PAYLOADS_PUBLISHED = Counter(
    "sparkplug_mock_payloads_published_total",
    "Payloads handed to the MQTT client, by payload shape",
    labelnames=("shape",),
)

PAYLOADS_DROPPED = Counter(
    "sparkplug_mock_payloads_dropped_total",
    "Payloads lost to encode or publish failures",
    labelnames=("reason",),
)

NODES_RUNNING = Gauge(
    "sparkplug_mock_nodes_running",
    "Edge node simulators currently ticking",
)
