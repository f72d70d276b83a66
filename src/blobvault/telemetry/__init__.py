"""Telemetry module for BlobVault.

Provides metric sinks for operation timings and error counters.
"""

from blobvault.telemetry.collector import (
    BLACKHOLE_SINK,
    BlackholeSink,
    ClusterMetricSink,
    MetricSample,
    MetricSink,
    TelemetryCollector,
    measure_since,
)

__all__ = [
    "BLACKHOLE_SINK",
    "BlackholeSink",
    "ClusterMetricSink",
    "MetricSample",
    "MetricSink",
    "TelemetryCollector",
    "measure_since",
]
