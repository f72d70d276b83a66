"""Metric sinks for BlobVault.

Backends report timers and counters through a :class:`MetricSink`. Keys are
tuples of name parts (e.g. ``("azure", "put")``); timer samples are in
milliseconds.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

Labels = dict[str, str]


@runtime_checkable
class MetricSink(Protocol):
    """Anything that accepts named samples and counters."""

    def add_sample(self, key: tuple[str, ...], value: float, labels: Labels | None = None) -> None:
        ...

    def incr_counter(self, key: tuple[str, ...], value: float = 1.0, labels: Labels | None = None) -> None:
        ...


class BlackholeSink:
    """Sink that drops everything; the default when metrics are not wired.

    Using a sink object instead of None lets instrumentation code stay clean
    without guards.
    """

    def add_sample(self, key, value, labels=None) -> None:
        pass

    def incr_counter(self, key, value=1.0, labels=None) -> None:
        pass


# Singleton - reuse same instance to avoid allocations
BLACKHOLE_SINK = BlackholeSink()


@dataclass
class MetricSample:
    """A single recorded sample."""

    key: tuple[str, ...]
    value: float
    labels: Labels = field(default_factory=dict)

    @property
    def name(self) -> str:
        return ".".join(self.key)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {"name": self.name, "value": self.value, "labels": dict(self.labels)}


class TelemetryCollector:
    """In-memory, thread-safe metric sink.

    Usage:
        collector = TelemetryCollector()
        backend = AzureBackend.from_config(conf, sink=collector)
        backend.put(Entry("a", b"1"))

        collector.timings("azure.put")  # -> [0.42]
    """

    def __init__(self, enabled: bool = True):
        """Initialize collector.

        Args:
            enabled: If False, samples and counters are dropped
        """
        self.enabled = enabled
        self.samples: list[MetricSample] = []
        self.counters: dict[str, float] = defaultdict(float)
        self._lock = threading.Lock()

    def add_sample(self, key: tuple[str, ...], value: float, labels: Labels | None = None) -> None:
        if not self.enabled:
            return
        sample = MetricSample(key=tuple(key), value=value, labels=dict(labels or {}))
        with self._lock:
            self.samples.append(sample)

    def incr_counter(self, key: tuple[str, ...], value: float = 1.0, labels: Labels | None = None) -> None:
        if not self.enabled:
            return
        with self._lock:
            self.counters[".".join(key)] += value

    def timings(self, name: str) -> list[float]:
        """All sample values recorded under a dotted name."""
        with self._lock:
            return [s.value for s in self.samples if s.name == name]

    def to_dict(self) -> dict[str, Any]:
        """Export everything as JSON-compatible dict."""
        with self._lock:
            return {
                "samples": [s.to_dict() for s in self.samples],
                "counters": dict(self.counters),
                "total_samples": len(self.samples),
            }


class ClusterMetricSink:
    """Wraps another sink and adds a ``cluster`` label to everything."""

    def __init__(self, cluster_name: str, sink: MetricSink):
        self.cluster_name = cluster_name
        self.sink = sink

    def _labels(self, labels: Labels | None) -> Labels:
        return {**(labels or {}), "cluster": self.cluster_name}

    def add_sample(self, key, value, labels=None) -> None:
        self.sink.add_sample(key, value, self._labels(labels))

    def incr_counter(self, key, value=1.0, labels=None) -> None:
        self.sink.incr_counter(key, value, self._labels(labels))


def measure_since(sink: MetricSink, key: tuple[str, ...], start: float, labels: Labels | None = None) -> None:
    """Record milliseconds elapsed since ``start`` (a ``time.perf_counter()`` value)."""
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    sink.add_sample(key, elapsed_ms, labels)
