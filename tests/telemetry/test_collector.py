"""Tests for metric sinks."""

import threading
import time

from blobvault.telemetry import (
    BLACKHOLE_SINK,
    BlackholeSink,
    ClusterMetricSink,
    MetricSample,
    MetricSink,
    TelemetryCollector,
    measure_since,
)


class TestBlackholeSink:
    def test_implements_sink(self):
        assert isinstance(BLACKHOLE_SINK, MetricSink)
        assert isinstance(BLACKHOLE_SINK, BlackholeSink)

    def test_drops_everything(self):
        BLACKHOLE_SINK.add_sample(("azure", "put"), 1.0)
        BLACKHOLE_SINK.incr_counter(("azure", "put", "error"))


class TestMetricSample:
    def test_dotted_name(self):
        sample = MetricSample(key=("azure", "get"), value=2.5, labels={"cluster": "c1"})

        assert sample.name == "azure.get"
        assert sample.to_dict() == {"name": "azure.get", "value": 2.5, "labels": {"cluster": "c1"}}


class TestTelemetryCollector:
    def test_records_samples_and_counters(self):
        collector = TelemetryCollector()

        collector.add_sample(("azure", "put"), 1.5)
        collector.add_sample(("azure", "put"), 2.5)
        collector.incr_counter(("azure", "put", "error"))
        collector.incr_counter(("azure", "put", "error"), 2)

        assert collector.timings("azure.put") == [1.5, 2.5]
        assert collector.counters["azure.put.error"] == 3

        data = collector.to_dict()
        assert data["total_samples"] == 2
        assert data["counters"] == {"azure.put.error": 3}

    def test_disabled_drops(self):
        collector = TelemetryCollector(enabled=False)

        collector.add_sample(("azure", "get"), 1.0)
        collector.incr_counter(("azure", "get", "error"))

        assert collector.samples == []
        assert dict(collector.counters) == {}

    def test_thread_safe(self):
        collector = TelemetryCollector()

        def worker():
            for _ in range(100):
                collector.add_sample(("azure", "list"), 1.0)
                collector.incr_counter(("azure", "list", "error"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collector.timings("azure.list")) == 800
        assert collector.counters["azure.list.error"] == 800


def test_measure_since_records_milliseconds():
    collector = TelemetryCollector()
    start = time.perf_counter()
    time.sleep(0.01)

    measure_since(collector, ("azure", "get"), start)

    (elapsed,) = collector.timings("azure.get")
    assert elapsed >= 10.0  # At least 10ms
    assert elapsed < 1000.0


def test_cluster_sink_adds_label():
    collector = TelemetryCollector()
    sink = ClusterMetricSink("vault-east", collector)

    sink.add_sample(("azure", "put"), 1.0, {"op": "put"})
    sink.incr_counter(("azure", "put", "error"))

    assert collector.samples[0].labels == {"op": "put", "cluster": "vault-east"}
    assert collector.counters["azure.put.error"] == 1
