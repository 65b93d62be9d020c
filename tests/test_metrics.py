"""
test_metrics.py - Tests for the metrics registry and structured logging.
"""

import json
import logging

import pytest

from tinyrdbms.metrics import JSONFormatter, MetricsRegistry, get_registry


@pytest.fixture
def registry():
    return MetricsRegistry(prefix="test")


class TestCollectors:
    def test_counter_per_label_combination(self, registry):
        counter = registry.counter("hits", "Hits", labels=["kind"])
        counter.inc(kind="a")
        counter.inc(2, kind="a")
        counter.inc(kind="b")
        assert counter.get(kind="a") == 3
        assert counter.get(kind="b") == 1
        assert counter.get(kind="c") == 0

    def test_counter_rejects_decrement_and_unknown_labels(self, registry):
        counter = registry.counter("hits", "Hits", labels=["kind"])
        with pytest.raises(ValueError):
            counter.inc(-1, kind="a")
        with pytest.raises(ValueError):
            counter.inc(colour="red")

    def test_registry_returns_same_collector(self, registry):
        assert registry.counter("hits", "Hits") is registry.counter("hits", "Hits")
        with pytest.raises(ValueError):
            registry.histogram("hits", "Hits")

    def test_histogram_time_observes_even_on_error(self, registry):
        latency = registry.histogram("latency", "Latency", labels=["kind"])
        with latency.time(kind="x"):
            pass
        with pytest.raises(RuntimeError):
            with latency.time(kind="x"):
                raise RuntimeError("boom")
        assert latency.count(kind="x") == 2
        assert latency.count(kind="y") == 0


class TestExport:
    def test_prometheus_text(self, registry):
        registry.counter("hits", "Total hits", labels=["kind"]).inc(kind="a")
        latency = registry.histogram("latency", "Latency", labels=["kind"], buckets=(0.1, 1.0))
        latency.observe(0.5, kind="a")

        text = registry.export_prometheus()
        lines = text.splitlines()
        assert "# HELP test_hits Total hits" in lines
        assert "# TYPE test_hits counter" in lines
        assert 'test_hits{kind="a"} 1' in lines
        assert "# TYPE test_latency histogram" in lines
        assert 'test_latency_bucket{kind="a",le="0.1"} 0' in lines
        assert 'test_latency_bucket{kind="a",le="1"} 1' in lines
        assert 'test_latency_bucket{kind="a",le="+Inf"} 1' in lines
        assert 'test_latency_sum{kind="a"} 0.5' in lines
        assert 'test_latency_count{kind="a"} 1' in lines

    def test_prometheus_escapes_label_values(self, registry):
        registry.counter("hits", "Hits", labels=["kind"]).inc(kind='say "hi"')
        assert 'test_hits{kind="say \\"hi\\""} 1' in registry.export_prometheus()

    def test_empty_registry(self, registry):
        assert registry.export_prometheus() == ""
        assert registry.export_json()["metrics"] == []

    def test_json_export(self, registry):
        registry.counter("hits", "Hits", labels=["kind"]).inc(kind="a")
        exported = registry.export_json()
        assert exported["exported_at"] > 0
        (metric,) = exported["metrics"]
        assert metric["name"] == "test_hits"
        assert metric["type"] == "counter"
        assert metric["samples"] == [{"name": "test_hits", "labels": {"kind": "a"}, "value": 1}]
        json.dumps(exported)

    def test_interpreter_metrics_are_exported(self, products):
        products.execute("SELECT * FROM products")
        registry = get_registry()
        text = registry.export_prometheus()
        assert 'tinyrdbms_statements_total{kind="SELECT",status="ok"}' in text
        assert 'tinyrdbms_statement_latency_seconds_count{kind="SELECT"}' in text
        names = {m["name"] for m in registry.export_json()["metrics"]}
        assert names == {"tinyrdbms_statements_total", "tinyrdbms_statement_latency_seconds"}


class TestJSONFormatter:
    def test_extra_fields_carried(self):
        record = logging.LogRecord(
            "tinyrdbms.engine", logging.WARNING, __file__, 1, "Statement rejected: %s", ("nope",), None
        )
        record.statement_kind = "SELECT"
        payload = json.loads(JSONFormatter().format(record))
        assert payload["message"] == "Statement rejected: nope"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "tinyrdbms.engine"
        assert payload["statement_kind"] == "SELECT"
