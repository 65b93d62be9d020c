"""
metrics.py - Observability for the interpreter.

Provides:
- Prometheus-style statement counters and latency histograms
- Structured JSON logging
"""

import json
import logging
import math
import os
import threading
import time
from contextlib import contextmanager
from typing import Dict, List, Tuple

# (sample name, labels, value)
Sample = Tuple[str, Dict[str, str], float]


# =============================================================================
# Collectors
# =============================================================================

class _Metric:
    metric_type = "untyped"

    def __init__(self, name: str, help_text: str, labels: List[str] = None):
        self.name = name
        self.help = help_text
        self.labels = labels or []
        self._lock = threading.Lock()

    def _label_key(self, label_values: dict) -> tuple:
        unknown = set(label_values) - set(self.labels)
        if unknown:
            raise ValueError(f"Unknown labels for {self.name}: {sorted(unknown)}")
        return tuple(str(label_values.get(l, "")) for l in self.labels)

    def _labels(self, key: tuple) -> Dict[str, str]:
        return dict(zip(self.labels, key))

    def samples(self) -> List[Sample]:
        raise NotImplementedError


class Counter(_Metric):
    """Monotonic count per label combination."""

    metric_type = "counter"

    def __init__(self, name: str, help_text: str, labels: List[str] = None):
        super().__init__(name, help_text, labels)
        self._values: Dict[tuple, float] = {}

    def inc(self, value: float = 1, **label_values) -> None:
        if value < 0:
            raise ValueError("Counters only go up")
        key = self._label_key(label_values)
        with self._lock:
            self._values[key] = self._values.get(key, 0) + value

    def get(self, **label_values) -> float:
        return self._values.get(self._label_key(label_values), 0)

    def samples(self) -> List[Sample]:
        with self._lock:
            return [(self.name, self._labels(k), v) for k, v in self._values.items()]


class Histogram(_Metric):
    """Cumulative-bucket histogram per label combination."""

    metric_type = "histogram"

    DEFAULT_BUCKETS = (0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, math.inf)

    def __init__(
        self,
        name: str,
        help_text: str,
        labels: List[str] = None,
        buckets: tuple = None
    ):
        super().__init__(name, help_text, labels)
        bounds = sorted(buckets or self.DEFAULT_BUCKETS)
        if bounds[-1] != math.inf:
            bounds.append(math.inf)
        self.buckets = tuple(bounds)
        # key -> [count, sum, per-bucket cumulative counts]
        self._series: Dict[tuple, list] = {}

    def observe(self, value: float, **label_values) -> None:
        key = self._label_key(label_values)
        with self._lock:
            series = self._series.setdefault(key, [0, 0.0, [0] * len(self.buckets)])
            series[0] += 1
            series[1] += value
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    series[2][i] += 1

    @contextmanager
    def time(self, **label_values):
        """Observe the wall time of the enclosed block, even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.observe(time.perf_counter() - start, **label_values)

    def count(self, **label_values) -> int:
        series = self._series.get(self._label_key(label_values))
        return series[0] if series else 0

    def samples(self) -> List[Sample]:
        out: List[Sample] = []
        with self._lock:
            for key, (count, total, cumulative) in self._series.items():
                labels = self._labels(key)
                for bound, hits in zip(self.buckets, cumulative):
                    out.append((f"{self.name}_bucket", {**labels, "le": _format_bound(bound)}, hits))
                out.append((f"{self.name}_sum", labels, total))
                out.append((f"{self.name}_count", labels, count))
        return out


def _format_bound(bound: float) -> str:
    return "+Inf" if bound == math.inf else f"{bound:g}"


# =============================================================================
# Registry
# =============================================================================

class MetricsRegistry:
    """Named collectors sharing one prefix."""

    def __init__(self, prefix: str = "tinyrdbms"):
        self.prefix = prefix
        self._metrics: Dict[str, _Metric] = {}
        self._lock = threading.Lock()

    def _register(self, cls, name: str, *args) -> _Metric:
        full_name = f"{self.prefix}_{name}"
        with self._lock:
            metric = self._metrics.get(full_name)
            if metric is None:
                metric = self._metrics[full_name] = cls(full_name, *args)
            elif not isinstance(metric, cls):
                raise ValueError(f"{full_name} is already registered as a {metric.metric_type}")
            return metric

    def counter(self, name: str, help_text: str, labels: List[str] = None) -> Counter:
        return self._register(Counter, name, help_text, labels)

    def histogram(
        self,
        name: str,
        help_text: str,
        labels: List[str] = None,
        buckets: tuple = None
    ) -> Histogram:
        return self._register(Histogram, name, help_text, labels, buckets)

    def export_prometheus(self) -> str:
        """Render every collector in the Prometheus text exposition format."""
        lines = []
        with self._lock:
            metrics = list(self._metrics.values())
        for metric in metrics:
            lines.append(f"# HELP {metric.name} {metric.help}")
            lines.append(f"# TYPE {metric.name} {metric.metric_type}")
            for name, labels, value in metric.samples():
                if labels:
                    label_str = ",".join(f'{k}="{_escape_label(v)}"' for k, v in labels.items())
                    lines.append(f"{name}{{{label_str}}} {value}")
                else:
                    lines.append(f"{name} {value}")
        return "\n".join(lines) + "\n" if lines else ""

    def export_json(self) -> dict:
        with self._lock:
            metrics = list(self._metrics.values())
        return {
            "metrics": [
                {
                    "name": metric.name,
                    "type": metric.metric_type,
                    "help": metric.help,
                    "samples": [
                        {"name": name, "labels": labels, "value": value}
                        for name, labels, value in metric.samples()
                    ],
                }
                for metric in metrics
            ],
            "exported_at": time.time(),
        }


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


# =============================================================================
# Interpreter Metrics
# =============================================================================

_registry = MetricsRegistry()

statements_total = _registry.counter(
    "statements_total",
    "Statements handled, by kind and outcome",
    labels=["kind", "status"]
)

statement_latency_seconds = _registry.histogram(
    "statement_latency_seconds",
    "Time spent executing parsed statements",
    labels=["kind"]
)


def get_registry() -> MetricsRegistry:
    """Get the process-wide registry holding the interpreter metrics."""
    return _registry


# =============================================================================
# Structured Logging
# =============================================================================

_RESERVED_RECORD_KEYS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName'
})


class JSONFormatter(logging.Formatter):
    """One JSON object per record; extra= fields are carried through."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra
        self._hostname = os.environ.get("HOSTNAME", "unknown")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self._hostname
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in record.__dict__.items():
                if key not in _RESERVED_RECORD_KEYS:
                    log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str = None
) -> None:
    """
    Configure logging for the interpreter and CLI.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting
        log_file: Optional log file path
    """
    handlers = []

    console = logging.StreamHandler()
    if json_format:
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    handlers.append(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True,
    )
