"""Prometheus-backed metrics.

Every collector owns its own ``CollectorRegistry``. Dotted names such as
``agent.analyzer.duration`` become ``insight_agent_analyzer_duration_seconds``;
the label set of a metric is fixed by the tags of its first use. A bounded list
of recent data points is kept alongside for ``/health``.
"""

from __future__ import annotations

import logging
import re
import time
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MAX_METRICS = 1000
NAMESPACE = "insight"

# Agent and flow stages wait on the LLM, so the tail goes well past 10 s.
DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")


class Metric(BaseModel):
    name: str
    value: float
    timestamp: datetime = Field(default_factory=datetime.now)
    tags: dict[str, str] = {}


def prometheus_name(name: str) -> str:
    return f"{NAMESPACE}_{_INVALID_CHARS.sub('_', name)}"


class MetricsCollector:
    """Counters, histograms and gauges in a private registry, plus recent points."""

    def __init__(self, max_metrics: int = MAX_METRICS) -> None:
        self._recent: deque[Metric] = deque(maxlen=max_metrics)
        self._reset_registry()

    def _reset_registry(self) -> None:
        self.registry = CollectorRegistry()
        self._counters: dict[str, tuple[Counter, tuple[str, ...]]] = {}
        self._histograms: dict[str, tuple[Histogram, tuple[str, ...]]] = {}
        self._gauges: dict[str, tuple[Gauge, tuple[str, ...]]] = {}

    # ------------------------------------------------------------------
    # Metric families, created on first use
    # ------------------------------------------------------------------

    def _family(self, kind: type, cache: dict, name: str, tags: dict[str, str], **kwargs):
        """The child of metric ``name`` for these tags; unknown tags are not labels."""
        if name not in cache:
            suffix = "_seconds" if kind is Histogram else ""
            labels = tuple(sorted(tags))
            family = kind(
                prometheus_name(name) + suffix,
                f"{name} ({kind.__name__.lower()})",
                labels,
                registry=self.registry,
                **kwargs,
            )
            cache[name] = (family, labels)
        family, labels = cache[name]
        if not labels:
            return family
        return family.labels(*(tags.get(label, "") for label in labels))

    def _remember(self, name: str, value: float, tags: dict[str, str]) -> None:
        self._recent.append(Metric(name=name, value=value, tags=tags))
        logger.debug("metric %s=%s %s", name, value, tags or "")

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Set a gauge to ``value``."""
        tags = tags or {}
        self._family(Gauge, self._gauges, name, tags).set(value)
        self._remember(name, value, tags)

    def increment(self, name: str, tags: dict[str, str] | None = None) -> None:
        tags = tags or {}
        self._family(Counter, self._counters, name, tags).inc()
        self._remember(name, 1, tags)

    def timing(self, name: str, duration_ms: float, tags: dict[str, str] | None = None) -> None:
        tags = tags or {}
        histogram = self._family(Histogram, self._histograms, name, tags, buckets=DURATION_BUCKETS)
        histogram.observe(duration_ms / 1000)
        self._remember(name, duration_ms, {**tags, "unit": "ms"})

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_metrics(self) -> list[Metric]:
        return list(self._recent)

    def get_metrics_by_name(self, name: str) -> list[Metric]:
        return [m for m in self._recent if m.name == name]

    def _sample_total(self, metric_name: str) -> float:
        total = 0.0
        for family in self.registry.collect():
            for sample in family.samples:
                if sample.name == metric_name:
                    total += sample.value
        return total

    def count(self, name: str) -> float:
        """Total of a counter across all label values."""
        if name not in self._counters:
            return 0.0
        return self._sample_total(prometheus_name(name) + "_total")

    def get_average(self, name: str) -> float:
        """Mean duration in ms of every timing recorded under ``name``."""
        if name not in self._histograms:
            return 0.0
        base = prometheus_name(name) + "_seconds"
        observations = self._sample_total(base + "_count")
        if not observations:
            return 0.0
        return self._sample_total(base + "_sum") / observations * 1000

    def exposition(self) -> bytes:
        """The registry in the Prometheus text format."""
        return generate_latest(self.registry)

    def clear(self) -> None:
        self._recent.clear()
        self._reset_registry()

    def __len__(self) -> int:
        return len(self._recent)


@asynccontextmanager
async def track_timing(
    collector: MetricsCollector,
    name: str,
    tags: dict[str, str] | None = None,
) -> AsyncIterator[None]:
    """Record how long the block took, tagged ``success=true|false``."""
    start = time.perf_counter()
    success = "true"
    try:
        yield
    except BaseException:
        success = "false"
        raise
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        collector.timing(name, elapsed_ms, {**(tags or {}), "success": success})
