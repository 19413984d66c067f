"""Prometheus metrics mirrored onto OpenTelemetry instruments.

Prometheus is the scrape surface (``GET /metrics``); the OTel meter receives
the same measurements so an SDK reader can be attached without touching call
sites.
"""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SERVICE_NAME = "school-search"

_meter_holder: dict[str, Any] = {"meter": None, "provider": None}


def init_metrics(
    service_name: str = SERVICE_NAME,
    metric_readers: list[MetricReader] | None = None,
) -> MeterProvider:
    """Install the OTel meter provider once; later calls return the existing one."""
    provider = _meter_holder.get("provider")
    if isinstance(provider, MeterProvider):
        return provider

    resource = Resource.create({"service.name": service_name})
    provider = MeterProvider(resource=resource, metric_readers=metric_readers or [])
    otel_metrics.set_meter_provider(provider)
    _meter_holder["provider"] = provider
    _meter_holder["meter"] = otel_metrics.get_meter(__name__)
    return provider


def _get_meter():
    if _meter_holder.get("meter") is None:
        init_metrics()
    return _meter_holder["meter"]


class _BoundMetric:
    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self._bridge = bridge
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._bridge.inc(self._labels, amount)

    def observe(self, value: float) -> None:
        self._bridge.observe(self._labels, value)


class MetricBridge:
    """Write one measurement to a Prometheus metric and its OTel twin."""

    def __init__(
        self,
        prom_metric: Counter | Histogram,
        *,
        otel_name: str,
        otel_description: str,
        otel_kind: str,
    ) -> None:
        if otel_kind not in ("counter", "histogram"):
            raise ValueError(f"Unknown metric kind: {otel_kind}")
        self._prom_metric = prom_metric
        self.otel_name = otel_name
        self._otel_description = otel_description
        self._otel_kind = otel_kind
        self._otel_instrument = None

    def labels(self, **labels: str) -> _BoundMetric:
        return _BoundMetric(self, labels)

    def _instrument(self):
        if self._otel_instrument is None:
            meter = _get_meter()
            if self._otel_kind == "counter":
                self._otel_instrument = meter.create_counter(self.otel_name, description=self._otel_description)
            else:
                self._otel_instrument = meter.create_histogram(self.otel_name, description=self._otel_description)
        return self._otel_instrument

    def inc(self, labels: dict[str, str], amount: float = 1.0) -> None:
        self._prom_metric.labels(**labels).inc(amount)
        self._instrument().add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        self._prom_metric.labels(**labels).observe(value)
        self._instrument().record(value, labels)


# Counter names gain a ``_total`` suffix in the Prometheus exposition.
DIRECTORY_REQUESTS = MetricBridge(
    Counter(
        "schooldigger_requests",
        "Directory API calls by endpoint and outcome (hit, ok, http_error, transport_error, parse_error)",
        ["endpoint", "outcome"],
    ),
    otel_name="schooldigger_requests_total",
    otel_description="Directory API calls",
    otel_kind="counter",
)

SEARCH_REQUESTS = MetricBridge(
    Counter("school_search_requests", "School searches by outcome", ["outcome"]),
    otel_name="school_search_requests_total",
    otel_description="School searches",
    otel_kind="counter",
)

SEARCH_LATENCY = MetricBridge(
    Histogram(
        "school_search_latency_seconds",
        "Engine operation latency",
        ["operation"],
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    ),
    otel_name="school_search_latency_seconds",
    otel_description="Engine operation latency",
    otel_kind="histogram",
)

STRATEGY_FAILURES = MetricBridge(
    Counter("search_strategy_failures", "Strategies that ended with an error", ["strategy"]),
    otel_name="search_strategy_failures_total",
    otel_description="Failed search strategies",
    otel_kind="counter",
)

CACHE_EVENTS = MetricBridge(
    Counter("response_cache_events", "Response cache lookups", ["event"]),
    otel_name="response_cache_events_total",
    otel_description="Response cache lookups",
    otel_kind="counter",
)

DIRECTORY_UNAVAILABLE = MetricBridge(
    Counter(
        "directory_unavailable",
        "Searches that returned nothing because the directory could not be reached",
        ["reason"],
    ),
    otel_name="directory_unavailable_total",
    otel_description="Searches degraded by directory failures",
    otel_kind="counter",
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Generator[None, None, None]:
    """Observe the wall time of the enclosed block, including when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
