"""Observability: structured logging, trace context, metrics and spans."""

from school_search.observability.context import bind_context, get_trace_context, set_trace_context
from school_search.observability.logging import JsonFormatter, configure_logging
from school_search.observability.metrics import (
    CACHE_EVENTS,
    DIRECTORY_REQUESTS,
    DIRECTORY_UNAVAILABLE,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    STRATEGY_FAILURES,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from school_search.observability.tracing import TraceContextMiddleware, create_span, get_tracer, init_tracing


__all__ = [
    "CACHE_EVENTS",
    "DIRECTORY_REQUESTS",
    "DIRECTORY_UNAVAILABLE",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "STRATEGY_FAILURES",
    "JsonFormatter",
    "TraceContextMiddleware",
    "bind_context",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "track_latency",
]
