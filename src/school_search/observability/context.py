"""Per-request trace context carried across ``await`` points.

Each HTTP request (or each engine call outside a request) gets a trace id;
spans opened with ``create_span`` refresh the span id. Log records pick both
up through ``JsonFormatter``.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


_trace_context: ContextVar[dict[str, Any] | None] = ContextVar("school_search_trace_context", default=None)


def new_trace_id() -> str:
    """32 hex chars, same width as an OpenTelemetry trace id."""
    return uuid4().hex


def new_span_id() -> str:
    """16 hex chars, same width as an OpenTelemetry span id."""
    return uuid4().hex[:16]


def get_trace_context() -> dict[str, Any]:
    """Current context, creating a fresh trace id the first time it is read."""
    ctx = _trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {"trace_id": new_trace_id(), "span_id": new_span_id()}
        _trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: Any) -> None:
    _trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def bind_context(**fields: Any) -> None:
    """Attach extra fields (e.g. ``route``) to the current trace context."""
    _trace_context.set({**get_trace_context(), **fields})


def update_span_id(span_id: str) -> None:
    _trace_context.set({**(_trace_context.get() or {}), "span_id": span_id})


def clear_trace_context() -> None:
    _trace_context.set(None)
