"""OpenTelemetry span helpers.

Spans are created from a tracer handed in by the caller (normally the one
owned by the application's TelemetryProviders), so nothing here depends on a
process-global tracer provider.
"""

from collections.abc import Generator, MutableMapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

# W3C Trace Context propagator
_propagator = TraceContextTextMapPropagator()


def inject_context(headers: MutableMapping[str, str]) -> None:
    """Inject the current trace context as W3C traceparent/tracestate headers."""
    _propagator.inject(carrier=headers)


def get_current_trace_id() -> str | None:
    """Get the current trace ID as a hex string.

    Returns:
        Trace ID or None if not in a trace
    """
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    return None


def get_current_span_id() -> str | None:
    """Get the current span ID as a hex string."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.span_id, "016x")
    return None


@contextmanager
def create_span(
    tracer: Tracer,
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a new span as a context manager.

    The span is ended when the block exits. An exception escaping the block
    is recorded on the span and marks it as failed before propagating.

    Args:
        tracer: Tracer to create the span with
        name: Span name
        kind: Span kind (INTERNAL, SERVER, CLIENT, etc.)
        attributes: Initial span attributes

    Yields:
        The created span
    """
    with tracer.start_as_current_span(
        name,
        kind=kind,
        attributes=attributes or {},
    ) as span:
        yield span


def record_exception(span: Span, exception: BaseException, escaped: bool = True) -> None:
    """Record an exception on a span and mark it as failed."""
    span.record_exception(exception, escaped=escaped)
    span.set_status(Status(StatusCode.ERROR, str(exception)))
