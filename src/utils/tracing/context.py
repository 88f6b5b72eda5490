"""
Span helpers.

Attribute values are kept as native OpenTelemetry types (str, bool, int,
float); anything else is recorded as its ``str()``. None values are
skipped, so optional arguments can be passed through unconditionally.
"""

from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .tracer import get_tracer


def _attributes(attributes: dict) -> dict:
    return {
        key: value if isinstance(value, (str, bool, int, float)) else str(value)
        for key, value in attributes.items()
        if value is not None
    }


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run the block inside a new span.

    Errors mark the span with ``error.type`` and an ERROR status, are
    recorded as exception events and re-raised.

    Example:
        >>> with trace_operation("fetch_source_rows", kind=trace.SpanKind.CLIENT, table="dbo.Orders"):
        ...     rows = driver.query(conn, statement)
    """
    with get_tracer().start_as_current_span(
        operation_name,
        kind=kind,
        attributes=_attributes(attributes),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("error.type", type(e).__name__)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes) -> None:
    """Set attributes on the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(_attributes(attributes))


def add_span_event(name: str, **attributes) -> None:
    """Add an event to the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=_attributes(attributes))
