"""
OpenTelemetry provider setup for datasync processes.

Spans are exported over OTLP/gRPC when an endpoint is configured
(``OTLP_ENDPOINT``) and to stdout when ``DATASYNC_TRACE_CONSOLE`` is true.
Without either, spans are still created so trace context propagates, but
nothing leaves the process. ``DATASYNC_TRACE_SAMPLING`` sets the ratio of
sync runs that are sampled; child spans follow their parent's decision.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_NAMESPACE, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "datasync"

_provider: TracerProvider | None = None


def _sampling_rate(sampling_rate: float | None) -> float:
    if sampling_rate is None:
        sampling_rate = float(os.getenv("DATASYNC_TRACE_SAMPLING", "1.0"))
    if not 0.0 <= sampling_rate <= 1.0:
        raise ValueError(f"Sampling rate must be between 0.0 and 1.0, got {sampling_rate}")
    return sampling_rate


def _exporters(otlp_endpoint: str | None, console_export: bool) -> dict[str, SpanExporter]:
    exporters = {}
    if otlp_endpoint:
        exporters["otlp"] = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
    if console_export:
        exporters["console"] = ConsoleSpanExporter()
    return exporters


def initialize_tracing(
    service_name: str = "datasync",
    otlp_endpoint: str | None = None,
    console_export: bool | None = None,
    sampling_rate: float | None = None,
) -> trace.Tracer:
    """
    Install the datasync tracer provider.

    Calling it again returns the tracer of the installed provider.

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: OTLP collector endpoint (default: $OTLP_ENDPOINT)
        console_export: Also print spans (default: $DATASYNC_TRACE_CONSOLE)
        sampling_rate: Ratio of sampled runs (default: $DATASYNC_TRACE_SAMPLING, then 1.0)

    Returns:
        Tracer for datasync spans

    Raises:
        ValueError: If the sampling rate is outside 0.0-1.0
    """
    global _provider

    if _provider is not None:
        return _provider.get_tracer(INSTRUMENTATION_NAME)

    rate = _sampling_rate(sampling_rate)
    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTLP_ENDPOINT")
    if console_export is None:
        console_export = os.getenv("DATASYNC_TRACE_CONSOLE", "").lower() == "true"

    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, SERVICE_NAMESPACE: "datasync"}),
        sampler=ParentBased(TraceIdRatioBased(rate)),
    )
    exporters = _exporters(otlp_endpoint, console_export)
    for exporter in exporters.values():
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(
        f"Tracing initialized: {service_name} "
        f"(exporters: {', '.join(exporters) or 'none'}, sampling: {rate})"
    )
    return provider.get_tracer(INSTRUMENTATION_NAME)


def get_tracer() -> trace.Tracer:
    """
    Tracer for datasync spans.

    Before initialize_tracing this is the globally installed provider's
    tracer (a no-op tracer unless the host application installed one).
    """
    if _provider is not None:
        return _provider.get_tracer(INSTRUMENTATION_NAME)
    return trace.get_tracer(INSTRUMENTATION_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the datasync provider down."""
    global _provider

    if _provider is None:
        return
    provider, _provider = _provider, None
    provider.shutdown()
    logger.info("Tracing shutdown complete")
