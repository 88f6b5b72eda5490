"""
Distributed tracing using OpenTelemetry.

Instruments:
- Table synchronization runs and their phases (sync.py)
- Database connections opened by the drivers
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .sync import SyncPhase, SyncSpan, trace_sync_phase
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
    "SyncPhase",
    "SyncSpan",
    "trace_sync_phase",
]
