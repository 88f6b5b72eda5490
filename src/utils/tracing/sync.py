"""
Tracing for table synchronization runs.

A run produces one ``sync_table`` span with a child span per phase. Every
span carries ``component=datasync``; phase spans add ``sync.phase`` and the
run span records the tenants, the strategy and the final row counts.
"""

from contextlib import contextmanager
from enum import Enum

from opentelemetry import trace

from .context import trace_operation

COMPONENT = "datasync"


class SyncPhase(str, Enum):
    """Phases of a synchronization, in execution order."""

    RECONCILE_COLUMNS = "reconcile_columns"
    RESOLVE_KEYS = "resolve_key_columns"
    FETCH_SOURCE = "fetch_source_rows"
    FETCH_DESTINATION_KEYS = "fetch_destination_keys"
    DIFF = "diff_rows"
    TRANSFER = "transfer_rows"


# Phases that wait on a database round trip
_CLIENT_PHASES = frozenset({
    SyncPhase.FETCH_SOURCE,
    SyncPhase.FETCH_DESTINATION_KEYS,
    SyncPhase.TRANSFER,
})

RESULT_COUNTS = ("source_rows", "destination_keys", "diff_rows", "rows_written")


@contextmanager
def trace_sync_phase(phase: SyncPhase, **attributes):
    """
    Span for one phase of a synchronization.

    Example:
        >>> with trace_sync_phase(SyncPhase.DIFF, source_rows=len(rows)):
        ...     missing = diff_rows(rows, keys, ["id"])
    """
    kind = trace.SpanKind.CLIENT if phase in _CLIENT_PHASES else trace.SpanKind.INTERNAL
    with trace_operation(
        phase.value,
        kind=kind,
        component=COMPONENT,
        **{"sync.phase": phase.value},
        **attributes,
    ) as span:
        yield span


class SyncSpan:
    """
    Span of one table synchronization.

    Example:
        >>> with SyncSpan("dbo.Orders", "acme", "acme_dw", "bulk") as span:
        ...     result = run()
        ...     span.record_result(result)
    """

    def __init__(self, table: str, source_db: str, destination_db: str, strategy: str):
        self.table = table
        self.source_db = source_db
        self.destination_db = destination_db
        self.strategy = strategy
        self.span = None
        self._context = None

    def __enter__(self):
        self._context = trace_operation(
            "sync_table",
            component=COMPONENT,
            table=self.table,
            source_db=self.source_db,
            destination_db=self.destination_db,
            strategy=self.strategy,
        )
        self.span = self._context.__enter__()
        self.span.add_event("sync_started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.span.add_event("sync_completed")
        else:
            self.span.add_event("sync_failed", attributes={"error": str(exc_val)})
        return self._context.__exit__(exc_type, exc_val, exc_tb)

    def record_result(self, result) -> None:
        """Copy the row counts of a SyncResult onto the span."""
        for name in RESULT_COUNTS:
            self.span.set_attribute(f"sync.{name}", getattr(result, name))
