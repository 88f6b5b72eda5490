"""
Metrics for table synchronization runs.

Tracks run outcomes, durations, diff sizes and rows written so that
sync jobs can be monitored and alerted on.
"""

import logging
import time

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    REGISTRY,
)

from .registry import get_or_create_metric

logger = logging.getLogger(__name__)


class SyncMetrics:
    """
    Metrics for table synchronization

    Safe to instantiate more than once against the same registry; existing
    collectors are reused.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize sync metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "datasync_runs_total",
                "Total number of table synchronization runs",
                ["table_name", "status"],
                registry=self.registry,
            ),
            "datasync_runs_total",
            self.registry,
        )

        self.duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "datasync_duration_seconds",
                "Duration of table synchronization runs in seconds",
                ["table_name"],
                buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800),
                registry=self.registry,
            ),
            "datasync_duration_seconds",
            self.registry,
        )

        self.rows_written_total = get_or_create_metric(
            lambda: Counter(
                "datasync_rows_written_total",
                "Total number of rows written to destination tables",
                ["table_name", "strategy"],
                registry=self.registry,
            ),
            "datasync_rows_written_total",
            self.registry,
        )

        self.diff_rows = get_or_create_metric(
            lambda: Gauge(
                "datasync_diff_rows",
                "Number of source rows missing at the destination in the last run",
                ["table_name"],
                registry=self.registry,
            ),
            "datasync_diff_rows",
            self.registry,
        )

        self.last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "datasync_last_run_timestamp",
                "Timestamp of last synchronization run",
                ["table_name"],
                registry=self.registry,
            ),
            "datasync_last_run_timestamp",
            self.registry,
        )

    def record_run(
        self,
        table_name: str,
        success: bool,
        duration: float,
        diff_rows: int | None = None,
        rows_written: int = 0,
        strategy: str | None = None,
    ) -> None:
        """
        Record a synchronization run

        Args:
            table_name: Schema-qualified table name
            success: Whether the run completed successfully
            duration: Duration in seconds
            diff_rows: Number of rows found missing at the destination
            rows_written: Rows written by the transfer step
            strategy: Transfer strategy ("bulk" or "row_by_row")
        """
        status = "success" if success else "failed"

        self.runs_total.labels(table_name=table_name, status=status).inc()
        self.duration_seconds.labels(table_name=table_name).observe(duration)
        self.last_run_timestamp.labels(table_name=table_name).set(time.time())

        if diff_rows is not None:
            self.diff_rows.labels(table_name=table_name).set(diff_rows)

        if rows_written and strategy:
            self.rows_written_total.labels(
                table_name=table_name, strategy=strategy
            ).inc(rows_written)

        logger.debug(
            f"Recorded sync run: table={table_name}, status={status}, "
            f"duration={duration:.2f}s, diff={diff_rows if diff_rows is not None else 'N/A'}, "
            f"written={rows_written}"
        )
