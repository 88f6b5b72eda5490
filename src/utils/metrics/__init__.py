"""
Custom metrics publishing to Prometheus

Usage:
    from src.utils.metrics import MetricsPublisher, SyncMetrics

    publisher = MetricsPublisher(port=9091)
    publisher.start()

    metrics = SyncMetrics()
    metrics.record_run("dbo.Orders", success=True, duration=4.2, diff_rows=10, rows_written=10, strategy="bulk")
"""

from .publisher import MetricsPublisher
from .registry import get_or_create_metric
from .sync import SyncMetrics

__all__ = [
    "MetricsPublisher",
    "SyncMetrics",
    "get_or_create_metric",
]
