"""
Metrics publisher for Prometheus HTTP server.

Starts and tracks the Prometheus HTTP server that exposes metrics on the
/metrics endpoint.
"""

import logging

from prometheus_client import CollectorRegistry, REGISTRY, start_http_server

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Publishes metrics to Prometheus

    Starts an HTTP server that exposes metrics on /metrics endpoint.
    """

    def __init__(
        self,
        port: int = 9091,
        registry: CollectorRegistry | None = None,
    ):
        """
        Initialize metrics publisher

        Args:
            port: Port to expose metrics on (default: 9091)
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            if "Address already in use" in str(e):
                logger.error(f"Port {self.port} already in use, metrics server cannot start")
                raise RuntimeError(
                    f"Metrics server port {self.port} is already in use. "
                    f"Stop the conflicting process or use a different port."
                ) from e
            raise

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")
