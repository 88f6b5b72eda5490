"""
Structured logging for the sync engine

Sync runs log through a ContextLogger bound to the run's table and
tenants; the formatters render that identity as a ``sync`` object (JSON)
or a ``[table source->destination]`` label (console).

Usage:
    from src.utils.logging import ContextLogger, setup_logging

    # Once at process startup; unset options come from DATASYNC_LOG_* variables
    setup_logging(level="INFO", log_file="/var/log/datasync/app.log")

    log = ContextLogger(__name__, table="dbo.Orders", source_db="acme", destination_db="acme_dw")
    log.info("Fetched source rows", source_rows=42)
"""

from .config import setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
