"""
Log formatters for sync runs.

Records emitted during a synchronization carry the run's identity (table
and tenants) as ``extra`` fields. The JSON formatter groups those under
``sync`` so log shippers can index runs; the console formatter prints them
as a ``[table source->destination]`` label in front of the message.
"""

import json
import logging
import socket
import sys
import traceback
from datetime import UTC, datetime

# LogRecord attributes that are not user-supplied context
RESERVED_FIELDS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "asctime",
})

# Fields identifying one synchronization run
SYNC_FIELDS = ("table", "source_db", "destination_db", "strategy")

# Connection secrets must never reach a log sink
_SECRET_MARKERS = ("password", "secret", "token")
REDACTED = "***"


def _redact(key: str, value):
    if any(marker in key.lower() for marker in _SECRET_MARKERS):
        return REDACTED
    return value


def split_context(record: logging.LogRecord) -> tuple[dict, dict]:
    """
    Split a record's extra fields into run identity and other context.

    Returns:
        (sync, context): sync holds the SYNC_FIELDS present on the record,
        context every other extra field with secrets redacted
    """
    sync = {}
    context = {}
    for key, value in record.__dict__.items():
        if key in RESERVED_FIELDS or key.startswith("_"):
            continue
        if key in SYNC_FIELDS:
            sync[key] = value
        else:
            context[key] = _redact(key, value)
    return sync, context


class JSONFormatter(logging.Formatter):
    """
    One JSON document per record.

    Fields: level, logger, message, app, optional timestamp and hostname,
    ``location``, ``sync`` (run identity), ``context`` (other extras) and
    ``exception``.
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_hostname: bool = True,
        app_name: str = "datasync",
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_hostname = include_hostname
        self.app_name = app_name
        self.hostname = socket.gethostname() if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        document = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "app": self.app_name,
        }
        if self.include_timestamp:
            document["timestamp"] = datetime.fromtimestamp(record.created, UTC).isoformat()
        if self.hostname:
            document["hostname"] = self.hostname
        document["location"] = f"{record.module}:{record.funcName}:{record.lineno}"

        sync, context = split_context(record)
        if sync:
            document["sync"] = sync
        if context:
            document["context"] = context

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            document["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        return json.dumps(document, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console lines with colored levels.

    Example:
        2024-05-01 12:00:00 [INFO] src.datasync.service: [dbo.Orders acme->acme_dw] Fetched 3 source rows (source_rows=3)
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    @staticmethod
    def run_label(sync: dict) -> str:
        """``[table source->destination]`` for a record's run identity."""
        parts = []
        if "table" in sync:
            parts.append(str(sync["table"]))
        if "source_db" in sync or "destination_db" in sync:
            parts.append(f"{sync.get('source_db', '?')}->{sync.get('destination_db', '?')}")
        return f"[{' '.join(parts)}] " if parts else ""

    def formatMessage(self, record: logging.LogRecord) -> str:
        sync, context = split_context(record)
        message = record.message
        record.message = self.run_label(sync) + message
        try:
            formatted = super().formatMessage(record)
        finally:
            record.message = message
        if context:
            formatted += " (" + ", ".join(f"{key}={value}" for key, value in context.items()) + ")"
        return formatted

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # other handlers share the record
            record.levelname = levelname
