"""
Logging setup for datasync processes.

Options left unset fall back to the ``DATASYNC_LOG_LEVEL``,
``DATASYNC_LOG_FILE`` and ``DATASYNC_LOG_JSON`` environment variables, so a
scheduler can switch a deployment to JSON logs without changing the
command line.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

LEVEL_ENV = "DATASYNC_LOG_LEVEL"
FILE_ENV = "DATASYNC_LOG_FILE"
JSON_ENV = "DATASYNC_LOG_JSON"

# Chatty libraries used by the Vault client and the trace exporter
QUIET_LOGGERS = ("urllib3", "requests", "opentelemetry")

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("true", "1", "yes")


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool | None = None,
    app_name: str = "datasync",
    max_bytes: int = 100 * 1024 * 1024,  # 100MB
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger for a datasync process

    Replaces any handlers already installed, so calling it twice is safe.

    Args:
        level: Log level name (default: $DATASYNC_LOG_LEVEL, then INFO)
        log_file: Rotating log file (default: $DATASYNC_LOG_FILE, then none)
        console_output: Whether to log to stderr
        json_format: JSON documents instead of text (default: $DATASYNC_LOG_JSON)
        app_name: Application name stamped on JSON documents
        max_bytes: Log file size before rotation
        backup_count: Number of rotated log files to keep
    """
    level = level or os.getenv(LEVEL_ENV) or "INFO"
    log_file = log_file or os.getenv(FILE_ENV) or None
    if json_format is None:
        json_format = _env_flag(JSON_ENV)
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handlers = []
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            JSONFormatter(app_name=app_name) if json_format else ConsoleFormatter(use_colors=True)
        )
        handlers.append(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            JSONFormatter(app_name=app_name)
            if json_format
            else logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}"
    )
