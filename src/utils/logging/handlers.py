"""
Context-bound logger for sync runs.
"""

import logging


class ContextLogger:
    """
    Logger bound to the identity of one synchronization run

    Every record carries the bound fields plus the keyword arguments of the
    call as ``extra`` fields; None values are left out.

    Usage:
        log = ContextLogger.for_sync(__name__, "dbo.Orders", "acme", "acme_dw", "bulk")
        log.info("Fetched source rows", source_rows=1200)
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    @classmethod
    def for_sync(
        cls,
        name: str,
        table: str,
        source_db: str,
        destination_db: str,
        strategy: str | None = None,
    ) -> "ContextLogger":
        return cls(
            name,
            table=table,
            source_db=source_db,
            destination_db=destination_db,
            strategy=strategy,
        )

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {
            key: value
            for key, value in {**self.context, **kwargs}.items()
            if value is not None
        }
        # stacklevel 3 attributes the record to the caller of debug()/info()/...
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)
