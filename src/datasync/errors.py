"""
Error taxonomy for the sync engine.

Driver failures (connectivity, constraint violations, timeouts) are not
wrapped: they surface as the driver's own exception types, listed per
driver in ``DatabaseDriver.error_types``.
"""


class DataSyncError(Exception):
    """Base exception for sync engine errors."""

    pass


class InvalidArgumentError(DataSyncError, ValueError):
    """Raised when a required argument is missing or malformed."""

    pass


class TenantNotFoundError(DataSyncError, LookupError):
    """Raised when a tenant code has no registered connection."""

    def __init__(self, tenant_code: str):
        super().__init__(f"Unknown tenant code: {tenant_code!r}")
        self.tenant_code = tenant_code
