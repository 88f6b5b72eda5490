"""
One-way table synchronization for multi-tenant SQL stores.

Copies the rows of a source table that are missing from the same table in
another tenant database, tolerating column drift between the two sides.

Components:
- columns: column reconciliation
- keys: key column resolution
- query: statement construction
- diff: key-based diff
- transfer: bulk and row-by-row writers
- service: the synchronization facade
"""

from .errors import DataSyncError, InvalidArgumentError, TenantNotFoundError
from .models import Row, Scalar, ScalarKind, SyncRequest, SyncResult, TableIdentity
from .registry import ConnectionDescriptor, TenantRegistry, VaultTenantRegistry
from .service import DataSyncService, sync_table

__version__ = "1.0.0"

__all__ = [
    "DataSyncService",
    "sync_table",
    "TenantRegistry",
    "VaultTenantRegistry",
    "ConnectionDescriptor",
    "Row",
    "Scalar",
    "ScalarKind",
    "SyncRequest",
    "SyncResult",
    "TableIdentity",
    "DataSyncError",
    "InvalidArgumentError",
    "TenantNotFoundError",
]
