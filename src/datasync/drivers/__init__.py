"""
Data-access drivers for SQL Server and PostgreSQL.

Drivers open scoped connections, read catalog metadata, execute
parameterized statements and bulk load tabular buffers.
"""

from src.utils.database_types import DatabaseType

from .base import DatabaseDriver


def create_driver(descriptor) -> DatabaseDriver:
    """
    Create the driver matching a connection descriptor's database type.

    The DB-API module of a dialect is only imported when a tenant uses it,
    so a deployment that syncs PostgreSQL only does not need an ODBC stack.

    Args:
        descriptor: Resolved tenant connection descriptor

    Returns:
        Driver bound to the descriptor
    """
    if descriptor.db_type == DatabaseType.SQLSERVER:
        from .sqlserver import SQLServerDriver
        return SQLServerDriver(descriptor)

    from .postgres import PostgresDriver
    return PostgresDriver(descriptor)


__all__ = [
    "DatabaseDriver",
    "create_driver",
]
