"""
Base class for data-access drivers.

A driver owns one database dialect: it opens scoped connections, runs
catalog lookups, executes statements and performs bulk loads. Connections
are opened in autocommit mode, so every statement is durable once it
returns.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TYPE_CHECKING

from opentelemetry import trace

from src.utils.database_types import DatabaseType
from src.utils.tracing import trace_operation

from ..models import ColumnInfo, Row, TableIdentity

if TYPE_CHECKING:
    from ..materialize import TabularBuffer
    from ..registry import ConnectionDescriptor

logger = logging.getLogger(__name__)


# Primary key columns in key ordinal order; INFORMATION_SCHEMA is shared by both dialects
PRIMARY_KEY_QUERY = (
    "SELECT kcu.COLUMN_NAME "
    "FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc "
    "JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu "
    "ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME "
    "AND tc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA "
    "AND tc.TABLE_NAME = kcu.TABLE_NAME "
    "WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY' "
    "AND tc.TABLE_NAME = {p} AND tc.TABLE_SCHEMA = {p} "
    "ORDER BY kcu.ORDINAL_POSITION"
)


class DatabaseDriver:
    """
    Base class for database drivers.

    Subclasses implement connection handling, the column catalog query and
    the bulk load for their dialect.
    """

    db_type: DatabaseType
    # Exceptions raised by the underlying DB-API module
    error_types: tuple[type[BaseException], ...] = ()

    def __init__(self, descriptor: "ConnectionDescriptor"):
        self.descriptor = descriptor

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(tenant={self.descriptor.tenant_code!r}, "
            f"database={self.descriptor.database!r})"
        )

    def _create_connection(self) -> Any:
        """Create a new database connection. Must be implemented by subclasses."""
        raise NotImplementedError

    def _close_connection(self, conn: Any) -> None:
        """Close a database connection. Must be implemented by subclasses."""
        raise NotImplementedError

    def fetch_columns(self, conn: Any, table: TableIdentity) -> list[ColumnInfo]:
        """Catalog metadata for a table in ordinal order. Must be implemented by subclasses."""
        raise NotImplementedError

    def bulk_load(
        self,
        conn: Any,
        buffer: "TabularBuffer",
        table: TableIdentity,
        column_mapping: Mapping[str, str],
        batch_size: int,
    ) -> int:
        """Load a tabular buffer in batches. Must be implemented by subclasses."""
        raise NotImplementedError

    @contextmanager
    def connect(self) -> Iterator[Any]:
        """
        Open a connection scoped to the with-block.

        The connection is closed on every exit path, including errors.

        Yields:
            DB-API connection
        """
        with trace_operation(
            f"{self.db_type.value}_connect",
            kind=trace.SpanKind.CLIENT,
            db_host=self.descriptor.host,
            db_name=self.descriptor.database,
        ):
            conn = self._create_connection()

        logger.debug(f"Opened connection to {self.descriptor.tenant_code}")
        try:
            yield conn
        finally:
            self._close_connection(conn)
            logger.debug(f"Closed connection to {self.descriptor.tenant_code}")

    def query(self, conn: Any, statement: str, params: Sequence[Any] = ()) -> list[Row]:
        """
        Execute a statement and materialize every result row.

        Returns:
            Rows keyed by the cursor description's column names
        """
        cursor = conn.cursor()
        try:
            if params:
                cursor.execute(statement, tuple(params))
            else:
                cursor.execute(statement)
            columns = [desc[0] for desc in cursor.description]
            return [Row.from_record(columns, record) for record in cursor.fetchall()]
        finally:
            cursor.close()

    def execute(self, conn: Any, statement: str, params: Sequence[Any] = ()) -> int:
        """
        Execute a statement that returns no rows.

        Returns:
            Affected row count reported by the driver
        """
        cursor = conn.cursor()
        try:
            if params:
                cursor.execute(statement, tuple(params))
            else:
                cursor.execute(statement)
            return cursor.rowcount
        finally:
            cursor.close()

    def fetch_primary_key(self, conn: Any, table: TableIdentity) -> list[str]:
        """Primary key column names of a table in key ordinal order."""
        placeholder = self.db_type.get_placeholder()
        statement = PRIMARY_KEY_QUERY.format(p=placeholder)
        rows = self.query(conn, statement, (table.table_name, table.schema))
        return [row.raw(next(iter(row))) for row in rows]
