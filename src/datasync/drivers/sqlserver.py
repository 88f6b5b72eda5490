"""SQL Server driver implementation."""

import logging
from collections.abc import Mapping
from typing import Any

import pyodbc

from src.utils.database_types import DatabaseType

from ..models import ColumnInfo, TableIdentity
from ..query import build_insert
from .base import DatabaseDriver

logger = logging.getLogger(__name__)


COLUMNS_QUERY = (
    "SELECT c.COLUMN_NAME, c.DATA_TYPE, "
    "COLUMNPROPERTY(OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME)), "
    "c.COLUMN_NAME, 'IsIdentity') AS IS_IDENTITY, "
    "COLUMNPROPERTY(OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME)), "
    "c.COLUMN_NAME, 'IsComputed') AS IS_COMPUTED, "
    "c.ORDINAL_POSITION "
    "FROM INFORMATION_SCHEMA.COLUMNS c "
    "WHERE c.TABLE_NAME = ? AND c.TABLE_SCHEMA = ? "
    "ORDER BY c.ORDINAL_POSITION"
)


class SQLServerDriver(DatabaseDriver):
    """Driver for SQL Server databases over pyodbc."""

    db_type = DatabaseType.SQLSERVER
    error_types = (pyodbc.Error,)

    def _connection_string(self) -> str:
        d = self.descriptor
        if d.connection_string:
            return d.connection_string

        server = f"{d.host},{d.port}" if d.port else d.host
        parts = [
            f"DRIVER={{{d.odbc_driver}}}",
            f"SERVER={server}",
            f"DATABASE={d.database}",
            f"UID={d.user}",
            f"PWD={d.password}",
            "TrustServerCertificate=yes",
            "Encrypt=yes",
        ]
        parts.extend(f"{key}={value}" for key, value in d.options.items())
        return ";".join(parts) + ";"

    def _create_connection(self) -> pyodbc.Connection:
        conn = pyodbc.connect(self._connection_string(), timeout=self.descriptor.connect_timeout)
        conn.autocommit = True
        return conn

    def _close_connection(self, conn: pyodbc.Connection) -> None:
        if conn is not None:
            conn.close()

    def fetch_columns(self, conn: Any, table: TableIdentity) -> list[ColumnInfo]:
        rows = self.query(conn, COLUMNS_QUERY, (table.table_name, table.schema))
        return [
            ColumnInfo(
                name=row.raw("COLUMN_NAME"),
                data_type=row.raw("DATA_TYPE"),
                is_identity=bool(row.raw("IS_IDENTITY")),
                is_computed=bool(row.raw("IS_COMPUTED")),
                ordinal=int(row.raw("ORDINAL_POSITION")),
            )
            for row in rows
        ]

    def bulk_load(
        self,
        conn: Any,
        buffer,
        table: TableIdentity,
        column_mapping: Mapping[str, str],
        batch_size: int,
    ) -> int:
        """
        Load a tabular buffer with pyodbc's fast_executemany, one round trip per batch.

        Args:
            conn: Destination connection
            buffer: Rows to load
            table: Destination table
            column_mapping: Buffer column name -> destination column name
            batch_size: Rows per executemany call

        Returns:
            Number of rows loaded
        """
        source_indexes = [buffer.column_index(name) for name in column_mapping]
        statement = build_insert(table, list(column_mapping.values()), self.db_type)

        cursor = conn.cursor()
        cursor.fast_executemany = True
        loaded = 0
        try:
            for start in range(0, len(buffer.rows), batch_size):
                batch = [
                    tuple(record[i] for i in source_indexes)
                    for record in buffer.rows[start:start + batch_size]
                ]
                cursor.executemany(statement, batch)
                loaded += len(batch)
                logger.debug(f"Loaded batch of {len(batch)} rows into {table.qualified_name}")
        finally:
            cursor.close()

        return loaded
