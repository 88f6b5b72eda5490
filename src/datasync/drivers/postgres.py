"""PostgreSQL driver implementation."""

import logging
from collections.abc import Mapping
from typing import Any

import psycopg2
import psycopg2.extensions
import psycopg2.extras

from src.utils.database_types import DatabaseType

from ..models import ColumnInfo, TableIdentity
from .base import DatabaseDriver

logger = logging.getLogger(__name__)


def _raw_json(text: str) -> str:
    return text


COLUMNS_QUERY = (
    "SELECT column_name, data_type, "
    "is_identity = 'YES' AS is_identity, "
    "is_generated = 'ALWAYS' AS is_computed, "
    "ordinal_position "
    "FROM information_schema.columns "
    "WHERE table_name = %s AND table_schema = %s "
    "ORDER BY ordinal_position"
)


class PostgresDriver(DatabaseDriver):
    """Driver for PostgreSQL databases over psycopg2."""

    db_type = DatabaseType.POSTGRESQL
    error_types = (psycopg2.Error,)

    def _create_connection(self) -> psycopg2.extensions.connection:
        d = self.descriptor
        if d.connection_string:
            conn = psycopg2.connect(d.connection_string)
        else:
            conn = psycopg2.connect(
                host=d.host,
                port=d.port or 5432,
                database=d.database,
                user=d.user,
                password=d.password,
                connect_timeout=d.connect_timeout,
                **d.options,
            )
        conn.set_session(autocommit=True)
        # json/jsonb columns are fetched as their text
        psycopg2.extras.register_default_json(conn, loads=_raw_json)
        psycopg2.extras.register_default_jsonb(conn, loads=_raw_json)
        return conn

    def _close_connection(self, conn: psycopg2.extensions.connection) -> None:
        if conn is not None and not conn.closed:
            conn.close()

    def fetch_columns(self, conn: Any, table: TableIdentity) -> list[ColumnInfo]:
        rows = self.query(conn, COLUMNS_QUERY, (table.table_name, table.schema))
        return [
            ColumnInfo(
                name=row.raw("column_name"),
                data_type=row.raw("data_type"),
                is_identity=bool(row.raw("is_identity")),
                is_computed=bool(row.raw("is_computed")),
                ordinal=int(row.raw("ordinal_position")),
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
        Load a tabular buffer with multi-row INSERTs via execute_values.

        Text values are sent as untyped literals, so PostgreSQL coerces them
        to each destination column's type.
        """
        source_indexes = [buffer.column_index(name) for name in column_mapping]
        columns = ", ".join(self.db_type.quote_identifier(c) for c in column_mapping.values())
        statement = f"INSERT INTO {table.quoted(self.db_type)} ({columns}) VALUES %s"

        records = [tuple(record[i] for i in source_indexes) for record in buffer.rows]

        cursor = conn.cursor()
        try:
            psycopg2.extras.execute_values(cursor, statement, records, page_size=batch_size)
        finally:
            cursor.close()

        logger.debug(f"Loaded {len(records)} rows into {table.qualified_name}")
        return len(records)
