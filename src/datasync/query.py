"""
Statement construction for table synchronization.

Builds the source extraction SELECT, the destination key SELECT and the
parameterized INSERT used by the row-by-row path. Identifiers are always
quoted for the target dialect. Caller-supplied WHERE and ORDER BY fragments
are trusted input and are appended verbatim.
"""

from collections.abc import Sequence

from src.utils.database_types import DatabaseType
from src.utils.sql_safety import validate_integer_param

from .errors import InvalidArgumentError
from .models import TableIdentity


def _column_list(columns: Sequence[str], db_type: DatabaseType) -> str:
    return ", ".join(db_type.quote_identifier(column) for column in columns)


def build_exclusion(
    source_table: TableIdentity,
    destination_table: TableIdentity,
    key_columns: Sequence[str],
    db_type: DatabaseType,
) -> str:
    """
    Build the fragment excluding source rows whose key already exists at the destination.

    The outer source table is referenced by its own name, so caller WHERE
    fragments written against the unaliased table keep working.

    Example (SQL Server):
        NOT EXISTS (SELECT 1 FROM [dw].[dbo].[Orders] AS dst
                    WHERE dst.[id] = [dbo].[Orders].[id])
    """
    if not key_columns:
        raise InvalidArgumentError("Existence exclusion requires at least one key column")

    outer = source_table.quoted(db_type)
    conditions = " AND ".join(
        f"dst.{db_type.quote_identifier(k)} = {outer}.{db_type.quote_identifier(k)}"
        for k in key_columns
    )
    return (
        f"NOT EXISTS (SELECT 1 FROM {destination_table.quoted(db_type)} AS dst "
        f"WHERE {conditions})"
    )


def build_select(
    columns: Sequence[str],
    table: TableIdentity,
    db_type: DatabaseType,
    key_columns: Sequence[str] = (),
    where_clause: str | None = None,
    order_by_clause: str | None = None,
    top: int | None = None,
    exclusion_table: TableIdentity | None = None,
) -> str:
    """
    Build the source extraction statement.

    The existence exclusion is only added when a where fragment is supplied
    and the destination table is addressable from the source connection
    (``exclusion_table``); without a where fragment the whole source table is
    read and the in-memory diff does all of the filtering.

    Args:
        columns: Projection, in order
        table: Source table
        db_type: Source dialect
        key_columns: Key columns used by the exclusion fragment
        where_clause: Optional caller WHERE fragment (without the keyword)
        order_by_clause: Optional caller ORDER BY fragment (without the keyword)
        top: Optional row limit applied to the projection
        exclusion_table: Destination table as seen from the source connection

    Returns:
        SELECT statement text

    Raises:
        InvalidArgumentError: If columns are empty or top is not a non-negative integer
    """
    if not columns:
        raise InvalidArgumentError(f"No columns to select from {table.qualified_name}")

    if top is not None:
        try:
            validate_integer_param(top, "top")
        except ValueError as e:
            raise InvalidArgumentError(str(e)) from e

    parts = ["SELECT"]
    if top is not None and db_type == DatabaseType.SQLSERVER:
        parts.append(f"TOP {top}")
    parts.append(_column_list(columns, db_type))
    parts.append(f"FROM {table.quoted(db_type)}")

    if where_clause:
        if exclusion_table is not None and key_columns:
            exclusion = build_exclusion(table, exclusion_table, key_columns, db_type)
            parts.append(f"WHERE {exclusion} AND ({where_clause})")
        else:
            parts.append(f"WHERE ({where_clause})")

    if order_by_clause:
        parts.append(f"ORDER BY {order_by_clause}")

    if top is not None and db_type == DatabaseType.POSTGRESQL:
        parts.append(f"LIMIT {top}")

    return " ".join(parts)


def build_key_select(
    table: TableIdentity,
    key_columns: Sequence[str],
    db_type: DatabaseType,
) -> str:
    """Build the unfiltered destination key extraction statement."""
    if not key_columns:
        raise InvalidArgumentError(f"No key columns to select from {table.qualified_name}")
    return f"SELECT {_column_list(key_columns, db_type)} FROM {table.quoted(db_type)}"


def build_insert(
    table: TableIdentity,
    columns: Sequence[str],
    db_type: DatabaseType,
) -> str:
    """
    Build a parameterized INSERT with one positional placeholder per column.

    Example (PostgreSQL):
        INSERT INTO "public"."orders" ("id", "total") VALUES (%s, %s)
    """
    if not columns:
        raise InvalidArgumentError(f"No columns to insert into {table.qualified_name}")

    placeholders = ", ".join(db_type.get_placeholder() for _ in columns)
    return (
        f"INSERT INTO {table.quoted(db_type)} ({_column_list(columns, db_type)}) "
        f"VALUES ({placeholders})"
    )
