"""
Column reconciliation between a source and a destination table.

Only columns that carry data and exist on both sides take part in a
transfer: row-version surrogates, identity and computed columns are dropped,
and the destination set is intersected with the source set.
"""

import logging
from collections.abc import Sequence
from typing import Any

from .drivers.base import DatabaseDriver
from .errors import InvalidArgumentError
from .models import TableIdentity

logger = logging.getLogger(__name__)


def _validate_table(table: TableIdentity) -> None:
    if not table.table_name or not table.table_name.strip():
        raise InvalidArgumentError("Table name is required")
    if not table.schema or not table.schema.strip():
        raise InvalidArgumentError("Schema name is required")


def reconcile_columns(
    driver: DatabaseDriver,
    conn: Any,
    table: TableIdentity,
    source_columns: Sequence[str] | None = None,
) -> list[str]:
    """
    Resolve the transferable columns of a table.

    Called once for the source side (``source_columns`` omitted) and once for
    the destination side with the source result, in which case only columns
    present on both sides are kept, in the destination's catalog order.

    Args:
        driver: Driver for the table's database
        conn: Open connection
        table: Table to inspect
        source_columns: Source column set to intersect with

    Returns:
        Ordered column names

    Raises:
        InvalidArgumentError: If the table or schema name is empty
    """
    _validate_table(table)

    catalog = sorted(driver.fetch_columns(conn, table), key=lambda c: c.ordinal)

    columns = []
    for info in catalog:
        if driver.db_type.is_row_version_type(info.data_type):
            logger.debug(f"Skipping row-version column {table.qualified_name}.{info.name}")
            continue
        if info.is_identity:
            logger.debug(f"Skipping identity column {table.qualified_name}.{info.name}")
            continue
        if info.is_computed:
            logger.debug(f"Skipping computed column {table.qualified_name}.{info.name}")
            continue
        columns.append(info.name)

    if source_columns is None:
        return columns

    source_set = set(source_columns)
    common = [c for c in columns if c in source_set]

    destination_only = [c for c in columns if c not in source_set]
    if destination_only:
        logger.debug(f"Columns only at destination {table.qualified_name}: {destination_only}")

    common_set = set(common)
    source_only = [c for c in source_columns if c not in common_set]
    if source_only:
        logger.debug(f"Source columns not at destination {table.qualified_name}: {source_only}")

    return common
