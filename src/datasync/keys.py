"""Key column resolution for the diff."""

import logging
from collections.abc import Sequence
from typing import Any

from .drivers.base import DatabaseDriver
from .models import TableIdentity

logger = logging.getLogger(__name__)


def resolve_key_columns(
    driver: DatabaseDriver,
    conn: Any,
    table: TableIdentity,
    explicit: Sequence[str] | None = None,
) -> list[str]:
    """
    Resolve the columns that identify a row.

    Explicit key columns are returned as given, without checking them
    against the catalog. Otherwise the destination table's primary key is
    used, in key ordinal order.

    An empty result is not an error: with no key every source row diffs as
    new, which is logged as a warning.

    Args:
        driver: Destination driver
        conn: Open destination connection
        table: Destination table
        explicit: Caller-supplied key columns

    Returns:
        Ordered key column names
    """
    if explicit:
        return list(explicit)

    keys = driver.fetch_primary_key(conn, table)
    if not keys:
        logger.warning(
            f"No primary key found on {table.qualified_name}; "
            f"every source row will be treated as new"
        )
    else:
        logger.debug(f"Discovered key columns for {table.qualified_name}: {keys}")
    return keys
