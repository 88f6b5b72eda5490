"""
Transfer executor.

Writes the diffed rows to the destination table either through the
driver's bulk loader or with one parameterized INSERT per row. Connections
run in autocommit, so there is no enclosing transaction: a failure on the
row-by-row path leaves earlier rows committed, and rerunning the sync picks
up where it stopped.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from .drivers.base import DatabaseDriver
from .errors import InvalidArgumentError
from .materialize import to_tabular
from .models import Row, TableIdentity
from .query import build_insert

logger = logging.getLogger(__name__)

BULK_BATCH_SIZE = 1000

BULK = "bulk"
ROW_BY_ROW = "row_by_row"


def bulk_transfer(
    driver: DatabaseDriver,
    conn: Any,
    table: TableIdentity,
    rows: Sequence[Row],
    source_columns: Sequence[str],
    destination_columns: Sequence[str],
    batch_size: int = BULK_BATCH_SIZE,
) -> int:
    """
    Materialize rows and hand them to the driver's bulk loader.

    Columns are mapped by name onto the destination columns.
    """
    buffer = to_tabular(rows, source_columns)
    column_mapping = {column: column for column in destination_columns}
    return driver.bulk_load(conn, buffer, table, column_mapping, batch_size)


def row_by_row_transfer(
    driver: DatabaseDriver,
    conn: Any,
    table: TableIdentity,
    rows: Sequence[Row],
    destination_columns: Sequence[str],
    on_progress: Callable[[int], None] | None = None,
) -> int:
    """
    Insert rows one at a time, stopping at the first failure.

    ``on_progress`` receives the running count after every committed insert.
    """
    statement = build_insert(table, destination_columns, driver.db_type)

    written = 0
    for row in rows:
        params = [row.raw(column) for column in destination_columns]
        try:
            driver.execute(conn, statement, params)
        except Exception as e:
            logger.error(
                f"Insert into {table.qualified_name} failed after {written} "
                f"of {len(rows)} rows: {e}"
            )
            raise
        written += 1
        if on_progress is not None:
            on_progress(written)
    return written


def transfer_rows(
    driver: DatabaseDriver,
    conn: Any,
    table: TableIdentity,
    rows: Sequence[Row],
    source_columns: Sequence[str],
    destination_columns: Sequence[str],
    bulk: bool = True,
    on_progress: Callable[[int], None] | None = None,
) -> int:
    """
    Write rows to the destination table.

    Args:
        driver: Destination driver
        conn: Open destination connection
        table: Destination table
        rows: Rows missing at the destination
        source_columns: Columns to materialize for the bulk path
        destination_columns: Columns written at the destination
        bulk: Use the bulk loader instead of per-row INSERTs
        on_progress: Called with the number of rows written so far

    Returns:
        Number of rows written
    """
    if not rows:
        return 0
    if not destination_columns:
        raise InvalidArgumentError(
            f"No columns shared by source and destination {table.qualified_name}"
        )

    strategy = BULK if bulk else ROW_BY_ROW
    logger.info(f"Writing {len(rows)} rows to {table.qualified_name} ({strategy})")

    if bulk:
        written = bulk_transfer(driver, conn, table, rows, source_columns, destination_columns)
        if on_progress is not None:
            on_progress(written)
    else:
        written = row_by_row_transfer(
            driver, conn, table, rows, destination_columns, on_progress=on_progress
        )

    logger.info(f"Wrote {written} rows to {table.qualified_name}")
    return written
