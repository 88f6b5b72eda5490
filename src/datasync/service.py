"""
Table synchronization service.

Copies the rows of a source table that are missing at the destination:

    reconcile columns -> resolve keys -> build SELECT -> fetch source rows
    -> filter by predicate -> fetch destination keys -> diff -> transfer

Each call opens exactly one connection per side and releases both on every
exit path. Nothing is kept between calls.
"""

import logging
import time
from collections.abc import Callable, Sequence
from contextlib import ExitStack

from src.utils.database_types import DatabaseType
from src.utils.logging import ContextLogger
from src.utils.metrics import SyncMetrics
from src.utils.tracing import (
    SyncPhase,
    SyncSpan,
    add_span_attributes,
    add_span_event,
    trace_sync_phase,
)

from .columns import reconcile_columns
from .diff import diff_rows
from .drivers import DatabaseDriver, create_driver
from .keys import resolve_key_columns
from .models import RowPredicate, SyncRequest, SyncResult, TableIdentity, TransferPlan
from .query import build_key_select, build_select
from .registry import ConnectionDescriptor, TenantRegistry
from .transfer import BULK, ROW_BY_ROW, transfer_rows

logger = logging.getLogger(__name__)


def exclusion_target(
    source: ConnectionDescriptor,
    destination: ConnectionDescriptor,
    table: TableIdentity,
) -> TableIdentity | None:
    """
    Address of the destination table as seen from the source connection.

    Only a SQL Server destination on the same server, in another database,
    can be referenced from the source query (by three-part name). Anything
    else returns None and the existence exclusion is left out.
    """
    if source.db_type != DatabaseType.SQLSERVER or not source.same_server(destination):
        return None
    if not destination.database or destination.database == source.database:
        return None
    return TableIdentity(table.schema, table.table_name, catalog=destination.database)


class DataSyncService:
    """
    One-way table synchronization between tenant databases.

    Example:
        >>> registry = TenantRegistry.from_file("tenants.json")
        >>> service = DataSyncService(registry)
        >>> result = service.sync_table("acme", "acme_dw", "Orders", "dbo")
        >>> result.rows_written
        42
    """

    def __init__(
        self,
        registry: TenantRegistry,
        driver_factory: Callable[[ConnectionDescriptor], DatabaseDriver] = create_driver,
        metrics: SyncMetrics | None = None,
    ):
        """
        Initialize the service.

        Args:
            registry: Resolves tenant codes to connection descriptors
            driver_factory: Builds a driver for a descriptor
            metrics: Prometheus metrics (default: metrics on the global registry)
        """
        self.registry = registry
        self.driver_factory = driver_factory
        self.metrics = metrics or SyncMetrics()

    def sync(self, request: SyncRequest) -> SyncResult:
        """Run a synchronization described by a SyncRequest."""
        return self.sync_table(
            request.source_db,
            request.destination_db,
            request.table_name,
            request.schema,
            predicate=request.predicate,
            key_columns=request.key_columns,
            bulk_insert=request.bulk_insert,
            where_clause=request.where_clause,
            order_by_clause=request.order_by_clause,
            top=request.top,
        )

    def sync_table(
        self,
        source_db: str,
        destination_db: str,
        table_name: str,
        schema: str,
        predicate: RowPredicate | None = None,
        key_columns: Sequence[str] | None = None,
        bulk_insert: bool = True,
        where_clause: str | None = None,
        order_by_clause: str | None = None,
        top: int | None = None,
    ) -> SyncResult:
        """
        Copy the source rows missing at the destination.

        Args:
            source_db: Source tenant code
            destination_db: Destination tenant code
            table_name: Table name, identical on both sides
            schema: Schema name, identical on both sides
            predicate: In-memory filter applied to fetched source rows
            key_columns: Explicit key columns (default: destination primary key)
            bulk_insert: Use the bulk loader instead of per-row INSERTs
            where_clause: Trusted WHERE fragment for the source query
            order_by_clause: Trusted ORDER BY fragment for the source query
            top: Maximum number of source rows to fetch

        Returns:
            SyncResult describing the run

        Raises:
            InvalidArgumentError: If the table, schema or top is invalid
            TenantNotFoundError: If a tenant code is unknown
            Driver errors propagate unchanged
        """
        table = TableIdentity(schema, table_name)
        strategy = BULK if bulk_insert else ROW_BY_ROW
        result = SyncResult(
            table=table.qualified_name,
            source_db=source_db,
            destination_db=destination_db,
            strategy=strategy,
        )
        log = ContextLogger.for_sync(__name__, table.qualified_name, source_db, destination_db, strategy)
        start_time = time.time()

        try:
            with SyncSpan(table.qualified_name, source_db, destination_db, strategy) as span:
                log.info(f"Starting sync of {table.qualified_name}: {source_db} -> {destination_db}")
                try:
                    self._run(
                        result, table, log, source_db, destination_db, predicate,
                        key_columns, bulk_insert, where_clause, order_by_clause, top,
                    )
                finally:
                    # failed runs keep the counts reached so far
                    span.record_result(result)
        except Exception as e:
            result.duration_seconds = time.time() - start_time
            log.error(
                f"Sync of {table.qualified_name} failed after "
                f"{result.rows_written} rows: {e}",
                exc_info=True,
            )
            self.metrics.record_run(
                table.qualified_name,
                success=False,
                duration=result.duration_seconds,
                rows_written=result.rows_written,
                strategy=strategy,
            )
            raise

        result.duration_seconds = time.time() - start_time
        self.metrics.record_run(
            table.qualified_name,
            success=True,
            duration=result.duration_seconds,
            diff_rows=result.diff_rows,
            rows_written=result.rows_written,
            strategy=strategy,
        )
        log.info(
            f"Sync of {table.qualified_name} complete: {result.source_rows} source rows, "
            f"{result.diff_rows} missing, {result.rows_written} written "
            f"in {result.duration_seconds:.2f}s",
            rows_written=result.rows_written,
        )
        return result

    def _run(
        self,
        result: SyncResult,
        table: TableIdentity,
        log: ContextLogger,
        source_db: str,
        destination_db: str,
        predicate: RowPredicate | None,
        key_columns: Sequence[str] | None,
        bulk_insert: bool,
        where_clause: str | None,
        order_by_clause: str | None,
        top: int | None,
    ) -> None:
        source = self.registry.resolve(source_db)
        destination = self.registry.resolve(destination_db)
        source_driver = self.driver_factory(source)
        destination_driver = self.driver_factory(destination)

        with ExitStack() as stack:
            source_conn = stack.enter_context(source_driver.connect())
            destination_conn = stack.enter_context(destination_driver.connect())

            plan = self._plan(
                source, destination, source_driver, source_conn,
                destination_driver, destination_conn, table, log,
                key_columns, where_clause, order_by_clause, top,
            )
            result.key_columns = list(plan.key_columns)

            with trace_sync_phase(SyncPhase.FETCH_SOURCE):
                rows = source_driver.query(source_conn, plan.select_statement)
                add_span_attributes(rows=len(rows))
            result.source_rows = len(rows)
            log.info(f"Fetched {len(rows)} source rows", source_rows=len(rows))

            if rows and predicate is not None:
                rows = [row for row in rows if predicate(row)]
                add_span_event("predicate_applied", matched=len(rows))
                log.debug(f"{len(rows)} source rows match the predicate")

            if not rows:
                log.info("No source rows to synchronize")
                return

            destination_keys = []
            if plan.key_columns:
                with trace_sync_phase(SyncPhase.FETCH_DESTINATION_KEYS):
                    destination_keys = destination_driver.query(
                        destination_conn,
                        build_key_select(table, plan.key_columns, destination_driver.db_type),
                    )
            result.destination_keys = len(destination_keys)

            with trace_sync_phase(SyncPhase.DIFF, source_rows=len(rows)):
                missing = diff_rows(rows, destination_keys, plan.key_columns)
                add_span_attributes(diff_rows=len(missing))
            result.diff_rows = len(missing)
            log.info(
                f"{len(missing)} of {len(rows)} source rows are missing at the destination",
                diff_rows=len(missing),
            )

            if not missing:
                return

            def record_written(count: int) -> None:
                result.rows_written = count

            with trace_sync_phase(SyncPhase.TRANSFER, rows=len(missing), strategy=result.strategy):
                transfer_rows(
                    destination_driver,
                    destination_conn,
                    table,
                    missing,
                    plan.source_columns,
                    plan.destination_columns,
                    bulk=bulk_insert,
                    on_progress=record_written,
                )
                add_span_attributes(rows_written=result.rows_written)

    def _plan(
        self,
        source: ConnectionDescriptor,
        destination: ConnectionDescriptor,
        source_driver: DatabaseDriver,
        source_conn,
        destination_driver: DatabaseDriver,
        destination_conn,
        table: TableIdentity,
        log: ContextLogger,
        key_columns: Sequence[str] | None,
        where_clause: str | None,
        order_by_clause: str | None,
        top: int | None,
    ) -> TransferPlan:
        """Reconcile columns, resolve keys and build the source SELECT."""
        with trace_sync_phase(SyncPhase.RECONCILE_COLUMNS):
            source_columns = reconcile_columns(source_driver, source_conn, table)
            destination_columns = reconcile_columns(
                destination_driver, destination_conn, table, source_columns
            )

        with trace_sync_phase(SyncPhase.RESOLVE_KEYS):
            keys = resolve_key_columns(destination_driver, destination_conn, table, key_columns)

        # Keys dropped by reconciliation (identity keys) are still needed for the diff
        projection = source_columns + [k for k in keys if k not in source_columns]

        exclusion_table = None
        if where_clause and keys:
            exclusion_table = exclusion_target(source, destination, table)
            if exclusion_table is None:
                log.warning(
                    "Destination is not addressable from the source connection; "
                    "relying on the in-memory diff only, so rows limited by top "
                    "may already be present at the destination"
                )

        select_statement = build_select(
            projection,
            table,
            source_driver.db_type,
            key_columns=keys,
            where_clause=where_clause,
            order_by_clause=order_by_clause,
            top=top,
            exclusion_table=exclusion_table,
        )
        log.debug(f"Source query: {select_statement}")

        return TransferPlan(
            select_statement=select_statement,
            source_columns=projection,
            destination_columns=destination_columns,
            key_columns=keys,
        )


def sync_table(
    registry: TenantRegistry,
    source_db: str,
    destination_db: str,
    table_name: str,
    schema: str,
    predicate: RowPredicate | None = None,
    key_columns: Sequence[str] | None = None,
    bulk_insert: bool = True,
    where_clause: str | None = None,
    order_by_clause: str | None = None,
    top: int | None = None,
) -> SyncResult:
    """Synchronize one table with a service built over the given registry."""
    return DataSyncService(registry).sync_table(
        source_db,
        destination_db,
        table_name,
        schema,
        predicate=predicate,
        key_columns=key_columns,
        bulk_insert=bulk_insert,
        where_clause=where_clause,
        order_by_clause=order_by_clause,
        top=top,
    )
