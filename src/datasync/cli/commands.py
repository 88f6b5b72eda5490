"""
CLI command implementations.

This module contains the implementation of the sync command and the
report rendering it uses.
"""

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.utils.metrics import MetricsPublisher
from src.utils.tracing import initialize_tracing, shutdown_tracing

from ..models import SyncResult
from ..service import DataSyncService
from .credentials import get_registry_from_vault_or_file

logger = logging.getLogger(__name__)


def _split(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(',') if item.strip()]


def build_report(results: list[SyncResult], errors: list[dict[str, str]]) -> dict[str, Any]:
    """
    Build the run report

    Args:
        results: Results of the tables that synchronized
        errors: {"table", "error"} entries of the tables that failed

    Returns:
        Report dictionary
    """
    return {
        "status": "FAIL" if errors else "SUCCESS",
        "generated_at": datetime.now(UTC).isoformat(),
        "total_tables": len(results) + len(errors),
        "total_rows_written": sum(r.rows_written for r in results),
        "results": [r.to_dict() for r in results],
        "errors": errors,
    }


def format_report_console(report: dict[str, Any]) -> str:
    """Render a run report for the terminal."""
    lines = [
        "=" * 72,
        f"DATASYNC REPORT  {report['generated_at']}",
        "=" * 72,
        f"{'TABLE':<32} {'SOURCE':>9} {'MISSING':>9} {'WRITTEN':>9} {'SECONDS':>8}",
        "-" * 72,
    ]
    for result in report["results"]:
        lines.append(
            f"{result['table']:<32} {result['source_rows']:>9} {result['diff_rows']:>9} "
            f"{result['rows_written']:>9} {result['duration_seconds']:>8.2f}"
        )
    for error in report["errors"]:
        lines.append(f"{error['table']:<32} FAILED: {error['error']}")
    lines.append("-" * 72)
    lines.append(
        f"Status: {report['status']}  Tables: {report['total_tables']}  "
        f"Rows written: {report['total_rows_written']}"
    )
    return "\n".join(lines)


def cmd_sync(args: argparse.Namespace) -> None:
    """
    Synchronize one or more tables

    Args:
        args: Parsed command-line arguments
    """
    tables = _split(args.tables) or _split(args.table)
    logger.info(
        f"Synchronizing {len(tables)} table(s) from {args.source_db} "
        f"to {args.destination_db}: {', '.join(tables)}"
    )

    registry = get_registry_from_vault_or_file(args)

    if args.metrics_port:
        MetricsPublisher(port=args.metrics_port).start()

    initialize_tracing(service_name="datasync")
    service = DataSyncService(registry)
    key_columns = _split(args.key_columns) or None

    results = []
    errors = []
    try:
        for table in tables:
            try:
                result = service.sync_table(
                    args.source_db,
                    args.destination_db,
                    table,
                    args.schema,
                    key_columns=key_columns,
                    bulk_insert=not args.row_by_row,
                    where_clause=args.where,
                    order_by_clause=args.order_by,
                    top=args.top,
                )
                results.append(result)
            except Exception as e:
                errors.append({"table": f"{args.schema}.{table}", "error": str(e)})
                if not args.continue_on_error:
                    break
    finally:
        shutdown_tracing()

    report = build_report(results, errors)

    if args.format == "json":
        rendered = json.dumps(report, indent=2, default=str)
    else:
        rendered = format_report_console(report)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered + "\n", encoding="utf-8")
        logger.info(f"Report saved to {output_path}")
    else:
        print(rendered)

    if errors:
        logger.error(f"{len(errors)} table(s) failed to synchronize")
        sys.exit(1)

    logger.info("Synchronization completed successfully")
    sys.exit(0)
