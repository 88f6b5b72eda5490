"""
Command-line argument parser configuration.

This module sets up the argument parser for the datasync CLI tool,
defining its commands and their options.
"""

import argparse


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="datasync",
        description="One-way table synchronization between tenant databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Copy the rows of dbo.Orders missing from the warehouse
  datasync sync --source-db acme --destination-db acme_dw --table Orders --schema dbo

  # Several tables, explicit tenants file, JSON report
  datasync sync --tenants-file tenants.json --source-db acme --destination-db acme_dw \\
      --tables Orders,OrderLines --schema dbo --format json --output sync.json

  # Incremental pull with an explicit key and per-row inserts
  datasync sync --source-db acme --destination-db acme_dw --table Orders --schema dbo \\
      --key-columns OrderId --where "ModifiedAt >= '2024-01-01'" --row-by-row

  # Tenant connections from Vault, metrics exposed on :9091
  datasync sync --use-vault --source-db acme --destination-db acme_dw \\
      --table Orders --schema dbo --metrics-port 9091
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: $DATASYNC_LOG_LEVEL, then INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file, rotated (default: $DATASYNC_LOG_FILE)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=None,
        help='Emit structured JSON logs (default: $DATASYNC_LOG_JSON)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Sync command ==========
    sync_parser = subparsers.add_parser('sync', help='Copy missing rows to the destination')
    sync_parser.add_argument(
        '--source-db',
        required=True,
        help='Source tenant code'
    )
    sync_parser.add_argument(
        '--destination-db',
        required=True,
        help='Destination tenant code'
    )
    sync_parser.add_argument(
        '--table',
        help='Table to synchronize'
    )
    sync_parser.add_argument(
        '--tables',
        help='Comma-separated list of tables to synchronize'
    )
    sync_parser.add_argument(
        '--schema',
        required=True,
        help='Schema of the table(s), identical on both sides'
    )
    sync_parser.add_argument(
        '--key-columns',
        help='Comma-separated key columns (default: destination primary key)'
    )
    sync_parser.add_argument(
        '--row-by-row',
        action='store_true',
        help='Insert one row at a time instead of bulk loading'
    )
    sync_parser.add_argument(
        '--where',
        help='WHERE fragment applied to the source query (trusted, not escaped)'
    )
    sync_parser.add_argument(
        '--order-by',
        help='ORDER BY fragment applied to the source query (trusted, not escaped)'
    )
    sync_parser.add_argument(
        '--top',
        type=int,
        help='Maximum number of source rows to read'
    )
    sync_parser.add_argument(
        '--tenants-file',
        help='JSON tenants file (default: $DATASYNC_TENANTS_FILE)'
    )
    sync_parser.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch tenant connections from HashiCorp Vault'
    )
    sync_parser.add_argument(
        '--format',
        choices=['console', 'json'],
        default='console',
        help='Output format (default: console)'
    )
    sync_parser.add_argument(
        '--output',
        help='Output file path for the report'
    )
    sync_parser.add_argument(
        '--continue-on-error',
        action='store_true',
        help='Continue with remaining tables if one fails'
    )
    sync_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )

    return parser
