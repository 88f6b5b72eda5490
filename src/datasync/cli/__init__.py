"""
Command-line interface for table synchronization.

Available commands:
- sync: Copy the rows missing at the destination for one or more tables
"""

import sys

from .commands import build_report, cmd_sync, format_report_console
from .credentials import get_registry_from_vault_or_file, setup_logging
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the datasync CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, log_file=args.log_file, json_format=args.log_json)

    # Execute command
    if args.command == 'sync':
        if not args.table and not args.tables:
            parser.error("Either --table or --tables is required")
        if args.use_vault and args.tenants_file:
            parser.error("--use-vault and --tenants-file are mutually exclusive")
        cmd_sync(args)
    else:
        parser.print_help()
        sys.exit(1)


__all__ = [
    'main',
    'setup_logging',
    'get_registry_from_vault_or_file',
    'cmd_sync',
    'build_report',
    'format_report_console',
    'create_parser',
]


if __name__ == '__main__':
    main()
