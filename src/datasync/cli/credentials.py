"""
Tenant registry loading and logging setup for CLI.

This module builds the tenant registry from Vault, a tenants file or the
environment, and configures logging for the CLI application.
"""

import argparse
import logging
import sys

from src.utils.logging import setup_logging as _setup_logging
from src.utils.vault_client import VaultClient

from ..errors import InvalidArgumentError
from ..registry import TenantRegistry, VaultTenantRegistry

logger = logging.getLogger(__name__)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    json_format: bool | None = None,
) -> None:
    """
    Setup logging configuration

    Options left as None fall back to the DATASYNC_LOG_* environment variables.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional rotated log file
        json_format: Emit JSON log lines
    """
    _setup_logging(
        level=log_level,
        log_file=log_file,
        console_output=True,
        json_format=json_format,
    )


def get_registry_from_vault_or_file(args: argparse.Namespace) -> TenantRegistry:
    """
    Build the tenant registry from Vault, a tenants file or the environment

    Args:
        args: Parsed command-line arguments

    Returns:
        Tenant registry
    """
    if args.use_vault:
        try:
            vault_client = VaultClient()
        except ValueError as e:
            logger.error(f"Failed to configure Vault client: {e}")
            sys.exit(1)
        logger.info(f"Resolving tenant connections from Vault at {vault_client.vault_addr}")
        return VaultTenantRegistry(vault_client)

    try:
        if args.tenants_file:
            return TenantRegistry.from_file(args.tenants_file)
        return TenantRegistry.from_env()
    except (OSError, ValueError) as e:
        # InvalidArgumentError and JSON decode errors are ValueErrors
        logger.error(f"Failed to load tenant registry: {e}")
        if isinstance(e, InvalidArgumentError) and not args.tenants_file:
            logger.error("Pass --tenants-file, set DATASYNC_TENANTS_FILE or use --use-vault")
        sys.exit(1)
