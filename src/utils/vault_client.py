"""
HashiCorp Vault client for fetching tenant connection secrets

This module provides a simple interface to fetch per-tenant database
connection descriptors from HashiCorp Vault KV v2 secrets engine.
"""

import logging
import os
import re
from typing import Any

import requests

logger = logging.getLogger(__name__)

_SAFE_PATH = re.compile(r'^[a-zA-Z0-9/_-]+$')
_SAFE_SEGMENT = re.compile(r'^[a-zA-Z0-9_-]+$')


class SecretNotFoundError(LookupError):
    """Raised when Vault has no secret at the requested path."""


class VaultClient:
    """
    HashiCorp Vault client for secrets management

    This client uses the KV v2 secrets engine to fetch tenant secrets.
    """

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_token: str | None = None,
        namespace: str | None = None,
        timeout: float = 10.0,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: from VAULT_ADDR env var)
            vault_token: Vault authentication token (default: from VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")

        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json"
        }

        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

        logger.info(f"Initialized Vault client for {self.vault_addr}")

    def get_secret(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch secret from Vault KV v2 secrets engine

        Args:
            secret_path: Path to secret (e.g., "secret/datasync/tenants/acme")

        Returns:
            Dictionary containing secret data

        Raises:
            ValueError: If secret_path is invalid or the secret is empty
            SecretNotFoundError: If no secret exists at the path
            requests.RequestException: If Vault request fails
        """
        if not secret_path or not isinstance(secret_path, str):
            raise ValueError("secret_path must be a non-empty string")

        if '..' in secret_path or secret_path.startswith('//'):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Path traversal attempts are not allowed."
            )

        if not _SAFE_PATH.match(secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        # KV v2 requires /data/ after the mount point
        if "/data/" not in secret_path:
            parts = secret_path.split("/", 1)
            if len(parts) == 2:
                secret_path = f"{parts[0]}/data/{parts[1]}"
            else:
                secret_path = f"{secret_path}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"

        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)

        if response.status_code == 404:
            raise SecretNotFoundError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})

        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_tenant_secret(
        self,
        tenant_code: str,
        base_path: str = "secret/datasync/tenants",
    ) -> dict[str, Any]:
        """
        Fetch the connection secret stored for a tenant

        Args:
            tenant_code: Tenant identifier; one path segment
            base_path: Mount point and prefix under which tenants are stored

        Returns:
            Secret data (db_type, host, port, database, user, password, ...)

        Raises:
            ValueError: If tenant_code is not a safe path segment
            SecretNotFoundError: If the tenant has no secret
        """
        if not tenant_code or not _SAFE_SEGMENT.match(tenant_code):
            raise ValueError(
                f"Invalid tenant_code: {tenant_code!r}. "
                "Only alphanumeric characters, underscores, and hyphens are allowed."
            )

        secret_data = self.get_secret(f"{base_path.rstrip('/')}/{tenant_code}")
        logger.info(f"Fetched connection secret for tenant {tenant_code} from Vault")
        return secret_data
