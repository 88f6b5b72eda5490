"""
Tenant connection registry.

Maps a tenant code to the connection descriptor of its database. Tenants
are loaded from a JSON file, from the file named by ``DATASYNC_TENANTS_FILE``,
or fetched on demand from HashiCorp Vault.

Tenants file format:
    {
      "tenants": {
        "acme": {"db_type": "sqlserver", "host": "sql01", "port": 1433,
                 "database": "acme", "user": "sync", "password": "..."},
        "acme_dw": {"db_type": "postgresql", "host": "pg01",
                    "database": "acme_dw", "user": "sync"}
      }
    }

A missing password is read from ``DATASYNC_<TENANT>_PASSWORD``.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from src.utils.database_types import DatabaseType
from src.utils.vault_client import SecretNotFoundError, VaultClient

from .errors import InvalidArgumentError, TenantNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {
    DatabaseType.SQLSERVER: 1433,
    DatabaseType.POSTGRESQL: 5432,
}


def _password_env_var(tenant_code: str) -> str:
    return f"DATASYNC_{re.sub(r'[^A-Za-z0-9]', '_', tenant_code).upper()}_PASSWORD"


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Everything a driver needs to open a connection for one tenant."""

    tenant_code: str
    db_type: DatabaseType
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    odbc_driver: str = "ODBC Driver 18 for SQL Server"
    connection_string: str | None = field(default=None, repr=False)
    connect_timeout: int = 10
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, tenant_code: str, data: Mapping[str, Any]) -> "ConnectionDescriptor":
        """
        Build a descriptor from a tenants-file entry or a Vault secret.

        Raises:
            InvalidArgumentError: If db_type is missing or unsupported, or
                neither a connection string nor a host/database pair is given
        """
        try:
            db_type = DatabaseType.parse(data.get("db_type", ""))
        except ValueError as e:
            raise InvalidArgumentError(f"Tenant {tenant_code!r}: {e}") from e

        connection_string = data.get("connection_string")
        if not connection_string and not (data.get("host") and data.get("database")):
            raise InvalidArgumentError(
                f"Tenant {tenant_code!r} needs either connection_string or host and database"
            )

        password = data.get("password") or os.getenv(_password_env_var(tenant_code))
        port = data.get("port")

        return cls(
            tenant_code=tenant_code,
            db_type=db_type,
            host=data.get("host"),
            port=int(port) if port else DEFAULT_PORTS[db_type],
            database=data.get("database"),
            user=data.get("user") or data.get("username"),
            password=password,
            odbc_driver=data.get("odbc_driver", "ODBC Driver 18 for SQL Server"),
            connection_string=connection_string,
            connect_timeout=int(data.get("connect_timeout", 10)),
            options=dict(data.get("options", {})),
        )

    def same_server(self, other: "ConnectionDescriptor") -> bool:
        """Whether both descriptors point at the same database server."""
        return (
            self.db_type == other.db_type
            and self.host is not None
            and (self.host or "").lower() == (other.host or "").lower()
            and self.port == other.port
        )


class TenantRegistry:
    """In-memory registry of tenant connection descriptors."""

    def __init__(self, descriptors: Mapping[str, ConnectionDescriptor] | None = None):
        self._descriptors: dict[str, ConnectionDescriptor] = dict(descriptors or {})

    def __contains__(self, tenant_code: str) -> bool:
        return tenant_code in self._descriptors

    def register(self, descriptor: ConnectionDescriptor) -> None:
        self._descriptors[descriptor.tenant_code] = descriptor

    def tenant_codes(self) -> list[str]:
        return sorted(self._descriptors)

    def resolve(self, tenant_code: str) -> ConnectionDescriptor:
        """
        Resolve a tenant code to its connection descriptor.

        Raises:
            TenantNotFoundError: If the tenant code is unknown
        """
        try:
            return self._descriptors[tenant_code]
        except KeyError:
            raise TenantNotFoundError(tenant_code) from None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TenantRegistry":
        """Build a registry from the parsed tenants-file document."""
        tenants = data.get("tenants", data)
        return cls({
            code: ConnectionDescriptor.from_dict(code, entry)
            for code, entry in tenants.items()
        })

    @classmethod
    def from_file(cls, path: str | Path) -> "TenantRegistry":
        """Load a registry from a JSON tenants file."""
        with open(path, encoding="utf-8") as f:
            registry = cls.from_dict(json.load(f))
        logger.info(f"Loaded {len(registry.tenant_codes())} tenant(s) from {path}")
        return registry

    @classmethod
    def from_env(cls) -> "TenantRegistry":
        """
        Load a registry from the file named by DATASYNC_TENANTS_FILE.

        Raises:
            InvalidArgumentError: If the environment variable is not set
        """
        path = os.getenv("DATASYNC_TENANTS_FILE")
        if not path:
            raise InvalidArgumentError("DATASYNC_TENANTS_FILE is not set")
        return cls.from_file(path)


class VaultTenantRegistry(TenantRegistry):
    """
    Registry that fetches tenant descriptors from Vault on first use.

    Resolved descriptors are cached for the lifetime of the registry.
    """

    def __init__(
        self,
        vault_client: VaultClient | None = None,
        base_path: str = "secret/datasync/tenants",
    ):
        super().__init__()
        self.vault_client = vault_client or VaultClient()
        self.base_path = base_path

    def resolve(self, tenant_code: str) -> ConnectionDescriptor:
        if tenant_code in self:
            return super().resolve(tenant_code)

        try:
            secret = self.vault_client.get_tenant_secret(tenant_code, base_path=self.base_path)
        except (SecretNotFoundError, ValueError) as e:
            logger.error(f"No connection secret for tenant {tenant_code!r}: {e}")
            raise TenantNotFoundError(tenant_code) from e

        descriptor = ConnectionDescriptor.from_dict(tenant_code, secret)
        self.register(descriptor)
        return descriptor
