"""
Shared utilities for datasync

Provides:
- vault_client: HashiCorp Vault integration for tenant secrets
- metrics: Prometheus metrics for sync runs
- logging: Structured logging setup
- tracing: OpenTelemetry tracing
- sql_safety: Identifier validation and quoting
- database_types: Supported database dialects
"""

__version__ = "1.0.0"
__all__ = ["vault_client", "metrics", "logging", "tracing", "sql_safety", "database_types"]
