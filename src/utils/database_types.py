"""
Database type enumeration for type-safe dialect handling.

Replaces hardcoded 'postgresql' and 'sqlserver' strings throughout the
codebase and carries the per-dialect statement details the sync engine needs.
"""

from enum import Enum

from .sql_safety import quote_identifier, quote_table


# Catalog data types that hold row-version surrogates rather than data
ROW_VERSION_TYPES = {
    "sqlserver": frozenset({"timestamp", "rowversion"}),
    "postgresql": frozenset(),
}


class DatabaseType(str, Enum):
    """
    Enumeration of supported database types.

    Inherits from str for JSON serialization compatibility and
    easy comparison with string values.
    """

    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"

    @classmethod
    def parse(cls, value: str) -> "DatabaseType":
        """
        Parse a configured database type, accepting common aliases.

        Args:
            value: Name such as "sqlserver", "mssql", "postgres" or "postgresql"

        Returns:
            DatabaseType enum value

        Raises:
            ValueError: If the name is not recognised
        """
        normalized = (value or "").strip().lower()
        if normalized in ("postgresql", "postgres", "pg"):
            return cls.POSTGRESQL
        if normalized in ("sqlserver", "mssql", "sql_server"):
            return cls.SQLSERVER
        raise ValueError(f"Unsupported database type: {value!r}")

    def get_placeholder(self) -> str:
        """Positional parameter placeholder for the dialect's DB-API driver."""
        if self == DatabaseType.POSTGRESQL:
            return "%s"
        return "?"

    def quote_identifier(self, identifier: str) -> str:
        """
        Quote identifier based on database type.

        Args:
            identifier: Column or table name

        Returns:
            Quoted identifier string
        """
        return quote_identifier(identifier, self.value)

    def quote_table(self, schema: str, table: str, catalog: str | None = None) -> str:
        """Quote a schema-qualified (optionally catalog-qualified) table name."""
        return quote_table(schema, table, self.value, catalog=catalog)

    def is_row_version_type(self, data_type: str) -> bool:
        """Whether a catalog data type is a row-version surrogate for this dialect."""
        return (data_type or "").strip().lower() in ROW_VERSION_TYPES[self.value]
