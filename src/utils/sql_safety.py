"""
SQL safety utilities for statement construction.

Provides identifier quoting and parameter validation for the statements the
sync engine generates. Identifiers are always quoted; embedded quote
characters are doubled so that catalog names containing spaces, dots or
brackets survive unchanged.
"""

from typing import Literal

DbType = Literal["postgresql", "sqlserver"]


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (table name, column name, etc.).

    Args:
        identifier: The identifier to validate

    Raises:
        ValueError: If the identifier is empty or contains a NUL character
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if "\x00" in identifier:
        raise ValueError(f"Invalid SQL identifier: {identifier!r}. NUL characters are not allowed.")


def quote_identifier(identifier: str, db_type: DbType) -> str:
    """
    Safely quote a single SQL identifier after validation.

    Args:
        identifier: The identifier to quote (table name, column name, etc.)
        db_type: Database type for proper quoting style

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        ValueError: If the identifier is invalid
    """
    validate_identifier(identifier)

    if db_type == "postgresql":
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'
    else:  # sqlserver
        escaped = identifier.replace("]", "]]")
        return f"[{escaped}]"


def quote_table(
    schema: str,
    table: str,
    db_type: DbType,
    catalog: str | None = None,
) -> str:
    """
    Quote a schema-qualified table name, optionally prefixed by a catalog.

    Args:
        schema: Schema name (e.g. "dbo" or "public")
        table: Table name
        db_type: Database type for proper quoting style
        catalog: Optional database name for a three-part reference

    Returns:
        Quoted, dot-joined identifier

    Raises:
        ValueError: If any part is invalid
    """
    parts = [schema, table]
    if catalog:
        parts.insert(0, catalog)
    return ".".join(quote_identifier(part, db_type) for part in parts)


def validate_integer_param(value: int, param_name: str, min_value: int = 0) -> None:
    """
    Validate an integer parameter for SQL queries.

    Args:
        value: The value to validate
        param_name: Name of the parameter (for error messages)
        min_value: Minimum allowed value (default 0)

    Raises:
        ValueError: If the value is not a valid integer or below minimum
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(
            f"Invalid {param_name}: {value!r}. Must be an integer."
        )

    if value < min_value:
        raise ValueError(
            f"Invalid {param_name}: {value}. Must be >= {min_value}."
        )
