"""
Unit tests for identifier quoting and parameter validation.

Tests database-native identifier quoting:
- PostgreSQL: double quotes, embedded quotes doubled
- SQL Server: brackets, embedded closing brackets doubled
"""

import pytest

from src.utils.database_types import DatabaseType
from src.utils.sql_safety import (
    quote_identifier,
    quote_table,
    validate_identifier,
    validate_integer_param,
)


class TestPostgreSQLQuoting:
    """Test PostgreSQL identifier quoting"""

    def test_quote_simple_name(self):
        """Test quoting a simple column name"""
        assert quote_identifier("customers", "postgresql") == '"customers"'

    def test_embedded_quote_is_doubled(self):
        """Test that an embedded double quote cannot close the identifier"""
        assert quote_identifier('a"b', "postgresql") == '"a""b"'

    def test_injection_attempt_stays_one_identifier(self):
        """Test that hostile text is quoted rather than executed"""
        result = quote_identifier('x"; DROP TABLE users--', "postgresql")
        assert result == '"x""; DROP TABLE users--"'

    def test_quote_table(self):
        """Test quoting schema.table"""
        assert quote_table("public", "orders", "postgresql") == '"public"."orders"'


class TestSQLServerQuoting:
    """Test SQL Server identifier quoting"""

    def test_quote_simple_name(self):
        """Test quoting a simple column name"""
        assert quote_identifier("customers", "sqlserver") == "[customers]"

    def test_closing_bracket_is_doubled(self):
        """Test that a closing bracket cannot end the identifier early"""
        assert quote_identifier("a]b", "sqlserver") == "[a]]b]"

    def test_names_with_spaces(self):
        """Test identifiers that need quoting to be valid at all"""
        assert quote_identifier("Order Date", "sqlserver") == "[Order Date]"

    def test_quote_table_with_catalog(self):
        """Test three-part names"""
        assert quote_table("dbo", "Orders", "sqlserver", catalog="acme_dw") == "[acme_dw].[dbo].[Orders]"


class TestValidation:
    """Test identifier and integer validation"""

    @pytest.mark.parametrize("identifier", ["", "a\x00b"])
    def test_reject_invalid_identifiers(self, identifier):
        """Test that empty and NUL-containing identifiers are rejected"""
        with pytest.raises(ValueError):
            validate_identifier(identifier)

    def test_quote_rejects_empty(self):
        """Test that quoting validates first"""
        with pytest.raises(ValueError):
            quote_identifier("", "sqlserver")

    @pytest.mark.parametrize("value", [0, 1, 1000])
    def test_accept_non_negative_integers(self, value):
        """Test valid integer parameters"""
        validate_integer_param(value, "top")

    @pytest.mark.parametrize("value", [-1, "10", 1.5, True, None])
    def test_reject_invalid_integers(self, value):
        """Test that non-integers, booleans and negatives are rejected"""
        with pytest.raises(ValueError, match="Invalid top"):
            validate_integer_param(value, "top")


class TestDatabaseType:
    """Test DatabaseType dialect helpers"""

    @pytest.mark.parametrize("alias,expected", [
        ("sqlserver", DatabaseType.SQLSERVER),
        ("MSSQL", DatabaseType.SQLSERVER),
        ("postgres", DatabaseType.POSTGRESQL),
        ("postgresql", DatabaseType.POSTGRESQL),
        ("pg", DatabaseType.POSTGRESQL),
    ])
    def test_parse_aliases(self, alias, expected):
        """Test configured names and aliases"""
        assert DatabaseType.parse(alias) is expected

    def test_parse_rejects_unknown(self):
        """Test unsupported database types"""
        with pytest.raises(ValueError, match="Unsupported database type"):
            DatabaseType.parse("oracle")

    def test_placeholders(self):
        """Test DB-API placeholder per dialect"""
        assert DatabaseType.SQLSERVER.get_placeholder() == "?"
        assert DatabaseType.POSTGRESQL.get_placeholder() == "%s"

    def test_row_version_types(self):
        """Test row-version surrogate detection"""
        assert DatabaseType.SQLSERVER.is_row_version_type("timestamp")
        assert DatabaseType.SQLSERVER.is_row_version_type("ROWVERSION")
        assert not DatabaseType.SQLSERVER.is_row_version_type("datetime2")
        assert not DatabaseType.POSTGRESQL.is_row_version_type("timestamp")
