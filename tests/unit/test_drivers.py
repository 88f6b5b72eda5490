"""
Unit tests for the SQL Server and PostgreSQL drivers.

DB-API connections and cursors are mocked; no database is required.
"""

from unittest.mock import MagicMock, patch

import pytest

from src.datasync.drivers import DatabaseDriver, create_driver
from src.datasync.drivers.postgres import PostgresDriver
from src.datasync.materialize import TabularBuffer
from src.datasync.models import TableIdentity
from src.datasync.registry import ConnectionDescriptor
from src.utils.database_types import DatabaseType


def _descriptor(db_type=DatabaseType.POSTGRESQL, **overrides):
    values = dict(
        tenant_code="acme",
        db_type=db_type,
        host="db01",
        port=5432 if db_type == DatabaseType.POSTGRESQL else 1433,
        database="acme",
        user="sync",
        password="s3cret",
    )
    values.update(overrides)
    return ConnectionDescriptor(**values)


def _connection(description=(), records=(), rowcount=0):
    conn = MagicMock()
    cursor = conn.cursor.return_value
    cursor.description = [(name,) for name in description]
    cursor.fetchall.return_value = list(records)
    cursor.rowcount = rowcount
    return conn, cursor


class TestBaseDriver:
    """Test DatabaseDriver query and execute helpers"""

    def setup_method(self):
        """Set up test fixtures."""
        self.driver = PostgresDriver(_descriptor())

    def test_query_materializes_rows(self):
        """Test that records are keyed by the cursor description"""
        conn, cursor = _connection(("id", "name"), [(1, "a"), (2, None)])

        rows = self.driver.query(conn, "SELECT id, name FROM t WHERE id > %s", [0])

        cursor.execute.assert_called_once_with("SELECT id, name FROM t WHERE id > %s", (0,))
        assert [row.as_dict() for row in rows] == [{"id": 1, "name": "a"}, {"id": 2, "name": None}]
        assert rows[1]["name"].is_null
        cursor.close.assert_called_once()

    def test_query_without_params(self):
        """Test that statements without parameters are executed bare"""
        conn, cursor = _connection(("id",), [])

        assert self.driver.query(conn, "SELECT id FROM t") == []
        cursor.execute.assert_called_once_with("SELECT id FROM t")

    def test_execute_returns_rowcount(self):
        """Test execute returns the driver rowcount and closes the cursor"""
        conn, cursor = _connection(rowcount=1)

        assert self.driver.execute(conn, "INSERT INTO t (id) VALUES (%s)", [5]) == 1
        cursor.close.assert_called_once()

    def test_cursor_closed_on_error(self):
        """Test that driver errors propagate and the cursor is closed"""
        conn, cursor = _connection()
        cursor.execute.side_effect = RuntimeError("syntax error")

        with pytest.raises(RuntimeError):
            self.driver.execute(conn, "INSERT")
        cursor.close.assert_called_once()

    def test_fetch_primary_key(self):
        """Test primary key lookup binds table and schema with the dialect placeholder"""
        conn, cursor = _connection(("COLUMN_NAME",), [("order_id",), ("line_no",)])

        keys = self.driver.fetch_primary_key(conn, TableIdentity("public", "lines"))

        statement, params = cursor.execute.call_args[0]
        assert "tc.TABLE_NAME = %s AND tc.TABLE_SCHEMA = %s" in statement
        assert params == ("lines", "public")
        assert keys == ["order_id", "line_no"]

    def test_connect_closes_on_error(self):
        """Test that the scoped connection closes when the block raises"""
        conn = MagicMock(closed=False)
        driver = PostgresDriver(_descriptor())

        with patch.object(driver, "_create_connection", return_value=conn):
            with pytest.raises(ValueError):
                with driver.connect():
                    raise ValueError("boom")

        conn.close.assert_called_once()

    def test_abstract_methods(self):
        """Test that the base class leaves dialect work to subclasses"""
        driver = DatabaseDriver(_descriptor())

        with pytest.raises(NotImplementedError):
            driver.fetch_columns(None, TableIdentity("dbo", "t"))

    def test_repr_hides_password(self):
        """Test the driver repr"""
        assert "s3cret" not in repr(self.driver)
        assert "acme" in repr(self.driver)


class TestPostgresDriver:
    """Test PostgresDriver"""

    @patch('src.datasync.drivers.postgres.psycopg2.extras.register_default_jsonb')
    @patch('src.datasync.drivers.postgres.psycopg2.extras.register_default_json')
    @patch('src.datasync.drivers.postgres.psycopg2.connect')
    def test_connection_parameters(self, mock_connect, mock_json, mock_jsonb):
        """Test keyword connection with autocommit and json fetched as text"""
        driver = PostgresDriver(_descriptor(options={"sslmode": "require"}))

        with driver.connect() as conn:
            assert conn is mock_connect.return_value

        mock_connect.assert_called_once_with(
            host="db01",
            port=5432,
            database="acme",
            user="sync",
            password="s3cret",
            connect_timeout=10,
            sslmode="require",
        )
        conn.set_session.assert_called_once_with(autocommit=True)

        for register in (mock_json, mock_jsonb):
            args, kwargs = register.call_args
            assert args == (conn,)
            assert kwargs["loads"]('{"a": 1}') == '{"a": 1}'

    @patch('src.datasync.drivers.postgres.psycopg2.extras.register_default_jsonb')
    @patch('src.datasync.drivers.postgres.psycopg2.extras.register_default_json')
    @patch('src.datasync.drivers.postgres.psycopg2.connect')
    def test_connection_string(self, mock_connect, mock_json, mock_jsonb):
        """Test that a raw connection string is passed through"""
        driver = PostgresDriver(_descriptor(connection_string="dbname=acme"))

        with driver.connect():
            pass

        mock_connect.assert_called_once_with("dbname=acme")

    def test_fetch_columns(self):
        """Test catalog rows become ColumnInfo"""
        conn, _ = _connection(
            ("column_name", "data_type", "is_identity", "is_computed", "ordinal_position"),
            [("id", "integer", True, False, 1), ("total", "numeric", False, False, 2)],
        )

        columns = PostgresDriver(_descriptor()).fetch_columns(conn, TableIdentity("public", "orders"))

        assert [c.name for c in columns] == ["id", "total"]
        assert columns[0].is_identity is True
        assert columns[1].ordinal == 2

    @patch('src.datasync.drivers.postgres.psycopg2.extras.execute_values')
    def test_bulk_load(self, mock_execute_values):
        """Test that the mapping selects and orders buffer columns"""
        conn, cursor = _connection()
        buffer = TabularBuffer(["id", "note", "total"], [("1", "a", "9.5"), ("2", None, "3")])

        loaded = PostgresDriver(_descriptor()).bulk_load(
            conn, buffer, TableIdentity("public", "orders"), {"total": "total", "id": "id"}, 1000,
        )

        assert loaded == 2
        args, kwargs = mock_execute_values.call_args
        assert args[0] is cursor
        assert args[1] == 'INSERT INTO "public"."orders" ("total", "id") VALUES %s'
        assert args[2] == [("9.5", "1"), ("3", "2")]
        assert kwargs == {"page_size": 1000}
        cursor.close.assert_called_once()


class TestSQLServerDriver:
    """Test SQLServerDriver"""

    def setup_method(self):
        """Set up test fixtures."""
        pytest.importorskip("pyodbc")
        from src.datasync.drivers.sqlserver import SQLServerDriver
        self.driver = SQLServerDriver(_descriptor(DatabaseType.SQLSERVER, options={"ApplicationIntent": "ReadOnly"}))

    def test_connection_string(self):
        """Test ODBC connection string assembly"""
        conn_str = self.driver._connection_string()

        assert conn_str.startswith("DRIVER={ODBC Driver 18 for SQL Server};SERVER=db01,1433;DATABASE=acme;")
        assert "UID=sync;PWD=s3cret;" in conn_str
        assert conn_str.endswith("ApplicationIntent=ReadOnly;")

    def test_connect_sets_autocommit(self):
        """Test that connections are opened with autocommit and the configured timeout"""
        with patch('src.datasync.drivers.sqlserver.pyodbc.connect') as mock_connect:
            with self.driver.connect() as conn:
                assert conn.autocommit is True

        assert mock_connect.call_args.kwargs == {"timeout": 10}
        conn.close.assert_called_once()

    def test_bulk_load_batches(self):
        """Test fast_executemany with one call per batch"""
        conn, cursor = _connection()
        buffer = TabularBuffer(["id", "name"], [(str(i), f"n{i}") for i in range(5)])

        loaded = self.driver.bulk_load(
            conn, buffer, TableIdentity("dbo", "Orders"), {"id": "id", "name": "name"}, 2,
        )

        assert loaded == 5
        assert cursor.fast_executemany is True
        assert cursor.executemany.call_count == 3
        statement, first_batch = cursor.executemany.call_args_list[0][0]
        assert statement == "INSERT INTO [dbo].[Orders] ([id], [name]) VALUES (?, ?)"
        assert first_batch == [("0", "n0"), ("1", "n1")]
        assert cursor.executemany.call_args_list[2][0][1] == [("4", "n4")]


class TestCreateDriver:
    """Test create_driver dispatch"""

    def test_postgres(self):
        """Test PostgreSQL descriptors get a PostgresDriver"""
        assert isinstance(create_driver(_descriptor()), PostgresDriver)

    def test_sqlserver(self):
        """Test SQL Server descriptors get a SQLServerDriver"""
        pytest.importorskip("pyodbc")
        from src.datasync.drivers.sqlserver import SQLServerDriver

        driver = create_driver(_descriptor(DatabaseType.SQLSERVER))

        assert isinstance(driver, SQLServerDriver)
        assert driver.error_types
