"""
Unit tests for the tabular materializer and the transfer executor.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from src.datasync.errors import InvalidArgumentError
from src.datasync.materialize import TabularBuffer, to_tabular
from src.datasync.models import Row, TableIdentity
from src.datasync.transfer import BULK_BATCH_SIZE, transfer_rows
from src.utils.database_types import DatabaseType


class TestToTabular:
    """Test to_tabular"""

    def test_text_form_and_order(self):
        """Test one text value per requested column, in column order"""
        rows = [
            Row({"id": 1, "paid": True, "at": datetime(2024, 5, 1, 12, 0), "note": None}),
            Row({"id": 2, "paid": False, "at": datetime(2024, 5, 2, 8, 30), "note": "x"}),
        ]

        buffer = to_tabular(rows, ["note", "id", "paid", "at"])

        assert buffer.columns == ["note", "id", "paid", "at"]
        assert buffer.rows == [
            (None, "1", "true", "2024-05-01 12:00:00"),
            ("x", "2", "false", "2024-05-02 08:30:00"),
        ]
        assert len(buffer) == 2

    def test_missing_column_is_null(self):
        """Test that a column absent from a row materializes as null"""
        buffer = to_tabular([Row({"id": 1})], ["id", "extra"])
        assert buffer.rows == [("1", None)]

    def test_empty_rows(self):
        """Test that an empty row set is rejected"""
        with pytest.raises(InvalidArgumentError):
            to_tabular([], ["id"])

    def test_empty_columns(self):
        """Test that an empty column list is rejected"""
        with pytest.raises(InvalidArgumentError):
            to_tabular([Row({"id": 1})], [])

    def test_column_index(self):
        """Test column lookup by name"""
        buffer = TabularBuffer(columns=["a", "b"])

        assert buffer.column_index("b") == 1
        with pytest.raises(KeyError):
            buffer.column_index("c")


class TestTransferRows:
    """Test transfer_rows"""

    def setup_method(self):
        """Set up test fixtures."""
        self.driver = Mock()
        self.driver.db_type = DatabaseType.SQLSERVER
        self.driver.bulk_load.side_effect = lambda conn, buffer, *args: len(buffer)
        self.conn = Mock()
        self.table = TableIdentity("dbo", "Orders")
        self.rows = [Row({"id": 1, "total": 10, "extra": "x"}), Row({"id": 2, "total": 20, "extra": "y"})]

    def test_empty_rows_is_noop(self):
        """Test that nothing is written for an empty diff"""
        assert transfer_rows(self.driver, self.conn, self.table, [], ["id"], ["id"]) == 0
        self.driver.bulk_load.assert_not_called()
        self.driver.execute.assert_not_called()

    def test_bulk_path(self):
        """Test materialization over source columns with an identity mapping"""
        written = transfer_rows(
            self.driver, self.conn, self.table, self.rows,
            ["id", "total", "extra"], ["id", "total"], bulk=True,
        )

        assert written == 2
        conn, buffer, table, mapping, batch_size = self.driver.bulk_load.call_args.args
        assert conn is self.conn
        assert table == self.table
        assert buffer.columns == ["id", "total", "extra"]
        assert buffer.rows == [("1", "10", "x"), ("2", "20", "y")]
        assert mapping == {"id": "id", "total": "total"}
        assert batch_size == BULK_BATCH_SIZE == 1000
        self.driver.execute.assert_not_called()

    def test_row_by_row_path(self):
        """Test one parameterized insert per row over destination columns"""
        written = transfer_rows(
            self.driver, self.conn, self.table, self.rows,
            ["id", "total", "extra"], ["id", "total"], bulk=False,
        )

        assert written == 2
        statement = "INSERT INTO [dbo].[Orders] ([id], [total]) VALUES (?, ?)"
        assert [c.args for c in self.driver.execute.call_args_list] == [
            (self.conn, statement, [1, 10]),
            (self.conn, statement, [2, 20]),
        ]
        self.driver.bulk_load.assert_not_called()

    def test_row_by_row_fails_fast(self):
        """Test that the first failure stops the remaining inserts"""
        rows = self.rows + [Row({"id": 3, "total": 30})]
        self.driver.execute.side_effect = [1, RuntimeError("constraint violation"), 1]

        with pytest.raises(RuntimeError, match="constraint violation"):
            transfer_rows(self.driver, self.conn, self.table, rows, ["id", "total"], ["id", "total"], bulk=False)

        assert self.driver.execute.call_count == 2

    def test_row_by_row_reports_progress(self):
        """Test that committed inserts are reported before a later failure"""
        rows = self.rows + [Row({"id": 3, "total": 30})]
        self.driver.execute.side_effect = [1, 1, RuntimeError("constraint violation")]
        progress = []

        with pytest.raises(RuntimeError):
            transfer_rows(
                self.driver, self.conn, self.table, rows, ["id", "total"], ["id", "total"],
                bulk=False, on_progress=progress.append,
            )

        assert progress == [1, 2]

    def test_bulk_reports_progress(self):
        """Test that the bulk path reports its loaded count"""
        progress = []

        transfer_rows(
            self.driver, self.conn, self.table, self.rows, ["id", "total"], ["id", "total"],
            on_progress=progress.append,
        )

        assert progress == [2]

    def test_bulk_errors_propagate(self):
        """Test that driver errors are not wrapped"""
        self.driver.bulk_load.side_effect = ConnectionError("lost")

        with pytest.raises(ConnectionError, match="lost"):
            transfer_rows(self.driver, self.conn, self.table, self.rows, ["id"], ["id"])

    def test_no_common_columns(self):
        """Test that rows cannot be written without shared columns"""
        with pytest.raises(InvalidArgumentError):
            transfer_rows(self.driver, self.conn, self.table, self.rows, ["id"], [])
