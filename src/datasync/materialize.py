"""
Tabular materialization for bulk loading.

Turns a list of rows into a rectangular buffer with one column per
requested source column and every value in its generic text form, which
is the shape the drivers' bulk loaders consume.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import InvalidArgumentError
from .models import NULL, Row


@dataclass
class TabularBuffer:
    """Rectangular, column-ordered buffer of text values."""

    columns: list[str]
    rows: list[tuple[str | bytes | None, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def column_index(self, column: str) -> int:
        """
        Position of a column in the buffer.

        Raises:
            KeyError: If the buffer has no such column
        """
        try:
            return self.columns.index(column)
        except ValueError:
            raise KeyError(column) from None


def to_tabular(rows: Sequence[Row], columns: Sequence[str]) -> TabularBuffer:
    """
    Materialize rows over the given columns.

    A column absent from a row is materialized as null.

    Args:
        rows: Rows to materialize, in order
        columns: Source columns, in order

    Returns:
        TabularBuffer with len(rows) records of len(columns) values

    Raises:
        InvalidArgumentError: If rows or columns are empty
    """
    if not rows:
        raise InvalidArgumentError("Cannot materialize an empty row set")
    if not columns:
        raise InvalidArgumentError("Cannot materialize rows without columns")

    columns = list(columns)
    records = [
        tuple(row.get(column, NULL).to_text() for column in columns)
        for row in rows
    ]
    return TabularBuffer(columns=columns, rows=records)
