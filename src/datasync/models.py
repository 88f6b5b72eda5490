"""
Data model for table synchronization.

Rows travel between the source and the destination as ordered mappings of
column name to a tagged ``Scalar``. Every comparison the diff engine makes
and every value the transfer executor writes goes through that variant.
"""

import json
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from src.utils.database_types import DatabaseType


class ScalarKind(str, Enum):
    """Tag of a scalar value."""

    NULL = "null"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    BINARY = "binary"
    ARRAY = "array"


def _freeze(value: Any) -> Any:
    # Array elements are kept hashable: nested lists become tuples, documents JSON text
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


def _timespec(value: datetime | time) -> str:
    # Whole milliseconds render as .fff, which SQL Server's legacy datetime accepts
    if value.microsecond and value.microsecond % 1000 == 0:
        return "milliseconds"
    return "auto"


def _array_literal(items: tuple) -> str:
    """PostgreSQL array input syntax, e.g. ``{1,NULL,"a b"}``."""
    parts = []
    for item in items:
        if isinstance(item, tuple):
            parts.append(_array_literal(item))
            continue
        scalar = Scalar.of(item)
        text = scalar.to_text()
        if text is None:
            parts.append("NULL")
        elif scalar.kind in (ScalarKind.NUMBER, ScalarKind.BOOLEAN):
            parts.append(text)
        else:
            if isinstance(text, bytes):
                text = "\\x" + text.hex()
            escaped = text.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'"{escaped}"')
    return "{" + ",".join(parts) + "}"


@dataclass(frozen=True)
class Scalar:
    """
    Tagged scalar value.

    Two scalars are equal only when both the tag and the value are equal, so
    ``Scalar.of(True) != Scalar.of(1)`` while ``Scalar.of(1) == Scalar.of(Decimal("1"))``.
    """

    kind: ScalarKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> "Scalar":
        """
        Wrap a driver value in its tagged form.

        JSON documents are carried as their JSON text and arrays as tuples.
        Values with no dedicated tag (UUIDs, intervals, ...) are carried as text.
        """
        if isinstance(value, Scalar):
            return value
        if value is None:
            return NULL
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(ScalarKind.BOOLEAN, value)
        if isinstance(value, (int, float, Decimal)):
            return cls(ScalarKind.NUMBER, value)
        if isinstance(value, str):
            return cls(ScalarKind.TEXT, value)
        if isinstance(value, (datetime, date, time)):
            return cls(ScalarKind.DATETIME, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(ScalarKind.BINARY, bytes(value))
        if isinstance(value, Mapping):
            return cls(ScalarKind.TEXT, json.dumps(value, default=str))
        if isinstance(value, (list, tuple)):
            return cls(ScalarKind.ARRAY, _freeze(value))
        return cls(ScalarKind.TEXT, str(value))

    @property
    def is_null(self) -> bool:
        return self.kind is ScalarKind.NULL

    def to_param(self) -> Any:
        """Value to bind as a statement parameter; arrays bind as lists."""
        if self.kind is ScalarKind.ARRAY:
            return _thaw(self.value)
        return self.value

    def to_text(self) -> str | bytes | None:
        """
        Generic text form used by the bulk path.

        Nulls stay ``None`` and binary values stay ``bytes``; everything else
        becomes a string the database can convert on insert.
        """
        if self.kind is ScalarKind.NULL:
            return None
        if self.kind is ScalarKind.BINARY:
            return self.value
        if self.kind is ScalarKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is ScalarKind.ARRAY:
            return _array_literal(self.value)
        if self.kind is ScalarKind.DATETIME:
            if isinstance(self.value, datetime):
                return self.value.isoformat(sep=" ", timespec=_timespec(self.value))
            if isinstance(self.value, time):
                return self.value.isoformat(timespec=_timespec(self.value))
            return self.value.isoformat()
        return str(self.value)


NULL = Scalar(ScalarKind.NULL)


class Row(Mapping[str, Scalar]):
    """
    Ordered, read-only mapping of column name to ``Scalar``.

    Column order is the order of the SELECT projection that produced the row.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | Iterable[tuple[str, Any]] = ()):
        items = values.items() if isinstance(values, Mapping) else values
        self._values: dict[str, Scalar] = {
            column: Scalar.of(value) for column, value in items
        }

    @classmethod
    def from_record(cls, columns: Sequence[str], record: Sequence[Any]) -> "Row":
        """Build a row from a cursor description and one fetched record."""
        return cls(zip(columns, record))

    def __getitem__(self, column: str) -> Scalar:
        return self._values[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return list(self._values.items()) == list(other._values.items())
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v.value!r}" for k, v in self._values.items())
        return f"Row({inner})"

    def raw(self, column: str) -> Any:
        """Untagged value for binding as a statement parameter; missing columns bind as NULL."""
        return self._values.get(column, NULL).to_param()

    def as_dict(self) -> dict[str, Any]:
        """Untagged copy of the row, in column order."""
        return {column: scalar.to_param() for column, scalar in self._values.items()}


RowPredicate = Callable[[Row], bool]


@dataclass(frozen=True)
class TableIdentity:
    """Addresses a table within a connection."""

    schema: str
    table_name: str
    # Database name; set when the table is addressed from another database
    catalog: str | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table_name}"

    def quoted(self, db_type: DatabaseType) -> str:
        return db_type.quote_table(self.schema, self.table_name, catalog=self.catalog)


@dataclass(frozen=True)
class ColumnInfo:
    """Catalog metadata for one column."""

    name: str
    data_type: str
    is_identity: bool = False
    is_computed: bool = False
    ordinal: int = 0


@dataclass(frozen=True)
class TransferPlan:
    """Statement and column sets built once per synchronization call."""

    select_statement: str
    source_columns: list[str]
    destination_columns: list[str]
    key_columns: list[str]


@dataclass
class SyncRequest:
    """Parameters of one synchronization call."""

    source_db: str
    destination_db: str
    table_name: str
    schema: str
    predicate: RowPredicate | None = None
    key_columns: list[str] | None = None
    bulk_insert: bool = True
    where_clause: str | None = None
    order_by_clause: str | None = None
    top: int | None = None


@dataclass
class SyncResult:
    """Outcome of one synchronization call."""

    table: str
    source_db: str
    destination_db: str
    source_rows: int = 0
    destination_keys: int = 0
    diff_rows: int = 0
    rows_written: int = 0
    strategy: str | None = None
    key_columns: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table": self.table,
            "source_db": self.source_db,
            "destination_db": self.destination_db,
            "source_rows": self.source_rows,
            "destination_keys": self.destination_keys,
            "diff_rows": self.diff_rows,
            "rows_written": self.rows_written,
            "strategy": self.strategy,
            "key_columns": list(self.key_columns),
            "duration_seconds": round(self.duration_seconds, 3),
            "timestamp": self.timestamp.isoformat(),
        }
