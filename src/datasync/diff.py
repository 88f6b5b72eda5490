"""
Key-based diff between source rows and destination keys.

A source row is missing at the destination when its key tuple does not
appear among the destination's key tuples. Comparison is exact equality of
tagged scalars. A key containing a null never matches anything, so such
rows always diff as new.
"""

from collections.abc import Iterable, Sequence

from .models import NULL, Row, Scalar


def key_tuple(row: Row, key_columns: Sequence[str]) -> tuple[Scalar, ...]:
    """Key values of a row in key column order; missing columns read as null."""
    return tuple(row.get(column, NULL) for column in key_columns)


def diff_rows(
    rows: Sequence[Row],
    destination_keys: Iterable[Row],
    key_columns: Sequence[str],
) -> list[Row]:
    """
    Select the source rows whose key is absent from the destination.

    Args:
        rows: Source rows, in fetch order
        destination_keys: Destination rows holding at least the key columns
        key_columns: Columns identifying a row; empty means every row is new

    Returns:
        Missing rows in their original source order
    """
    if not key_columns:
        return list(rows)

    existing = set()
    for key_row in destination_keys:
        key = key_tuple(key_row, key_columns)
        if not any(value.is_null for value in key):
            existing.add(key)

    missing = []
    for row in rows:
        key = key_tuple(row, key_columns)
        if any(value.is_null for value in key) or key not in existing:
            missing.append(row)
    return missing
