"""Row to snapshot mapping primitives.

This module binds parameters, runs registered statements and maps flat
``sqlite3.Row`` results into snapshot dataclasses through per-kind mappers.
Zero-row results on queries expecting data raise ``NotFoundError``.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Callable, Iterable, Protocol, TypeVar

from core.errors import ExecError, NotFoundError, ScanError
from store.statements import Statement
from store.timestamps import to_epoch_millis

_InfoT = TypeVar("_InfoT")


class RowMapper(Protocol[_InfoT]):
    """Bidirectional mapping between one snapshot kind and its table row."""

    def to_row(self, info: _InfoT) -> tuple[object, ...]:
        """Return insert parameters in statement column order."""
        ...

    def from_row(self, row: sqlite3.Row) -> _InfoT:
        """Build the snapshot for a result row."""
        ...


def normalize_params(params: Iterable[object]) -> tuple[object, ...]:
    """Convert timestamp parameters into UTC epoch milliseconds."""
    return tuple(
        to_epoch_millis(param) if isinstance(param, datetime) else param for param in params
    )


def query_one(
    connection: sqlite3.Connection,
    statement: Statement,
    params: Iterable[object],
    from_row: Callable[[sqlite3.Row], _InfoT],
) -> _InfoT:
    """Run a statement and map its first row.

    Args:
        connection: Open store connection.
        statement: Registered query statement.
        params: Query parameters; datetimes are normalized.
        from_row: Per-kind row mapping function.

    Returns:
        Mapped snapshot for the first result row.

    Raises:
        NotFoundError: If the query returns zero rows.
        ScanError: If the query fails or the row does not match the mapping.
        DecodeError: If a nested text column cannot be parsed.
    """
    bound = normalize_params(params)
    row = _run_query(connection, statement, bound).fetchone()
    if row is None:
        raise NotFoundError(statement.name, bound)
    return _map_row(statement, bound, row, from_row)


def query_many(
    connection: sqlite3.Connection,
    statement: Statement,
    params: Iterable[object],
    from_row: Callable[[sqlite3.Row], _InfoT],
) -> list[_InfoT]:
    """Run a statement and map every row in result order.

    Raises:
        NotFoundError: If the query returns zero rows.
        ScanError: If the query fails or a row does not match the mapping.
        DecodeError: If a nested text column cannot be parsed.
    """
    bound = normalize_params(params)
    rows = _run_query(connection, statement, bound).fetchall()
    if not rows:
        raise NotFoundError(statement.name, bound)
    return [_map_row(statement, bound, row, from_row) for row in rows]


def query_scalar(
    connection: sqlite3.Connection,
    statement: Statement,
    params: Iterable[object],
) -> object | None:
    """Run a statement and return the first column of the first row, if any."""
    bound = normalize_params(params)
    row = _run_query(connection, statement, bound).fetchone()
    if row is None:
        return None
    return row[0]


def execute_write(
    connection: sqlite3.Connection,
    statement: Statement,
    params: Iterable[object],
    key: object,
) -> sqlite3.Cursor:
    """Execute one insert or update statement atomically.

    Raises:
        ExecError: If the statement fails.
    """
    bound = normalize_params(params)
    try:
        return connection.execute(statement.sql, bound)
    except sqlite3.Error as error:
        raise ExecError(statement.name, key, str(error)) from error


def column_str(row: sqlite3.Row, column: str) -> str:
    """Read a text column, treating NULL as empty text."""
    value = row[column]
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"column {column} holds {type(value).__name__}, expected text")
    return value


def column_int(row: sqlite3.Row, column: str) -> int:
    """Read a non-null integer column."""
    value = row[column]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"column {column} holds {type(value).__name__}, expected integer")
    return value


def column_optional_int(row: sqlite3.Row, column: str) -> int | None:
    """Read a nullable integer column."""
    if row[column] is None:
        return None
    return column_int(row, column)


def _run_query(
    connection: sqlite3.Connection,
    statement: Statement,
    bound: tuple[object, ...],
) -> sqlite3.Cursor:
    try:
        return connection.execute(statement.sql, bound)
    except sqlite3.Error as error:
        raise ScanError(statement.name, f"query failed: {error}", bound) from error


def _map_row(
    statement: Statement,
    bound: tuple[object, ...],
    row: sqlite3.Row,
    from_row: Callable[[sqlite3.Row], _InfoT],
) -> _InfoT:
    try:
        return from_row(row)
    except (IndexError, KeyError, TypeError, ValueError) as error:
        raise ScanError(statement.name, str(error), bound) from error
