"""Generic append-only snapshot table.

This module implements the operations shared by every keyed, hashed snapshot
kind: insert-always store, soft delete, latest lookup and hash counting.
Kind modules subclass it with a row mapper and their as-of query variants.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import ClassVar, Generic, TypeVar

from core.errors import NotFoundError, RecorderStoreError, ScanError
from core.logging_config import get_logger
from core.types import HashCount
from store.hashing import ensure_hash
from store.row_mapping import (
    RowMapper,
    execute_write,
    query_many,
    query_one,
    query_scalar,
)
from store.statements import (
    Statement,
    StatementRegistry,
    count_before_op,
    count_with_key_and_hash_op,
    insert_op,
    select_latest_hash_op,
    select_latest_op,
    update_deletion_timestamp_op,
)

_LOGGER = get_logger(__name__)

InfoT = TypeVar("InfoT")
KeyT = TypeVar("KeyT")


class SnapshotTable(Generic[InfoT, KeyT]):
    """Append-only store for one snapshot kind.

    Rows are never updated except for their deletion timestamp, and several
    rows may share a natural key across time.
    """

    table_name: ClassVar[str]
    key_column: ClassVar[str]
    key_field: ClassVar[str]

    def __init__(
        self,
        connection: sqlite3.Connection,
        registry: StatementRegistry,
        mapper: RowMapper[InfoT],
    ) -> None:
        self._connection = connection
        self._registry = registry
        self._mapper = mapper

    def store(self, info: InfoT) -> int:
        """Append one snapshot row.

        Args:
            info: Snapshot to record; its hash is computed when unset.

        Returns:
            Generated row identifier.

        Raises:
            EncodeError: If a nested attribute cannot be serialized or hashed.
            ExecError: If the insert fails.
        """
        key = getattr(info, self.key_field)
        statement = self._statement(insert_op(self.table_name))
        try:
            info = ensure_hash(info)
            params = self._mapper.to_row(info)
            cursor = execute_write(self._connection, statement, params, key)
        except RecorderStoreError as error:
            _LOGGER.error(
                "snapshot_store_failed",
                table=self.table_name,
                key=key,
                error=str(error),
            )
            raise
        row_id = int(cursor.lastrowid or 0)
        _LOGGER.info(
            "snapshot_stored",
            table=self.table_name,
            key=key,
            row_id=row_id,
            hash=getattr(info, "hash"),
        )
        return row_id

    def update_deletion_timestamp(self, key: KeyT, deletion_timestamp: datetime) -> int:
        """Mark every live row of ``key`` as deleted at ``deletion_timestamp``.

        Rows already carrying a deletion timestamp keep it.

        Returns:
            Number of rows marked.

        Raises:
            ExecError: If the update fails.
        """
        statement = self._statement(update_deletion_timestamp_op(self.table_name))
        cursor = execute_write(
            self._connection, statement, (deletion_timestamp, key), key
        )
        _LOGGER.info(
            "deletion_timestamp_updated",
            table=self.table_name,
            key=key,
            rows_affected=cursor.rowcount,
        )
        return cursor.rowcount

    def load_latest(self, key: KeyT) -> InfoT:
        """Load the most recently inserted row of ``key``.

        Raises:
            NotFoundError: If nothing was recorded for ``key``.
        """
        return self._query_one(select_latest_op(self.table_name), key)

    def load_latest_hash(self, key: KeyT) -> str | None:
        """Return the hash of the most recent row of ``key``, or None."""
        statement = self._statement(select_latest_hash_op(self.table_name))
        value = query_scalar(self._connection, statement, (key,))
        if value is None:
            return None
        if not isinstance(value, str):
            raise ScanError(statement.name, f"hash holds {type(value).__name__}", (key,))
        return value

    def count_with_key_and_hash(self, key: KeyT, hash_value: str) -> HashCount:
        """Count rows of ``key`` carrying ``hash_value``.

        Returns:
            Tagged count; ``found`` is False when no row matched.

        Raises:
            ScanError: If the count query fails.
        """
        statement = self._statement(count_with_key_and_hash_op(self.table_name))
        return HashCount.of(_as_count(self._connection, statement, (key, hash_value)))

    def _statement(self, name: str) -> Statement:
        return self._registry.get(name)

    def _query_one(self, operation: str, *params: object) -> InfoT:
        return query_one(
            self._connection, self._statement(operation), params, self._mapper.from_row
        )

    def _query_many(self, operation: str, *params: object) -> list[InfoT]:
        return query_many(
            self._connection, self._statement(operation), params, self._mapper.from_row
        )

    def _query_many_as_of(self, operation: str, cutoff: datetime, *params: object) -> list[InfoT]:
        """Run a filtered as-of query, returning [] when rows exist but none match.

        Raises:
            NotFoundError: If nothing at all was recorded before ``cutoff``.
        """
        try:
            return self._query_many(operation, cutoff, *params)
        except NotFoundError:
            if self._count_before(cutoff) == 0:
                raise
            return []

    def _count_before(self, cutoff: datetime) -> int:
        statement = self._statement(count_before_op(self.table_name))
        return _as_count(self._connection, statement, (cutoff,))


def _as_count(
    connection: sqlite3.Connection, statement: Statement, params: tuple[object, ...]
) -> int:
    value = query_scalar(connection, statement, params)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScanError(statement.name, f"count holds {type(value).__name__}", params)
    return value
