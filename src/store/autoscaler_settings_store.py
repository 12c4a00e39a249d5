"""Cluster-autoscaler settings snapshot table.

A cluster runs one autoscaler, so settings snapshots have no natural key and
are looked up by recency or by hash.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.constants import AUTOSCALER_SETTINGS_TABLE
from core.logging_config import get_logger
from core.types import AutoscalerSettingsInfo, HashCount
from store.hashing import ensure_hash
from store.row_mapping import (
    column_int,
    column_str,
    execute_write,
    query_many,
    query_one,
    query_scalar,
)
from store.statements import Statement, StatementRegistry
from store.timestamps import from_epoch_millis, to_epoch_millis

_LOGGER = get_logger(__name__)

INSERT_CA_SETTINGS_INFO = "insert_ca_settings_info"
SELECT_LATEST_CA_SETTINGS_INFO = "select_latest_ca_settings_info"
SELECT_CA_SETTINGS_INFO_WITH_HASH = "select_ca_settings_info_with_hash"
COUNT_CA_SETTINGS_INFO_WITH_HASH = "count_ca_settings_info_with_hash"
SELECT_CA_SETTINGS_INFOS_BEFORE = "select_ca_settings_info_before"

_TABLE = AUTOSCALER_SETTINGS_TABLE


class AutoscalerSettingsRowMapper:
    """Maps AutoscalerSettingsInfo to and from ca_settings_info rows."""

    def to_row(self, info: AutoscalerSettingsInfo) -> tuple[object, ...]:
        return (
            to_epoch_millis(info.snapshot_timestamp),
            info.expander,
            info.max_nodes_total,
            info.priorities,
            info.hash,
        )

    def from_row(self, row: sqlite3.Row) -> AutoscalerSettingsInfo:
        return AutoscalerSettingsInfo(
            snapshot_timestamp=from_epoch_millis(column_int(row, "SnapshotTimestamp")),
            expander=column_str(row, "Expander"),
            max_nodes_total=column_int(row, "MaxNodesTotal"),
            priorities=column_str(row, "Priorities"),
            hash=column_str(row, "Hash"),
            row_id=column_int(row, "RowID"),
        )


class AutoscalerSettingsStore:
    """Append-only store for autoscaler settings snapshots."""

    def __init__(self, connection: sqlite3.Connection, registry: StatementRegistry) -> None:
        self._connection = connection
        self._registry = registry
        self._mapper = AutoscalerSettingsRowMapper()

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        return (
            Statement(
                INSERT_CA_SETTINGS_INFO,
                f"INSERT INTO {_TABLE}(SnapshotTimestamp,Expander,MaxNodesTotal,Priorities,Hash) "
                "VALUES(?,?,?,?,?)",
            ),
            Statement(
                SELECT_LATEST_CA_SETTINGS_INFO,
                f"SELECT * FROM {_TABLE} ORDER BY RowID DESC LIMIT 1",
            ),
            Statement(
                SELECT_CA_SETTINGS_INFO_WITH_HASH,
                f"SELECT * FROM {_TABLE} WHERE Hash=? ORDER BY RowID DESC LIMIT 1",
            ),
            Statement(
                COUNT_CA_SETTINGS_INFO_WITH_HASH,
                f"SELECT COUNT(*) FROM {_TABLE} WHERE Hash=?",
            ),
            Statement(
                SELECT_CA_SETTINGS_INFOS_BEFORE,
                f"SELECT * FROM {_TABLE} WHERE SnapshotTimestamp < ? ORDER BY RowID",
            ),
        )

    def store(self, info: AutoscalerSettingsInfo) -> int:
        """Append one settings snapshot, computing its hash when unset.

        Raises:
            ExecError: If the insert fails.
        """
        info = ensure_hash(info)
        statement = self._registry.get(INSERT_CA_SETTINGS_INFO)
        cursor = execute_write(self._connection, statement, self._mapper.to_row(info), info.hash)
        row_id = int(cursor.lastrowid or 0)
        _LOGGER.info(
            "snapshot_stored",
            table=_TABLE,
            row_id=row_id,
            expander=info.expander,
            max_nodes_total=info.max_nodes_total,
            hash=info.hash,
        )
        return row_id

    def load_latest(self) -> AutoscalerSettingsInfo:
        """Load the most recently recorded settings.

        Raises:
            NotFoundError: If no settings were recorded.
        """
        statement = self._registry.get(SELECT_LATEST_CA_SETTINGS_INFO)
        return query_one(self._connection, statement, (), self._mapper.from_row)

    def load_with_hash(self, hash_value: str) -> AutoscalerSettingsInfo:
        """Load the most recent settings snapshot carrying ``hash_value``.

        Raises:
            NotFoundError: If no snapshot has that hash.
        """
        statement = self._registry.get(SELECT_CA_SETTINGS_INFO_WITH_HASH)
        return query_one(self._connection, statement, (hash_value,), self._mapper.from_row)

    def count_with_hash(self, hash_value: str) -> HashCount:
        """Count settings snapshots carrying ``hash_value``."""
        statement = self._registry.get(COUNT_CA_SETTINGS_INFO_WITH_HASH)
        value = query_scalar(self._connection, statement, (hash_value,))
        return HashCount.of(int(value or 0))

    def load_before(self, snapshot_timestamp: datetime) -> list[AutoscalerSettingsInfo]:
        """Load settings snapshots captured before a cutoff in insertion order.

        Raises:
            NotFoundError: If nothing was recorded before the cutoff.
        """
        statement = self._registry.get(SELECT_CA_SETTINGS_INFOS_BEFORE)
        return query_many(
            self._connection, statement, (snapshot_timestamp,), self._mapper.from_row
        )
