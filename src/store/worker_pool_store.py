"""Worker pool snapshot table."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.constants import WORKER_POOL_TABLE
from core.types import WorkerPoolInfo
from store.codec import (
    int_or_percent_from_text,
    int_or_percent_to_text,
    zones_from_text,
    zones_to_text,
)
from store.row_mapping import column_int, column_optional_int, column_str
from store.snapshot_table import SnapshotTable
from store.statements import Statement, keyed_snapshot_statements, latest_per_key_before_sql
from store.timestamps import (
    from_epoch_millis,
    optional_from_epoch_millis,
    optional_to_epoch_millis,
    to_epoch_millis,
)

SELECT_WORKER_POOL_INFOS_BEFORE = "select_worker_pool_info_before"

INSERT_COLUMNS = (
    "CreationTimestamp",
    "SnapshotTimestamp",
    "Name",
    "Namespace",
    "MachineType",
    "Architecture",
    "Minimum",
    "Maximum",
    "MaxSurge",
    "MaxUnavailable",
    "Zones",
    "DeletionTimestamp",
    "Hash",
)


class WorkerPoolRowMapper:
    """Maps WorkerPoolInfo to and from worker_pool_info rows."""

    def to_row(self, info: WorkerPoolInfo) -> tuple[object, ...]:
        return (
            to_epoch_millis(info.creation_timestamp),
            to_epoch_millis(info.snapshot_timestamp),
            info.name,
            info.namespace,
            info.machine_type,
            info.architecture,
            info.minimum,
            info.maximum,
            int_or_percent_to_text(info.max_surge),
            int_or_percent_to_text(info.max_unavailable),
            zones_to_text(info.zones),
            optional_to_epoch_millis(info.deletion_timestamp),
            info.hash,
        )

    def from_row(self, row: sqlite3.Row) -> WorkerPoolInfo:
        return WorkerPoolInfo(
            name=column_str(row, "Name"),
            namespace=column_str(row, "Namespace"),
            creation_timestamp=from_epoch_millis(column_int(row, "CreationTimestamp")),
            snapshot_timestamp=from_epoch_millis(column_int(row, "SnapshotTimestamp")),
            machine_type=column_str(row, "MachineType"),
            architecture=column_str(row, "Architecture"),
            minimum=column_int(row, "Minimum"),
            maximum=column_int(row, "Maximum"),
            max_surge=int_or_percent_from_text(column_str(row, "MaxSurge")) or 0,
            max_unavailable=int_or_percent_from_text(column_str(row, "MaxUnavailable")) or 0,
            zones=zones_from_text(column_str(row, "Zones")),
            deletion_timestamp=optional_from_epoch_millis(
                column_optional_int(row, "DeletionTimestamp")
            ),
            hash=column_str(row, "Hash"),
            row_id=column_int(row, "RowID"),
        )


class WorkerPoolStore(SnapshotTable[WorkerPoolInfo, str]):
    """Snapshots of worker pools keyed by pool name."""

    table_name = WORKER_POOL_TABLE
    key_column = "Name"
    key_field = "name"

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        return keyed_snapshot_statements(cls.table_name, cls.key_column, INSERT_COLUMNS) + (
            Statement(
                SELECT_WORKER_POOL_INFOS_BEFORE,
                latest_per_key_before_sql(cls.table_name, cls.key_column),
            ),
        )

    def load_before(self, snapshot_timestamp: datetime) -> list[WorkerPoolInfo]:
        """Load the latest snapshot of each pool captured before a cutoff.

        Raises:
            NotFoundError: If no pool was recorded before ``snapshot_timestamp``.
        """
        return self._query_many(SELECT_WORKER_POOL_INFOS_BEFORE, snapshot_timestamp)
