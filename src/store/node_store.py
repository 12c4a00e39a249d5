"""Node snapshot table."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime

from core.constants import NODE_TABLE
from core.types import NodeInfo
from store.codec import (
    labels_from_text,
    labels_to_text,
    resources_from_text,
    resources_to_text,
    taints_from_text,
    taints_to_text,
)
from store.hashing import strip_excluded_node_labels
from store.row_mapping import column_int, column_optional_int, column_str
from store.snapshot_table import SnapshotTable
from store.statements import (
    NOT_DELETED_AS_OF,
    Statement,
    keyed_snapshot_statements,
    latest_per_key_before_sql,
)
from store.timestamps import (
    from_epoch_millis,
    optional_from_epoch_millis,
    optional_to_epoch_millis,
    to_epoch_millis,
)

SELECT_NODE_INFOS_BEFORE = "select_node_info_before"
SELECT_LATEST_NODE_INFOS_BEFORE_NOT_DELETED = "select_latest_node_info_before_not_deleted"

INSERT_COLUMNS = (
    "CreationTimestamp",
    "SnapshotTimestamp",
    "Name",
    "Namespace",
    "ProviderID",
    "AllocatableVolumes",
    "Labels",
    "Taints",
    "Allocatable",
    "Capacity",
    "DeletionTimestamp",
    "Hash",
)


class NodeRowMapper:
    """Maps NodeInfo to and from node_info rows."""

    def to_row(self, info: NodeInfo) -> tuple[object, ...]:
        return (
            to_epoch_millis(info.creation_timestamp),
            to_epoch_millis(info.snapshot_timestamp),
            info.name,
            info.namespace,
            info.provider_id,
            info.allocatable_volumes,
            labels_to_text(info.labels),
            taints_to_text(info.taints),
            resources_to_text(info.allocatable, "allocatable"),
            resources_to_text(info.capacity, "capacity"),
            optional_to_epoch_millis(info.deletion_timestamp),
            info.hash,
        )

    def from_row(self, row: sqlite3.Row) -> NodeInfo:
        return NodeInfo(
            name=column_str(row, "Name"),
            namespace=column_str(row, "Namespace"),
            creation_timestamp=from_epoch_millis(column_int(row, "CreationTimestamp")),
            snapshot_timestamp=from_epoch_millis(column_int(row, "SnapshotTimestamp")),
            provider_id=column_str(row, "ProviderID"),
            allocatable_volumes=column_int(row, "AllocatableVolumes"),
            labels=labels_from_text(column_str(row, "Labels")),
            taints=taints_from_text(column_str(row, "Taints")),
            allocatable=resources_from_text(column_str(row, "Allocatable"), "allocatable"),
            capacity=resources_from_text(column_str(row, "Capacity"), "capacity"),
            deletion_timestamp=optional_from_epoch_millis(
                column_optional_int(row, "DeletionTimestamp")
            ),
            hash=column_str(row, "Hash"),
            row_id=column_int(row, "RowID"),
        )


class NodeStore(SnapshotTable[NodeInfo, str]):
    """Snapshots of nodes keyed by node name."""

    table_name = NODE_TABLE
    key_column = "Name"
    key_field = "name"

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        return keyed_snapshot_statements(cls.table_name, cls.key_column, INSERT_COLUMNS) + (
            Statement(
                SELECT_NODE_INFOS_BEFORE,
                f"SELECT * FROM {cls.table_name} WHERE CreationTimestamp < ? ORDER BY RowID",
            ),
            Statement(
                SELECT_LATEST_NODE_INFOS_BEFORE_NOT_DELETED,
                latest_per_key_before_sql(cls.table_name, cls.key_column, NOT_DELETED_AS_OF),
            ),
        )

    def store(self, info: NodeInfo) -> int:
        """Append one node snapshot without bookkeeping labels.

        Excluded labels never contribute to the hash, so stripping them first
        leaves it unchanged.
        """
        return super().store(replace(info, labels=strip_excluded_node_labels(info.labels)))

    def load_before(self, creation_timestamp: datetime) -> list[NodeInfo]:
        """Load every node row created before a cutoff, deleted or not.

        Raises:
            NotFoundError: If no node row was created before the cutoff.
        """
        return self._query_many(SELECT_NODE_INFOS_BEFORE, creation_timestamp)

    def load_latest_not_deleted_before(self, snapshot_timestamp: datetime) -> list[NodeInfo]:
        """Load the latest snapshot of each node not deleted as of a cutoff.

        Returns an empty list when nodes were recorded but all are deleted.

        Raises:
            NotFoundError: If no node was recorded before the cutoff.
        """
        return self._query_many_as_of(
            SELECT_LATEST_NODE_INFOS_BEFORE_NOT_DELETED, snapshot_timestamp, snapshot_timestamp
        )
