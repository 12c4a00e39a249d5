"""Pod snapshot table.

Pods are keyed by UID for deletion and dedup lookups, so a pod recreated
under the same name starts a separate history.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.constants import POD_TABLE
from core.types import PodInfo, PodScheduleStatus
from store.codec import (
    document_from_text,
    document_to_text,
    labels_from_text,
    labels_to_text,
    resources_from_text,
    resources_to_text,
)
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

SELECT_POD_INFOS_BEFORE = "select_pod_info_before"
SELECT_LATEST_POD_INFO_WITH_NAME = "select_latest_pod_info_with_name"
SELECT_LATEST_POD_INFOS_BEFORE_SNAPSHOT_TIME = "select_latest_pod_info_before_snapshot_time"
SELECT_UNSCHEDULED_POD_INFOS_BEFORE = "select_unscheduled_pod_info_before"
SELECT_SCHEDULED_POD_INFOS_BEFORE = "select_scheduled_pod_info_before"

INSERT_COLUMNS = (
    "CreationTimestamp",
    "SnapshotTimestamp",
    "Name",
    "Namespace",
    "UID",
    "NodeName",
    "NominatedNodeName",
    "Labels",
    "Requests",
    "Spec",
    "ScheduleStatus",
    "DeletionTimestamp",
    "Hash",
)


class PodRowMapper:
    """Maps PodInfo to and from pod_info rows."""

    def to_row(self, info: PodInfo) -> tuple[object, ...]:
        return (
            to_epoch_millis(info.creation_timestamp),
            to_epoch_millis(info.snapshot_timestamp),
            info.name,
            info.namespace,
            info.uid,
            info.node_name,
            info.nominated_node_name,
            labels_to_text(info.labels),
            resources_to_text(info.requests, "requests"),
            document_to_text(info.spec),
            int(info.schedule_status),
            optional_to_epoch_millis(info.deletion_timestamp),
            info.hash,
        )

    def from_row(self, row: sqlite3.Row) -> PodInfo:
        return PodInfo(
            name=column_str(row, "Name"),
            namespace=column_str(row, "Namespace"),
            uid=column_str(row, "UID"),
            creation_timestamp=from_epoch_millis(column_int(row, "CreationTimestamp")),
            snapshot_timestamp=from_epoch_millis(column_int(row, "SnapshotTimestamp")),
            node_name=column_str(row, "NodeName"),
            nominated_node_name=column_str(row, "NominatedNodeName"),
            labels=labels_from_text(column_str(row, "Labels")),
            requests=resources_from_text(column_str(row, "Requests"), "requests"),
            spec=document_from_text(column_str(row, "Spec")),
            schedule_status=PodScheduleStatus(column_int(row, "ScheduleStatus")),
            deletion_timestamp=optional_from_epoch_millis(
                column_optional_int(row, "DeletionTimestamp")
            ),
            hash=column_str(row, "Hash"),
            row_id=column_int(row, "RowID"),
        )


class PodStore(SnapshotTable[PodInfo, str]):
    """Snapshots of pods keyed by UID."""

    table_name = POD_TABLE
    key_column = "UID"
    key_field = "uid"

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        table, key = cls.table_name, cls.key_column
        return keyed_snapshot_statements(table, key, INSERT_COLUMNS) + (
            Statement(
                SELECT_POD_INFOS_BEFORE,
                f"SELECT * FROM {table} WHERE CreationTimestamp < ? ORDER BY RowID",
            ),
            Statement(
                SELECT_LATEST_POD_INFO_WITH_NAME,
                f"SELECT * FROM {table} WHERE Name=? ORDER BY RowID DESC LIMIT 1",
            ),
            Statement(
                SELECT_LATEST_POD_INFOS_BEFORE_SNAPSHOT_TIME,
                latest_per_key_before_sql(table, key),
            ),
            Statement(
                SELECT_UNSCHEDULED_POD_INFOS_BEFORE,
                latest_per_key_before_sql(table, key, f"NodeName = '' AND {NOT_DELETED_AS_OF}"),
            ),
            Statement(
                SELECT_SCHEDULED_POD_INFOS_BEFORE,
                latest_per_key_before_sql(table, key, f"NodeName != '' AND {NOT_DELETED_AS_OF}"),
            ),
        )

    def load_before(self, creation_timestamp: datetime) -> list[PodInfo]:
        """Load every pod row created before a cutoff, deleted or not.

        Raises:
            NotFoundError: If no pod row was created before the cutoff.
        """
        return self._query_many(SELECT_POD_INFOS_BEFORE, creation_timestamp)

    def load_latest_with_name(self, name: str) -> PodInfo:
        """Load the most recently inserted row of any pod named ``name``.

        Raises:
            NotFoundError: If no pod with that name was recorded.
        """
        return self._query_one(SELECT_LATEST_POD_INFO_WITH_NAME, name)

    def load_latest_before_snapshot_time(self, snapshot_timestamp: datetime) -> list[PodInfo]:
        """Load the latest snapshot of each pod captured before a cutoff.

        Raises:
            NotFoundError: If no pod was recorded before the cutoff.
        """
        return self._query_many(SELECT_LATEST_POD_INFOS_BEFORE_SNAPSHOT_TIME, snapshot_timestamp)

    def load_unscheduled_before(self, snapshot_timestamp: datetime) -> list[PodInfo]:
        """Load live pods whose latest snapshot before a cutoff has no node.

        Raises:
            NotFoundError: If no pod was recorded before the cutoff.
        """
        return self._query_many_as_of(
            SELECT_UNSCHEDULED_POD_INFOS_BEFORE, snapshot_timestamp, snapshot_timestamp
        )

    def load_scheduled_before(self, snapshot_timestamp: datetime) -> list[PodInfo]:
        """Load live pods whose latest snapshot before a cutoff is bound to a node.

        Raises:
            NotFoundError: If no pod was recorded before the cutoff.
        """
        return self._query_many_as_of(
            SELECT_SCHEDULED_POD_INFOS_BEFORE, snapshot_timestamp, snapshot_timestamp
        )
