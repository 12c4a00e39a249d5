"""Machine deployment snapshot table."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.constants import MACHINE_DEPLOYMENT_TABLE
from core.types import MachineDeploymentInfo
from store.codec import int_or_percent_from_text, int_or_percent_to_text
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

SELECT_MCD_INFOS_BEFORE = "select_mcd_info_before"
SELECT_LATEST_MCD_INFOS_BEFORE_NOT_DELETED = "select_latest_mcd_info_before_not_deleted"

INSERT_COLUMNS = (
    "CreationTimestamp",
    "SnapshotTimestamp",
    "Name",
    "Namespace",
    "Replicas",
    "PoolName",
    "Zone",
    "MaxSurge",
    "MaxUnavailable",
    "MachineClassName",
    "DeletionTimestamp",
    "Hash",
)


class MachineDeploymentRowMapper:
    """Maps MachineDeploymentInfo to and from mcd_info rows."""

    def to_row(self, info: MachineDeploymentInfo) -> tuple[object, ...]:
        return (
            to_epoch_millis(info.creation_timestamp),
            to_epoch_millis(info.snapshot_timestamp),
            info.name,
            info.namespace,
            info.replicas,
            info.pool_name,
            info.zone,
            int_or_percent_to_text(info.max_surge),
            int_or_percent_to_text(info.max_unavailable),
            info.machine_class_name,
            optional_to_epoch_millis(info.deletion_timestamp),
            info.hash,
        )

    def from_row(self, row: sqlite3.Row) -> MachineDeploymentInfo:
        return MachineDeploymentInfo(
            name=column_str(row, "Name"),
            namespace=column_str(row, "Namespace"),
            creation_timestamp=from_epoch_millis(column_int(row, "CreationTimestamp")),
            snapshot_timestamp=from_epoch_millis(column_int(row, "SnapshotTimestamp")),
            replicas=column_int(row, "Replicas"),
            pool_name=column_str(row, "PoolName"),
            zone=column_str(row, "Zone"),
            max_surge=int_or_percent_from_text(column_str(row, "MaxSurge")) or 0,
            max_unavailable=int_or_percent_from_text(column_str(row, "MaxUnavailable")) or 0,
            machine_class_name=column_str(row, "MachineClassName"),
            deletion_timestamp=optional_from_epoch_millis(
                column_optional_int(row, "DeletionTimestamp")
            ),
            hash=column_str(row, "Hash"),
            row_id=column_int(row, "RowID"),
        )


class MachineDeploymentStore(SnapshotTable[MachineDeploymentInfo, str]):
    """Snapshots of machine deployments keyed by name."""

    table_name = MACHINE_DEPLOYMENT_TABLE
    key_column = "Name"
    key_field = "name"

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        return keyed_snapshot_statements(cls.table_name, cls.key_column, INSERT_COLUMNS) + (
            Statement(
                SELECT_MCD_INFOS_BEFORE,
                latest_per_key_before_sql(cls.table_name, cls.key_column),
            ),
            Statement(
                SELECT_LATEST_MCD_INFOS_BEFORE_NOT_DELETED,
                latest_per_key_before_sql(cls.table_name, cls.key_column, NOT_DELETED_AS_OF),
            ),
        )

    def load_before(self, snapshot_timestamp: datetime) -> list[MachineDeploymentInfo]:
        """Load the latest snapshot of each deployment captured before a cutoff.

        Deleted deployments are included.

        Raises:
            NotFoundError: If no deployment was recorded before the cutoff.
        """
        return self._query_many(SELECT_MCD_INFOS_BEFORE, snapshot_timestamp)

    def load_latest_not_deleted_before(
        self, snapshot_timestamp: datetime
    ) -> list[MachineDeploymentInfo]:
        """Load deployments that existed and were not deleted as of a cutoff.

        Returns an empty list when deployments were recorded but all are deleted.

        Raises:
            NotFoundError: If no deployment was recorded before the cutoff.
        """
        return self._query_many_as_of(
            SELECT_LATEST_MCD_INFOS_BEFORE_NOT_DELETED, snapshot_timestamp, snapshot_timestamp
        )
