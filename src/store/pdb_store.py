"""Pod disruption budget snapshot table."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.constants import PDB_TABLE
from core.types import PodDisruptionBudgetInfo
from store.codec import (
    document_from_text,
    document_to_text,
    int_or_percent_from_text,
    int_or_percent_to_text,
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

SELECT_PDB_INFOS_BEFORE = "select_pdb_info_before"

INSERT_COLUMNS = (
    "UID",
    "Name",
    "Namespace",
    "Generation",
    "CreationTimestamp",
    "SnapshotTimestamp",
    "DeletionTimestamp",
    "MinAvailable",
    "MaxUnavailable",
    "Spec",
    "Hash",
)


class PodDisruptionBudgetRowMapper:
    """Maps PodDisruptionBudgetInfo to and from pdb_info rows."""

    def to_row(self, info: PodDisruptionBudgetInfo) -> tuple[object, ...]:
        return (
            info.uid,
            info.name,
            info.namespace,
            info.generation,
            to_epoch_millis(info.creation_timestamp),
            to_epoch_millis(info.snapshot_timestamp),
            optional_to_epoch_millis(info.deletion_timestamp),
            int_or_percent_to_text(info.min_available),
            int_or_percent_to_text(info.max_unavailable),
            document_to_text(info.spec),
            info.hash,
        )

    def from_row(self, row: sqlite3.Row) -> PodDisruptionBudgetInfo:
        return PodDisruptionBudgetInfo(
            uid=column_str(row, "UID"),
            name=column_str(row, "Name"),
            namespace=column_str(row, "Namespace"),
            creation_timestamp=from_epoch_millis(column_int(row, "CreationTimestamp")),
            snapshot_timestamp=from_epoch_millis(column_int(row, "SnapshotTimestamp")),
            generation=column_int(row, "Generation"),
            min_available=int_or_percent_from_text(column_str(row, "MinAvailable")),
            max_unavailable=int_or_percent_from_text(column_str(row, "MaxUnavailable")),
            spec=document_from_text(column_str(row, "Spec")),
            deletion_timestamp=optional_from_epoch_millis(
                column_optional_int(row, "DeletionTimestamp")
            ),
            hash=column_str(row, "Hash"),
            row_id=column_int(row, "RowID"),
        )


class PodDisruptionBudgetStore(SnapshotTable[PodDisruptionBudgetInfo, str]):
    """Snapshots of pod disruption budgets keyed by UID."""

    table_name = PDB_TABLE
    key_column = "UID"
    key_field = "uid"

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        return keyed_snapshot_statements(cls.table_name, cls.key_column, INSERT_COLUMNS) + (
            Statement(
                SELECT_PDB_INFOS_BEFORE,
                latest_per_key_before_sql(cls.table_name, cls.key_column),
            ),
        )

    def load_before(self, snapshot_timestamp: datetime) -> list[PodDisruptionBudgetInfo]:
        """Load the latest snapshot of each budget captured before a cutoff.

        Raises:
            NotFoundError: If no budget was recorded before the cutoff.
        """
        return self._query_many(SELECT_PDB_INFOS_BEFORE, snapshot_timestamp)
