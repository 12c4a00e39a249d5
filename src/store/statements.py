"""Schema and named operation registry.

This module owns the table DDL and every SQL operation the store runs.
Operations are registered by name once at init, compiled against the live
schema, and looked up by name afterwards.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Iterable, Mapping

from core.constants import (
    AUTOSCALER_SETTINGS_TABLE,
    EVENT_TABLE,
    MACHINE_DEPLOYMENT_TABLE,
    NODE_TABLE,
    PDB_TABLE,
    POD_TABLE,
    WORKER_POOL_TABLE,
)
from core.errors import PrepareError


@dataclass(frozen=True)
class Statement:
    """One named SQL operation.

    Attributes:
        name: Registry operation name.
        sql: Parameterized SQL text using ``?`` placeholders.
    """

    name: str
    sql: str

    @property
    def param_count(self) -> int:
        """Number of positional parameters the statement binds."""
        return self.sql.count("?")


SCHEMA_TABLES: Mapping[str, str] = {
    WORKER_POOL_TABLE: f"""CREATE TABLE IF NOT EXISTS {WORKER_POOL_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        CreationTimestamp INTEGER NOT NULL,
        SnapshotTimestamp INTEGER NOT NULL,
        Name TEXT NOT NULL,
        Namespace TEXT NOT NULL,
        MachineType TEXT,
        Architecture TEXT,
        Minimum INTEGER,
        Maximum INTEGER,
        MaxSurge TEXT,
        MaxUnavailable TEXT,
        Zones TEXT,
        DeletionTimestamp INTEGER,
        Hash TEXT NOT NULL)""",
    MACHINE_DEPLOYMENT_TABLE: f"""CREATE TABLE IF NOT EXISTS {MACHINE_DEPLOYMENT_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        CreationTimestamp INTEGER NOT NULL,
        SnapshotTimestamp INTEGER NOT NULL,
        Name TEXT NOT NULL,
        Namespace TEXT NOT NULL,
        Replicas INTEGER,
        PoolName TEXT,
        Zone TEXT,
        MaxSurge TEXT,
        MaxUnavailable TEXT,
        MachineClassName TEXT,
        DeletionTimestamp INTEGER,
        Hash TEXT NOT NULL)""",
    NODE_TABLE: f"""CREATE TABLE IF NOT EXISTS {NODE_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        CreationTimestamp INTEGER NOT NULL,
        SnapshotTimestamp INTEGER NOT NULL,
        Name TEXT NOT NULL,
        Namespace TEXT NOT NULL,
        ProviderID TEXT,
        AllocatableVolumes INTEGER,
        Labels TEXT,
        Taints TEXT,
        Allocatable TEXT,
        Capacity TEXT,
        DeletionTimestamp INTEGER,
        Hash TEXT NOT NULL)""",
    POD_TABLE: f"""CREATE TABLE IF NOT EXISTS {POD_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        CreationTimestamp INTEGER NOT NULL,
        SnapshotTimestamp INTEGER NOT NULL,
        Name TEXT NOT NULL,
        Namespace TEXT NOT NULL,
        UID TEXT NOT NULL,
        NodeName TEXT,
        NominatedNodeName TEXT,
        Labels TEXT,
        Requests TEXT,
        Spec TEXT,
        ScheduleStatus INTEGER,
        DeletionTimestamp INTEGER,
        Hash TEXT NOT NULL)""",
    PDB_TABLE: f"""CREATE TABLE IF NOT EXISTS {PDB_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        UID TEXT NOT NULL,
        Name TEXT NOT NULL,
        Namespace TEXT NOT NULL,
        Generation INTEGER,
        CreationTimestamp INTEGER NOT NULL,
        SnapshotTimestamp INTEGER NOT NULL,
        DeletionTimestamp INTEGER,
        MinAvailable TEXT,
        MaxUnavailable TEXT,
        Spec TEXT,
        Hash TEXT NOT NULL)""",
    EVENT_TABLE: f"""CREATE TABLE IF NOT EXISTS {EVENT_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        UID TEXT NOT NULL,
        EventTime INTEGER NOT NULL,
        ReportingController TEXT,
        Reason TEXT,
        Message TEXT,
        InvolvedObjectKind TEXT,
        InvolvedObjectName TEXT,
        InvolvedObjectNamespace TEXT,
        InvolvedObjectUID TEXT)""",
    AUTOSCALER_SETTINGS_TABLE: f"""CREATE TABLE IF NOT EXISTS {AUTOSCALER_SETTINGS_TABLE}(
        RowID INTEGER PRIMARY KEY AUTOINCREMENT,
        SnapshotTimestamp INTEGER NOT NULL,
        Expander TEXT,
        MaxNodesTotal INTEGER,
        Priorities TEXT,
        Hash TEXT NOT NULL)""",
}

SCHEMA_INDEXES: tuple[str, ...] = (
    f"CREATE INDEX IF NOT EXISTS idx_{WORKER_POOL_TABLE}_name ON {WORKER_POOL_TABLE}(Name)",
    f"CREATE INDEX IF NOT EXISTS idx_{MACHINE_DEPLOYMENT_TABLE}_name "
    f"ON {MACHINE_DEPLOYMENT_TABLE}(Name)",
    f"CREATE INDEX IF NOT EXISTS idx_{NODE_TABLE}_name ON {NODE_TABLE}(Name)",
    f"CREATE INDEX IF NOT EXISTS idx_{POD_TABLE}_uid_hash ON {POD_TABLE}(UID, Hash)",
    f"CREATE INDEX IF NOT EXISTS idx_{POD_TABLE}_name ON {POD_TABLE}(Name)",
    f"CREATE INDEX IF NOT EXISTS idx_{PDB_TABLE}_uid ON {PDB_TABLE}(UID)",
    f"CREATE INDEX IF NOT EXISTS idx_{EVENT_TABLE}_uid ON {EVENT_TABLE}(UID)",
)


def insert_op(table: str) -> str:
    """Operation name of the insert statement for a table."""
    return f"insert_{table}"


def update_deletion_timestamp_op(table: str) -> str:
    """Operation name of the deletion-timestamp update for a table."""
    return f"update_{table}_deletion_timestamp"


def select_latest_op(table: str) -> str:
    """Operation name of the latest-row-by-key lookup for a table."""
    return f"select_latest_{table}"


def select_latest_hash_op(table: str) -> str:
    """Operation name of the latest-hash-by-key lookup for a table."""
    return f"select_latest_{table}_hash"


def count_with_key_and_hash_op(table: str) -> str:
    """Operation name of the key plus hash count for a table."""
    return f"count_{table}_with_key_and_hash"


def count_before_op(table: str) -> str:
    """Operation name of the rows-recorded-before presence count for a table."""
    return f"count_{table}_before"


def keyed_snapshot_statements(
    table: str, key_column: str, insert_columns: tuple[str, ...]
) -> tuple[Statement, ...]:
    """Build the standard operation set of a keyed, hashed snapshot table.

    Args:
        table: Table name.
        key_column: Natural key column.
        insert_columns: Columns bound by the insert, in parameter order.

    Returns:
        Insert, deletion update, latest lookups, hash count and presence count.
    """
    placeholders = ",".join("?" for _ in insert_columns)
    return (
        Statement(
            insert_op(table),
            f"INSERT INTO {table}({','.join(insert_columns)}) VALUES({placeholders})",
        ),
        Statement(
            update_deletion_timestamp_op(table),
            f"UPDATE {table} SET DeletionTimestamp=? "
            f"WHERE {key_column}=? AND DeletionTimestamp IS NULL",
        ),
        Statement(
            select_latest_op(table),
            f"SELECT * FROM {table} WHERE {key_column}=? ORDER BY RowID DESC LIMIT 1",
        ),
        Statement(
            select_latest_hash_op(table),
            f"SELECT Hash FROM {table} WHERE {key_column}=? ORDER BY RowID DESC LIMIT 1",
        ),
        Statement(
            count_with_key_and_hash_op(table),
            f"SELECT COUNT(*) FROM {table} WHERE {key_column}=? AND Hash=?",
        ),
        Statement(
            count_before_op(table),
            f"SELECT COUNT(*) FROM {table} WHERE SnapshotTimestamp < ?",
        ),
    )


def latest_per_key_before_sql(table: str, key_column: str, row_filter: str = "") -> str:
    """SQL selecting the latest row per key captured before a cutoff.

    The first parameter is the snapshot cutoff; ``row_filter`` is applied to
    the latest rows and may bind further parameters.
    """
    where = f" AND {row_filter}" if row_filter else ""
    return (
        f"SELECT * FROM {table} WHERE RowID IN ("
        f"SELECT MAX(RowID) FROM {table} WHERE SnapshotTimestamp < ? GROUP BY {key_column})"
        f"{where} ORDER BY RowID"
    )


NOT_DELETED_AS_OF = "(DeletionTimestamp IS NULL OR DeletionTimestamp > ?)"


class StatementRegistry:
    """Operation name to compiled statement registry, built once at init."""

    def __init__(self, statements: Mapping[str, Statement]) -> None:
        self._statements = dict(statements)

    @classmethod
    def prepare(
        cls, connection: sqlite3.Connection, statements: Iterable[Statement]
    ) -> "StatementRegistry":
        """Compile every statement against the live schema.

        Args:
            connection: Open connection with schema already created.
            statements: Statements to register.

        Returns:
            Registry holding every compiled statement.

        Raises:
            PrepareError: If a name is registered twice or a statement fails to compile.
        """
        registered: dict[str, Statement] = {}
        for statement in statements:
            if statement.name in registered:
                raise PrepareError(f"Operation '{statement.name}' is registered twice.")
            try:
                connection.execute(
                    f"EXPLAIN {statement.sql}", (None,) * statement.param_count
                ).fetchall()
            except sqlite3.Error as error:
                raise PrepareError(
                    f"Cannot prepare operation '{statement.name}': {error}. "
                    "Check the schema matches the operation SQL."
                ) from error
            registered[statement.name] = statement
        return cls(registered)

    def get(self, name: str) -> Statement:
        """Look up a registered statement by operation name.

        Raises:
            PrepareError: If no statement is registered under ``name``.
        """
        try:
            return self._statements[name]
        except KeyError as error:
            raise PrepareError(
                f"Operation '{name}' is not registered. Register it before init."
            ) from error

    def names(self) -> tuple[str, ...]:
        """Return registered operation names in sorted order."""
        return tuple(sorted(self._statements))

    def __len__(self) -> int:
        return len(self._statements)

    def __contains__(self, name: object) -> bool:
        return name in self._statements
