"""Cluster event table.

Events are recorded as-is: no hash, no deletion state, no dedup.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.constants import EVENT_TABLE
from core.logging_config import get_logger
from core.types import EventInfo
from store.row_mapping import (
    column_int,
    column_str,
    execute_write,
    query_many,
    query_one,
)
from store.statements import Statement, StatementRegistry
from store.timestamps import from_epoch_millis, to_epoch_millis

_LOGGER = get_logger(__name__)

INSERT_EVENT_INFO = "insert_event_info"
SELECT_EVENT_INFO_WITH_UID = "select_event_info_with_uid"
SELECT_ALL_EVENT_INFOS = "select_all_event_info"
SELECT_EVENT_INFOS_BEFORE = "select_event_info_before"

INSERT_COLUMNS = (
    "UID",
    "EventTime",
    "ReportingController",
    "Reason",
    "Message",
    "InvolvedObjectKind",
    "InvolvedObjectName",
    "InvolvedObjectNamespace",
    "InvolvedObjectUID",
)


class EventRowMapper:
    """Maps EventInfo to and from event_info rows."""

    def to_row(self, info: EventInfo) -> tuple[object, ...]:
        return (
            info.uid,
            to_epoch_millis(info.event_time),
            info.reporting_controller,
            info.reason,
            info.message,
            info.involved_object_kind,
            info.involved_object_name,
            info.involved_object_namespace,
            info.involved_object_uid,
        )

    def from_row(self, row: sqlite3.Row) -> EventInfo:
        return EventInfo(
            uid=column_str(row, "UID"),
            event_time=from_epoch_millis(column_int(row, "EventTime")),
            reporting_controller=column_str(row, "ReportingController"),
            reason=column_str(row, "Reason"),
            message=column_str(row, "Message"),
            involved_object_kind=column_str(row, "InvolvedObjectKind"),
            involved_object_name=column_str(row, "InvolvedObjectName"),
            involved_object_namespace=column_str(row, "InvolvedObjectNamespace"),
            involved_object_uid=column_str(row, "InvolvedObjectUID"),
            row_id=column_int(row, "RowID"),
        )


class EventStore:
    """Append-only store for cluster events."""

    def __init__(self, connection: sqlite3.Connection, registry: StatementRegistry) -> None:
        self._connection = connection
        self._registry = registry
        self._mapper = EventRowMapper()

    @classmethod
    def statements(cls) -> tuple[Statement, ...]:
        """Return every operation this table registers."""
        placeholders = ",".join("?" for _ in INSERT_COLUMNS)
        return (
            Statement(
                INSERT_EVENT_INFO,
                f"INSERT INTO {EVENT_TABLE}({','.join(INSERT_COLUMNS)}) VALUES({placeholders})",
            ),
            Statement(
                SELECT_EVENT_INFO_WITH_UID,
                f"SELECT * FROM {EVENT_TABLE} WHERE UID=? ORDER BY RowID DESC LIMIT 1",
            ),
            Statement(
                SELECT_ALL_EVENT_INFOS,
                f"SELECT * FROM {EVENT_TABLE} ORDER BY EventTime, RowID",
            ),
            Statement(
                SELECT_EVENT_INFOS_BEFORE,
                f"SELECT * FROM {EVENT_TABLE} WHERE EventTime < ? ORDER BY EventTime, RowID",
            ),
        )

    def store(self, event: EventInfo) -> int:
        """Append one event row and return its row identifier.

        Raises:
            ExecError: If the insert fails.
        """
        statement = self._registry.get(INSERT_EVENT_INFO)
        cursor = execute_write(
            self._connection, statement, self._mapper.to_row(event), event.uid
        )
        row_id = int(cursor.lastrowid or 0)
        _LOGGER.debug("event_stored", uid=event.uid, reason=event.reason, row_id=row_id)
        return row_id

    def load_with_uid(self, uid: str) -> EventInfo:
        """Load the event recorded under ``uid``.

        Raises:
            NotFoundError: If no event has that UID.
        """
        statement = self._registry.get(SELECT_EVENT_INFO_WITH_UID)
        return query_one(self._connection, statement, (uid,), self._mapper.from_row)

    def load_all(self) -> list[EventInfo]:
        """Load every event ordered by event time.

        Raises:
            NotFoundError: If no event was recorded.
        """
        statement = self._registry.get(SELECT_ALL_EVENT_INFOS)
        return query_many(self._connection, statement, (), self._mapper.from_row)

    def load_before(self, event_time: datetime) -> list[EventInfo]:
        """Load events that happened before a cutoff, ordered by event time.

        Raises:
            NotFoundError: If no event happened before the cutoff.
        """
        statement = self._registry.get(SELECT_EVENT_INFOS_BEFORE)
        return query_many(self._connection, statement, (event_time,), self._mapper.from_row)
