"""Unit tests for the cluster event table."""

from __future__ import annotations

from datetime import timedelta

import pytest

from core.errors import NotFoundError
from core.types import EventInfo


def _sample_event(t0, uid: str, offset_seconds: int, reason: str = "TriggeredScaleUp"):
    return EventInfo(
        uid=uid,
        event_time=t0 + timedelta(seconds=offset_seconds),
        reporting_controller="cluster-autoscaler",
        reason=reason,
        message="pod triggered scale-up",
        involved_object_kind="Pod",
        involved_object_name="web-0",
        involved_object_namespace="default",
        involved_object_uid="uid-web-0",
    )


def test_load_with_uid_returns_stored_event(recorder_store, t0) -> None:
    """Events should load back by UID."""
    row_id = recorder_store.events.store(_sample_event(t0, "ev-1", 0))

    loaded = recorder_store.events.load_with_uid("ev-1")

    assert loaded.row_id == row_id
    assert loaded.event_time == t0
    assert loaded.involved_object_uid == "uid-web-0"


def test_load_with_uid_raises_for_unknown_event(recorder_store) -> None:
    """Unknown event UIDs should raise not found."""
    with pytest.raises(NotFoundError):
        recorder_store.events.load_with_uid("missing")


def test_load_all_orders_by_event_time(recorder_store, t0) -> None:
    """Events recorded out of order should load chronologically."""
    recorder_store.events.store(_sample_event(t0, "ev-late", 30))
    recorder_store.events.store(_sample_event(t0, "ev-early", 10))

    events = recorder_store.events.load_all()

    assert [event.uid for event in events] == ["ev-early", "ev-late"]


def test_load_before_filters_by_event_time(recorder_store, t0) -> None:
    """Only events before the cutoff should load."""
    recorder_store.events.store(_sample_event(t0, "ev-1", 0))
    recorder_store.events.store(_sample_event(t0, "ev-2", 60, reason="ScaleDown"))

    events = recorder_store.events.load_before(t0 + timedelta(seconds=30))

    assert [event.uid for event in events] == ["ev-1"]


def test_load_all_raises_when_empty(recorder_store) -> None:
    """An empty event table should raise not found."""
    with pytest.raises(NotFoundError):
        recorder_store.events.load_all()
