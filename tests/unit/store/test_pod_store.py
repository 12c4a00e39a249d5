"""Unit tests for the pod snapshot table."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from core.errors import EncodeError, NotFoundError
from core.types import PodInfo, PodScheduleStatus


def _sample_pod(t0, name: str = "web-0", uid: str = "uid-web-0", **changes) -> PodInfo:
    pod = PodInfo(
        name=name,
        namespace="default",
        uid=uid,
        creation_timestamp=t0,
        snapshot_timestamp=t0,
        labels={"app": "web"},
        requests={"cpu": "250m", "memory": "256Mi"},
        spec={
            "containers": [{"name": "app", "image": "nginx:1.25"}],
            "tolerations": [{"operator": "Exists"}],
        },
        schedule_status=PodScheduleStatus.UNSCHEDULED,
    )
    return replace(pod, **changes)


def _bound(pod: PodInfo, node_name: str, at) -> PodInfo:
    return replace(
        pod,
        node_name=node_name,
        schedule_status=PodScheduleStatus.SCHEDULED,
        snapshot_timestamp=at,
        hash="",
    )


def test_load_latest_restores_spec_and_status(recorder_store, t0) -> None:
    """Pods should load with their spec document and schedule status."""
    recorder_store.pods.store(_sample_pod(t0))

    loaded = recorder_store.pods.load_latest("uid-web-0")

    assert loaded.spec["containers"][0]["image"] == "nginx:1.25"
    assert loaded.schedule_status is PodScheduleStatus.UNSCHEDULED
    assert loaded.requests == {"cpu": "250m", "memory": "256Mi"}


def test_load_latest_with_name_spans_recreated_pods(recorder_store, t0) -> None:
    """A recreated pod should be found by name under its new UID."""
    recorder_store.pods.store(_sample_pod(t0, uid="uid-old"))
    recorder_store.pods.store(_sample_pod(t0 + timedelta(minutes=1), uid="uid-new"))

    loaded = recorder_store.pods.load_latest_with_name("web-0")

    assert loaded.uid == "uid-new"


def test_load_latest_with_name_raises_for_unknown_pod(recorder_store) -> None:
    """Unknown pod names should raise not found."""
    with pytest.raises(NotFoundError):
        recorder_store.pods.load_latest_with_name("missing")


def test_deletion_is_keyed_by_uid(recorder_store, t0) -> None:
    """Deleting one UID should leave a recreated pod untouched."""
    recorder_store.pods.store(_sample_pod(t0, uid="uid-old"))
    recorder_store.pods.store(_sample_pod(t0, uid="uid-new"))

    affected = recorder_store.pods.update_deletion_timestamp("uid-old", t0 + timedelta(seconds=1))

    assert affected == 1
    assert recorder_store.pods.load_latest("uid-new").deletion_timestamp is None


def test_scheduled_and_unscheduled_split(recorder_store, t0) -> None:
    """Pods should split by whether their latest snapshot has a node."""
    pending = _sample_pod(t0, "web-0", "uid-0")
    running = _bound(_sample_pod(t0, "web-1", "uid-1"), "n1", t0)
    recorder_store.pods.store(pending)
    recorder_store.pods.store(running)
    cutoff = t0 + timedelta(seconds=1)

    unscheduled = recorder_store.pods.load_unscheduled_before(cutoff)
    scheduled = recorder_store.pods.load_scheduled_before(cutoff)

    assert [pod.name for pod in unscheduled] == ["web-0"]
    assert [pod.name for pod in scheduled] == ["web-1"]


def test_unscheduled_returns_empty_once_all_pods_bound(recorder_store, t0) -> None:
    """A pod bound later should leave the unscheduled set."""
    pending = _sample_pod(t0)
    recorder_store.pods.store(pending)
    recorder_store.pods.store(_bound(pending, "n1", t0 + timedelta(seconds=5)))

    unscheduled = recorder_store.pods.load_unscheduled_before(t0 + timedelta(seconds=10))
    earlier = recorder_store.pods.load_unscheduled_before(t0 + timedelta(seconds=3))

    assert unscheduled == []
    assert [pod.name for pod in earlier] == ["web-0"]


def test_scheduled_excludes_deleted_pods(recorder_store, t0) -> None:
    """Pods deleted before the cutoff should not count as scheduled."""
    recorder_store.pods.store(_bound(_sample_pod(t0), "n1", t0))
    recorder_store.pods.update_deletion_timestamp("uid-web-0", t0 + timedelta(seconds=2))

    assert recorder_store.pods.load_scheduled_before(t0 + timedelta(seconds=1)) != []
    assert recorder_store.pods.load_scheduled_before(t0 + timedelta(seconds=3)) == []


def test_latest_before_snapshot_time_includes_deleted(recorder_store, t0) -> None:
    """The snapshot-time query should ignore deletion state."""
    recorder_store.pods.store(_sample_pod(t0, "web-0", "uid-0"))
    recorder_store.pods.store(_sample_pod(t0, "web-1", "uid-1"))
    recorder_store.pods.update_deletion_timestamp("uid-0", t0 + timedelta(seconds=1))

    pods = recorder_store.pods.load_latest_before_snapshot_time(t0 + timedelta(seconds=5))

    assert {pod.uid for pod in pods} == {"uid-0", "uid-1"}


def test_load_before_raises_when_no_pod_created_before(recorder_store, t0) -> None:
    """The creation-time query should raise on an empty window."""
    recorder_store.pods.store(_sample_pod(t0))

    with pytest.raises(NotFoundError):
        recorder_store.pods.load_before(t0)


def test_store_rejects_spec_without_json_form(recorder_store, t0) -> None:
    """Unencodable spec values should raise an encode error and write nothing."""
    pod = _sample_pod(t0, spec={"volumes": {1, 2}})

    with pytest.raises(EncodeError) as excinfo:
        recorder_store.pods.store(pod)

    assert excinfo.value.field_name == "spec"
    with pytest.raises(NotFoundError):
        recorder_store.pods.load_latest("uid-web-0")
