"""Unit tests for the machine deployment snapshot table."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from core.errors import NotFoundError
from core.types import MachineDeploymentInfo
from store.hashing import compute_hash


def _sample_deployment(t0, name: str = "shoot--dev--worker-a-z1", **changes):
    deployment = MachineDeploymentInfo(
        name=name,
        namespace="shoot--dev",
        creation_timestamp=t0,
        snapshot_timestamp=t0,
        replicas=2,
        pool_name="worker-a",
        zone="eu-west-1a",
        max_surge=1,
        max_unavailable="25%",
        machine_class_name="shoot--dev--worker-a-z1-5d8f",
    )
    return replace(deployment, **changes)


def test_load_latest_raises_for_unknown_name(recorder_store) -> None:
    """A never-stored deployment should raise, not return a zero value."""
    with pytest.raises(NotFoundError) as excinfo:
        recorder_store.machine_deployments.load_latest("missing")

    assert excinfo.value.params == ("missing",)


def test_load_latest_restores_surge_values(recorder_store, t0) -> None:
    """Counts and percentages should keep their types."""
    recorder_store.machine_deployments.store(_sample_deployment(t0))

    loaded = recorder_store.machine_deployments.load_latest("shoot--dev--worker-a-z1")

    assert loaded.max_surge == 1
    assert loaded.max_unavailable == "25%"
    assert loaded.replicas == 2


def test_load_latest_hash_tracks_newest_row(recorder_store, t0) -> None:
    """The latest hash should follow the most recent snapshot."""
    name = "shoot--dev--worker-a-z1"
    assert recorder_store.machine_deployments.load_latest_hash(name) is None
    scaled = _sample_deployment(t0, replicas=3, snapshot_timestamp=t0 + timedelta(seconds=1))
    recorder_store.machine_deployments.store(_sample_deployment(t0))
    recorder_store.machine_deployments.store(scaled)

    assert recorder_store.machine_deployments.load_latest_hash(name) == compute_hash(scaled)


def test_load_before_returns_latest_per_name_including_deleted(recorder_store, t0) -> None:
    """The delete-agnostic variant should keep deleted deployments."""
    recorder_store.machine_deployments.store(_sample_deployment(t0, "mcd-a"))
    recorder_store.machine_deployments.store(
        _sample_deployment(t0, "mcd-a", replicas=5, snapshot_timestamp=t0 + timedelta(seconds=2))
    )
    recorder_store.machine_deployments.store(_sample_deployment(t0, "mcd-b"))
    recorder_store.machine_deployments.update_deletion_timestamp(
        "mcd-b", t0 + timedelta(seconds=3)
    )

    deployments = recorder_store.machine_deployments.load_before(t0 + timedelta(seconds=10))

    assert {(item.name, item.replicas) for item in deployments} == {("mcd-a", 5), ("mcd-b", 2)}


def test_load_latest_not_deleted_before_excludes_deleted(recorder_store, t0) -> None:
    """Deployments deleted before the cutoff should be excluded."""
    recorder_store.machine_deployments.store(_sample_deployment(t0, "mcd-a"))
    recorder_store.machine_deployments.store(_sample_deployment(t0, "mcd-b"))
    recorder_store.machine_deployments.update_deletion_timestamp(
        "mcd-b", t0 + timedelta(seconds=3)
    )

    deployments = recorder_store.machine_deployments.load_latest_not_deleted_before(
        t0 + timedelta(seconds=10)
    )

    assert [item.name for item in deployments] == ["mcd-a"]
