"""Unit tests for caller-side change detection."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from core.types import MachineDeploymentInfo
from store.change_detection import has_changed, is_recorded


def _sample_deployment(t0, **changes) -> MachineDeploymentInfo:
    deployment = MachineDeploymentInfo(
        name="mcd-a",
        namespace="shoot--dev",
        creation_timestamp=t0,
        snapshot_timestamp=t0,
        replicas=2,
    )
    return replace(deployment, **changes)


def test_has_changed_when_nothing_recorded(recorder_store, t0) -> None:
    """A first observation should always count as a change."""
    assert has_changed(recorder_store.machine_deployments, "mcd-a", _sample_deployment(t0))


def test_has_not_changed_for_later_identical_observation(recorder_store, t0) -> None:
    """Observations differing only in capture time should not count."""
    recorder_store.machine_deployments.store(_sample_deployment(t0))
    later = _sample_deployment(t0, snapshot_timestamp=t0 + timedelta(minutes=1))

    assert not has_changed(recorder_store.machine_deployments, "mcd-a", later)


def test_has_changed_after_semantic_update(recorder_store, t0) -> None:
    """A replica change should be detected."""
    recorder_store.machine_deployments.store(_sample_deployment(t0))

    updated = _sample_deployment(t0, replicas=3)

    assert has_changed(recorder_store.machine_deployments, "mcd-a", updated)


def test_is_recorded_checks_full_history(recorder_store, t0) -> None:
    """A state seen earlier should count as recorded even after changes."""
    original = _sample_deployment(t0)
    recorder_store.machine_deployments.store(original)
    recorder_store.machine_deployments.store(_sample_deployment(t0, replicas=3))

    assert is_recorded(recorder_store.machine_deployments, "mcd-a", original)
    unseen = _sample_deployment(t0, replicas=9)
    assert not is_recorded(recorder_store.machine_deployments, "mcd-a", unseen)
