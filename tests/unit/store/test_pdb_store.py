"""Unit tests for the pod disruption budget snapshot table."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from core.errors import NotFoundError
from core.types import PodDisruptionBudgetInfo


def _sample_pdb(t0, uid: str = "pdb-uid-1", **changes) -> PodDisruptionBudgetInfo:
    pdb = PodDisruptionBudgetInfo(
        uid=uid,
        name="web-pdb",
        namespace="default",
        creation_timestamp=t0,
        snapshot_timestamp=t0,
        generation=1,
        max_unavailable="50%",
        spec={"selector": {"matchLabels": {"app": "web"}}, "maxUnavailable": "50%"},
    )
    return replace(pdb, **changes)


def test_load_latest_restores_budget(recorder_store, t0) -> None:
    """Budgets should load with unset and percentage thresholds intact."""
    recorder_store.pod_disruption_budgets.store(_sample_pdb(t0))

    loaded = recorder_store.pod_disruption_budgets.load_latest("pdb-uid-1")

    assert loaded.min_available is None
    assert loaded.max_unavailable == "50%"
    assert loaded.spec["selector"] == {"matchLabels": {"app": "web"}}
    assert loaded.creation_timestamp == t0


def test_timestamps_are_stored_as_epoch_millis(recorder_store, t0) -> None:
    """Budget timestamps should share the integer column format."""
    recorder_store.pod_disruption_budgets.store(_sample_pdb(t0))
    recorder_store.pod_disruption_budgets.update_deletion_timestamp(
        "pdb-uid-1", t0 + timedelta(seconds=1)
    )

    loaded = recorder_store.pod_disruption_budgets.load_latest("pdb-uid-1")

    assert loaded.deletion_timestamp == t0 + timedelta(seconds=1)


def test_load_before_returns_latest_generation(recorder_store, t0) -> None:
    """Each budget should appear once with its newest snapshot."""
    recorder_store.pod_disruption_budgets.store(_sample_pdb(t0))
    recorder_store.pod_disruption_budgets.store(
        _sample_pdb(t0, generation=2, min_available=1, snapshot_timestamp=t0 + timedelta(seconds=1))
    )
    recorder_store.pod_disruption_budgets.store(_sample_pdb(t0, uid="pdb-uid-2"))

    budgets = recorder_store.pod_disruption_budgets.load_before(t0 + timedelta(seconds=5))

    assert {(item.uid, item.generation) for item in budgets} == {
        ("pdb-uid-1", 2),
        ("pdb-uid-2", 1),
    }


def test_load_before_raises_for_empty_window(recorder_store, t0) -> None:
    """No budgets before the cutoff should raise not found."""
    with pytest.raises(NotFoundError):
        recorder_store.pod_disruption_budgets.load_before(t0)
