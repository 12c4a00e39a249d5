"""Unit tests for shared typed models."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from core.types import HashCount, NodeInfo, PodScheduleStatus


def test_hash_count_of_positive_is_found() -> None:
    """A positive count should be reported as found."""
    result = HashCount.of(3)

    assert result == HashCount(found=True, count=3)


def test_hash_count_of_zero_is_not_found() -> None:
    """A zero count should collapse to the not-found result."""
    result = HashCount.of(0)

    assert result == HashCount.not_found()
    assert not result.found


def test_snapshot_models_are_immutable(t0) -> None:
    """Snapshot models should reject attribute assignment."""
    node = NodeInfo(name="n1", namespace="", creation_timestamp=t0, snapshot_timestamp=t0)

    with pytest.raises(FrozenInstanceError):
        node.name = "n2"  # type: ignore[misc]


def test_pod_schedule_status_values() -> None:
    """Schedule status should keep its stored integer values."""
    assert [int(status) for status in PodScheduleStatus] == [-1, 0, 1]
