"""Public import surface for the cluster-state recorder.

This module re-exports the store facade, its configuration and the
snapshot models collectors hand to it.
"""

from __future__ import annotations

from core.config import RecorderConfig
from core.errors import NotFoundError, RecorderError, RecorderStoreError
from core.logging_config import configure_logging
from core.types import (
    AutoscalerSettingsInfo,
    EventInfo,
    HashCount,
    MachineDeploymentInfo,
    NodeInfo,
    PodDisruptionBudgetInfo,
    PodInfo,
    PodScheduleStatus,
    Taint,
    Toleration,
    TopologySpreadConstraint,
    WorkerPoolInfo,
)
from store.change_detection import has_changed, is_recorded
from store.hashing import compute_hash
from store.recorder_store import RecorderStore


def open_store(config: RecorderConfig | None = None) -> RecorderStore:
    """Configure logging and return an initialized store.

    Args:
        config: Runtime configuration, read from the environment when omitted.

    Returns:
        Store ready for use; the caller owns closing it.
    """
    resolved = config or RecorderConfig.from_env()
    configure_logging(resolved.log_level)
    store = RecorderStore(resolved)
    store.init()
    return store


__all__ = [
    "AutoscalerSettingsInfo",
    "EventInfo",
    "HashCount",
    "MachineDeploymentInfo",
    "NodeInfo",
    "NotFoundError",
    "PodDisruptionBudgetInfo",
    "PodInfo",
    "PodScheduleStatus",
    "RecorderConfig",
    "RecorderError",
    "RecorderStore",
    "RecorderStoreError",
    "Taint",
    "Toleration",
    "TopologySpreadConstraint",
    "WorkerPoolInfo",
    "compute_hash",
    "has_changed",
    "is_recorded",
    "open_store",
]
