"""Shared typed models.

This module defines the immutable snapshot models recorded by the store.
Every snapshot kind carries its natural key, origin and capture timestamps,
an optional deletion timestamp and a content hash over semantic fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Mapping

IntOrPercent = int | str


class PodScheduleStatus(IntEnum):
    """Scheduling outcome observed for a pod snapshot."""

    UNSCHEDULED = -1
    UNKNOWN = 0
    SCHEDULED = 1


@dataclass(frozen=True)
class Taint:
    """Node taint.

    Attributes:
        key: Taint key.
        effect: NoSchedule, PreferNoSchedule or NoExecute.
        value: Optional taint value.
        time_added: When a NoExecute taint was added.
    """

    key: str
    effect: str
    value: str = ""
    time_added: datetime | None = None


@dataclass(frozen=True)
class Toleration:
    """Pod toleration matching node taints."""

    key: str = ""
    operator: str = ""
    value: str = ""
    effect: str = ""
    toleration_seconds: int | None = None


@dataclass(frozen=True)
class TopologySpreadConstraint:
    """Pod topology spread constraint.

    Attributes:
        max_skew: Maximum permitted skew between topology domains.
        topology_key: Node label key that defines a domain.
        when_unsatisfiable: DoNotSchedule or ScheduleAnyway.
        match_labels: Label selector match labels.
        min_domains: Optional minimum number of eligible domains.
    """

    max_skew: int
    topology_key: str
    when_unsatisfiable: str
    match_labels: Mapping[str, str] = field(default_factory=dict)
    min_domains: int | None = None


@dataclass(frozen=True)
class WorkerPoolInfo:
    """Snapshot of a worker pool definition.

    Attributes:
        name: Worker pool name.
        namespace: Shoot namespace.
        creation_timestamp: Origin creation time of the pool.
        snapshot_timestamp: Time the snapshot was captured.
        machine_type: Machine type of pool members.
        architecture: CPU architecture.
        minimum: Minimum pool size.
        maximum: Maximum pool size.
        max_surge: Surge during rolling updates, count or percentage.
        max_unavailable: Unavailable during rolling updates, count or percentage.
        zones: Availability zones served by the pool.
        deletion_timestamp: Time the pool was observed deleted.
        hash: Content digest over semantic fields.
        row_id: Storage row identifier, set on load.
    """

    name: str
    namespace: str
    creation_timestamp: datetime
    snapshot_timestamp: datetime
    machine_type: str = ""
    architecture: str = ""
    minimum: int = 0
    maximum: int = 0
    max_surge: IntOrPercent = 0
    max_unavailable: IntOrPercent = 0
    zones: tuple[str, ...] = ()
    deletion_timestamp: datetime | None = None
    hash: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class MachineDeploymentInfo:
    """Snapshot of a machine deployment backing one pool zone."""

    name: str
    namespace: str
    creation_timestamp: datetime
    snapshot_timestamp: datetime
    replicas: int = 0
    pool_name: str = ""
    zone: str = ""
    max_surge: IntOrPercent = 0
    max_unavailable: IntOrPercent = 0
    machine_class_name: str = ""
    deletion_timestamp: datetime | None = None
    hash: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class NodeInfo:
    """Snapshot of a cluster node.

    Attributes:
        name: Node name.
        namespace: Namespace, empty for cluster-scoped nodes.
        creation_timestamp: Node creation time.
        snapshot_timestamp: Time the snapshot was captured.
        provider_id: Cloud provider identifier.
        allocatable_volumes: Attachable volume limit.
        labels: Node labels.
        taints: Node taints.
        allocatable: Allocatable resource quantities.
        capacity: Capacity resource quantities.
        deletion_timestamp: Time the node was observed deleted.
        hash: Content digest over semantic fields.
        row_id: Storage row identifier, set on load.
    """

    name: str
    namespace: str
    creation_timestamp: datetime
    snapshot_timestamp: datetime
    provider_id: str = ""
    allocatable_volumes: int = 0
    labels: Mapping[str, str] = field(default_factory=dict)
    taints: tuple[Taint, ...] = ()
    allocatable: Mapping[str, str] = field(default_factory=dict)
    capacity: Mapping[str, str] = field(default_factory=dict)
    deletion_timestamp: datetime | None = None
    hash: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class PodInfo:
    """Snapshot of a pod.

    Attributes:
        name: Pod name.
        namespace: Pod namespace.
        uid: Pod UID, the key for deletion and dedup lookups.
        creation_timestamp: Pod creation time.
        snapshot_timestamp: Time the snapshot was captured.
        node_name: Bound node, empty while unscheduled.
        nominated_node_name: Node nominated by preemption.
        labels: Pod labels.
        requests: Aggregated resource requests.
        spec: Full pod spec document.
        schedule_status: Observed scheduling outcome.
        deletion_timestamp: Time the pod was observed deleted.
        hash: Content digest over semantic fields.
        row_id: Storage row identifier, set on load.
    """

    name: str
    namespace: str
    uid: str
    creation_timestamp: datetime
    snapshot_timestamp: datetime
    node_name: str = ""
    nominated_node_name: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)
    requests: Mapping[str, str] = field(default_factory=dict)
    spec: Mapping[str, Any] = field(default_factory=dict)
    schedule_status: PodScheduleStatus = PodScheduleStatus.UNKNOWN
    deletion_timestamp: datetime | None = None
    hash: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class PodDisruptionBudgetInfo:
    """Snapshot of a pod disruption budget."""

    uid: str
    name: str
    namespace: str
    creation_timestamp: datetime
    snapshot_timestamp: datetime
    generation: int = 0
    min_available: IntOrPercent | None = None
    max_unavailable: IntOrPercent | None = None
    spec: Mapping[str, Any] = field(default_factory=dict)
    deletion_timestamp: datetime | None = None
    hash: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class EventInfo:
    """Cluster event relevant to scaling history.

    Events are immutable observations and carry no hash or deletion state.
    """

    uid: str
    event_time: datetime
    reporting_controller: str = ""
    reason: str = ""
    message: str = ""
    involved_object_kind: str = ""
    involved_object_name: str = ""
    involved_object_namespace: str = ""
    involved_object_uid: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class AutoscalerSettingsInfo:
    """Snapshot of cluster-autoscaler deployment settings.

    Attributes:
        snapshot_timestamp: Time the settings were captured.
        expander: Configured expander strategy.
        max_nodes_total: Cluster-wide node ceiling.
        priorities: Raw priority expander configuration.
        hash: Content digest over semantic fields.
        row_id: Storage row identifier, set on load.
    """

    snapshot_timestamp: datetime
    expander: str = ""
    max_nodes_total: int = 0
    priorities: str = ""
    hash: str = ""
    row_id: int | None = None


@dataclass(frozen=True)
class HashCount:
    """Tagged result of a key plus hash count lookup.

    Attributes:
        found: Whether any row matched.
        count: Number of matching rows, zero when not found.
    """

    found: bool
    count: int

    @classmethod
    def not_found(cls) -> "HashCount":
        """Return the result for a lookup matching no rows."""
        return cls(found=False, count=0)

    @classmethod
    def of(cls, count: int) -> "HashCount":
        """Return the result for a lookup that counted ``count`` rows."""
        if count <= 0:
            return cls.not_found()
        return cls(found=True, count=count)
