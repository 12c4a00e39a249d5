"""Content hashing for snapshot change detection.

This module computes a stable digest over the semantic fields of a snapshot.
Row identity and all timestamps are excluded so two captures that differ only
in observation time produce the same hash.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields, is_dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, TypeVar

from core.constants import HASH_ALGORITHM, NODE_LABELS_EXCLUDED_FROM_STORAGE
from core.errors import EncodeError
from core.types import NodeInfo

NON_SEMANTIC_FIELDS = frozenset(
    {
        "row_id",
        "hash",
        "creation_timestamp",
        "snapshot_timestamp",
        "deletion_timestamp",
    }
)

NON_SEMANTIC_TAINT_FIELDS = frozenset({"time_added"})

_InfoT = TypeVar("_InfoT")


def compute_hash(info: object) -> str:
    """Compute a stable hex digest for one snapshot.

    Args:
        info: Snapshot dataclass instance.

    Returns:
        Hex digest over canonical JSON of the semantic fields.

    Raises:
        TypeError: If ``info`` is not a dataclass instance.
        EncodeError: If a semantic field holds a value with no JSON form.
    """
    if not is_dataclass(info) or isinstance(info, type):
        raise TypeError(f"Cannot hash {type(info).__name__}: expected a snapshot dataclass.")
    payload = {
        name: value
        for name, value in asdict(info).items()
        if name not in NON_SEMANTIC_FIELDS
    }
    if isinstance(info, NodeInfo):
        payload["labels"] = strip_excluded_node_labels(info.labels)
        payload["taints"] = [
            {
                name: value
                for name, value in taint.items()
                if name not in NON_SEMANTIC_TAINT_FIELDS
            }
            for taint in payload["taints"]
        ]
    normalized = _canonical_json(payload)
    hash_builder = hashlib.new(HASH_ALGORITHM)
    hash_builder.update(normalized.encode("utf-8"))
    return hash_builder.hexdigest()


def ensure_hash(info: _InfoT) -> _InfoT:
    """Return the snapshot with its hash set, computing it only when unset."""
    if getattr(info, "hash"):
        return info
    return replace(info, hash=compute_hash(info))  # type: ignore[type-var]


def semantic_field_names(info_type: type) -> tuple[str, ...]:
    """Return the field names of a snapshot type that contribute to its hash."""
    return tuple(
        item.name for item in fields(info_type) if item.name not in NON_SEMANTIC_FIELDS
    )


def strip_excluded_node_labels(labels: Mapping[str, str]) -> dict[str, str]:
    """Drop bookkeeping labels that are never stored or hashed."""
    return {
        key: value
        for key, value in labels.items()
        if key not in NODE_LABELS_EXCLUDED_FROM_STORAGE
    }


def _json_default(value: object) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Unsupported value in snapshot hash payload: {type(value).__name__}")


def _canonical_json(payload: dict[str, Any]) -> str:
    try:
        return _dump(payload)
    except (TypeError, ValueError) as error:
        field_name = _first_unencodable_field(payload)
        raise EncodeError(field_name, payload.get(field_name), str(error)) from error


def _first_unencodable_field(payload: dict[str, Any]) -> str:
    for name in sorted(payload):
        try:
            _dump(payload[name])
        except (TypeError, ValueError):
            return name
    return "snapshot"


def _dump(value: object) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        allow_nan=False,
        default=_json_default,
    )
