"""Text codecs for nested snapshot attributes.

This module serializes label maps, resource quantities, taints, tolerations,
topology spread constraints and spec documents into compact JSON text for
flat columns, and parses them back. Empty values encode to an empty string
and blank text decodes to the empty value of the attribute type.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence, TypeVar

from core.constants import ZONES_SEPARATOR
from core.errors import DecodeError, EncodeError
from core.types import IntOrPercent, Taint, Toleration, TopologySpreadConstraint

_T = TypeVar("_T")


def labels_to_text(labels: Mapping[str, str], field_name: str = "labels") -> str:
    """Serialize a string-keyed label map.

    Args:
        labels: Label map to serialize.
        field_name: Attribute name reported on failure.

    Returns:
        JSON object text, or empty string for an empty map.

    Raises:
        EncodeError: If a key or value is not a string.
    """
    return _string_map_to_text(labels, field_name)


def labels_from_text(text: str, field_name: str = "labels") -> dict[str, str]:
    """Parse a label map, returning an empty map for blank text.

    Raises:
        DecodeError: If text is not a JSON object of strings.
    """
    return _string_map_from_text(text, field_name)


def resources_to_text(resources: Mapping[str, str], field_name: str = "resources") -> str:
    """Serialize a resource name to quantity map such as ``{"cpu": "250m"}``."""
    return _string_map_to_text(resources, field_name)


def resources_from_text(text: str, field_name: str = "resources") -> dict[str, str]:
    """Parse a resource quantity map, returning an empty map for blank text."""
    return _string_map_from_text(text, field_name)


def taints_to_text(taints: Sequence[Taint], field_name: str = "taints") -> str:
    """Serialize node taints using Kubernetes JSON field names."""
    return _records_to_text(taints, _taint_to_payload, field_name)


def taints_from_text(text: str, field_name: str = "taints") -> tuple[Taint, ...]:
    """Parse node taints, returning an empty tuple for blank text."""
    return _records_from_text(text, _taint_from_payload, field_name)


def tolerations_to_text(
    tolerations: Sequence[Toleration], field_name: str = "tolerations"
) -> str:
    """Serialize pod tolerations using Kubernetes JSON field names."""
    return _records_to_text(tolerations, _toleration_to_payload, field_name)


def tolerations_from_text(text: str, field_name: str = "tolerations") -> tuple[Toleration, ...]:
    """Parse pod tolerations, returning an empty tuple for blank text."""
    return _records_from_text(text, _toleration_from_payload, field_name)


def topology_spread_constraints_to_text(
    constraints: Sequence[TopologySpreadConstraint],
    field_name: str = "topology_spread_constraints",
) -> str:
    """Serialize topology spread constraints using Kubernetes JSON field names."""
    return _records_to_text(constraints, _constraint_to_payload, field_name)


def topology_spread_constraints_from_text(
    text: str,
    field_name: str = "topology_spread_constraints",
) -> tuple[TopologySpreadConstraint, ...]:
    """Parse topology spread constraints, returning an empty tuple for blank text."""
    return _records_from_text(text, _constraint_from_payload, field_name)


def document_to_text(document: Mapping[str, Any], field_name: str = "spec") -> str:
    """Serialize a nested spec document such as a pod spec.

    Args:
        document: JSON-compatible mapping.
        field_name: Attribute name reported on failure.

    Returns:
        Canonical JSON text with sorted keys, or empty string when empty.

    Raises:
        EncodeError: If the document contains non JSON values.
    """
    if not document:
        return ""
    return _dump(dict(document), field_name)


def document_from_text(text: str, field_name: str = "spec") -> dict[str, Any]:
    """Parse a nested spec document, returning an empty dict for blank text."""
    if not text.strip():
        return {}
    payload = _load(text, field_name)
    if not isinstance(payload, dict):
        raise DecodeError(field_name, text, "expected JSON object")
    return payload


def zones_to_text(zones: Sequence[str], field_name: str = "zones") -> str:
    """Serialize zone names as a space separated list."""
    for zone in zones:
        if not zone or any(char.isspace() for char in zone):
            raise EncodeError(field_name, zones, f"invalid zone name {zone!r}")
    return ZONES_SEPARATOR.join(zones)


def zones_from_text(text: str) -> tuple[str, ...]:
    """Parse a space separated zone list."""
    return tuple(text.split())


def int_or_percent_to_text(value: IntOrPercent | None) -> str:
    """Serialize an int-or-percentage value such as ``1`` or ``"25%"``."""
    if value is None:
        return ""
    return str(value)


def int_or_percent_from_text(text: str) -> IntOrPercent | None:
    """Parse an int-or-percentage value, restoring plain integers as int."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        return stripped


def _string_map_to_text(values: Mapping[str, str], field_name: str) -> str:
    if not values:
        return ""
    for key, value in values.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise EncodeError(field_name, values, f"entry {key!r} is not a string pair")
    return _dump(dict(values), field_name)


def _string_map_from_text(text: str, field_name: str) -> dict[str, str]:
    if not text.strip():
        return {}
    payload = _load(text, field_name)
    if not isinstance(payload, dict):
        raise DecodeError(field_name, text, "expected JSON object")
    for key, value in payload.items():
        if not isinstance(value, str):
            raise DecodeError(field_name, text, f"value for {key!r} is not a string")
    return payload


def _records_to_text(
    records: Sequence[_T],
    to_payload: Callable[[_T], dict[str, Any]],
    field_name: str,
) -> str:
    if not records:
        return ""
    return _dump([to_payload(record) for record in records], field_name)


def _records_from_text(
    text: str,
    from_payload: Callable[[dict[str, Any]], _T],
    field_name: str,
) -> tuple[_T, ...]:
    if not text.strip():
        return ()
    payload = _load(text, field_name)
    if not isinstance(payload, list):
        raise DecodeError(field_name, text, "expected JSON array")
    records: list[_T] = []
    for item in payload:
        if not isinstance(item, dict):
            raise DecodeError(field_name, text, "expected JSON object items")
        try:
            records.append(from_payload(item))
        except (KeyError, TypeError, ValueError) as error:
            raise DecodeError(field_name, text, f"invalid item {item!r}: {error}") from error
    return tuple(records)


def _dump(payload: object, field_name: str) -> str:
    try:
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as error:
        raise EncodeError(field_name, payload, str(error)) from error


def _load(text: str, field_name: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as error:
        raise DecodeError(field_name, text, error.msg) from error


def _taint_to_payload(taint: Taint) -> dict[str, Any]:
    payload: dict[str, Any] = {"key": taint.key, "effect": taint.effect}
    if taint.value:
        payload["value"] = taint.value
    if taint.time_added is not None:
        payload["timeAdded"] = _format_time(taint.time_added)
    return payload


def _taint_from_payload(payload: dict[str, Any]) -> Taint:
    time_added = payload.get("timeAdded")
    return Taint(
        key=_as_str(payload["key"]),
        effect=_as_str(payload.get("effect", "")),
        value=_as_str(payload.get("value", "")),
        time_added=_parse_time(time_added) if time_added else None,
    )


def _toleration_to_payload(toleration: Toleration) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for name, value in (
        ("key", toleration.key),
        ("operator", toleration.operator),
        ("value", toleration.value),
        ("effect", toleration.effect),
    ):
        if value:
            payload[name] = value
    if toleration.toleration_seconds is not None:
        payload["tolerationSeconds"] = toleration.toleration_seconds
    return payload


def _toleration_from_payload(payload: dict[str, Any]) -> Toleration:
    seconds = payload.get("tolerationSeconds")
    return Toleration(
        key=_as_str(payload.get("key", "")),
        operator=_as_str(payload.get("operator", "")),
        value=_as_str(payload.get("value", "")),
        effect=_as_str(payload.get("effect", "")),
        toleration_seconds=_as_int(seconds) if seconds is not None else None,
    )


def _constraint_to_payload(constraint: TopologySpreadConstraint) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "maxSkew": constraint.max_skew,
        "topologyKey": constraint.topology_key,
        "whenUnsatisfiable": constraint.when_unsatisfiable,
    }
    if constraint.match_labels:
        payload["labelSelector"] = {"matchLabels": dict(constraint.match_labels)}
    if constraint.min_domains is not None:
        payload["minDomains"] = constraint.min_domains
    return payload


def _constraint_from_payload(payload: dict[str, Any]) -> TopologySpreadConstraint:
    selector = payload.get("labelSelector") or {}
    match_labels = selector.get("matchLabels") or {}
    if not isinstance(match_labels, dict):
        raise TypeError("labelSelector.matchLabels must be an object")
    min_domains = payload.get("minDomains")
    return TopologySpreadConstraint(
        max_skew=_as_int(payload["maxSkew"]),
        topology_key=_as_str(payload["topologyKey"]),
        when_unsatisfiable=_as_str(payload["whenUnsatisfiable"]),
        match_labels={str(key): _as_str(value) for key, value in match_labels.items()},
        min_domains=_as_int(min_domains) if min_domains is not None else None,
    )


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_time(raw_value: object) -> datetime:
    text = _as_str(raw_value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _as_str(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


def _as_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected integer, got {type(value).__name__}")
    return value
