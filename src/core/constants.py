"""Core constants used across recorder modules.

This module centralizes table names, environment defaults and codec markers.
Keeping values here avoids magic literals in persistence logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DB_PATH = Path(".recorder") / "recorder.db"
IN_MEMORY_DB_PATH = ":memory:"
DEFAULT_CONNECT_TIMEOUT_SECONDS = 5.0
DEFAULT_LOG_LEVEL = "info"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error")
HASH_ALGORITHM = "sha256"

WORKER_POOL_TABLE = "worker_pool_info"
MACHINE_DEPLOYMENT_TABLE = "mcd_info"
NODE_TABLE = "node_info"
POD_TABLE = "pod_info"
PDB_TABLE = "pdb_info"
EVENT_TABLE = "event_info"
AUTOSCALER_SETTINGS_TABLE = "ca_settings_info"

ZONES_SEPARATOR = " "
NODE_LABELS_EXCLUDED_FROM_STORAGE = (
    "node.machine.sapcloud.io/last-applied-anno-labels-taints",
)
