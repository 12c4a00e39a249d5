"""Recorder store facade.

This module owns the database connection, the schema and the operation
registry, and exposes one store per snapshot kind behind a single
init/close lifecycle.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from types import TracebackType
from typing import Iterator, TypeVar

from core.config import RecorderConfig
from core.constants import IN_MEMORY_DB_PATH
from core.errors import SchemaError, StoreConnectionError, StoreLifecycleError
from core.logging_config import get_logger
from store.autoscaler_settings_store import AutoscalerSettingsStore
from store.event_store import EventStore
from store.machine_deployment_store import MachineDeploymentRowMapper, MachineDeploymentStore
from store.node_store import NodeRowMapper, NodeStore
from store.pdb_store import PodDisruptionBudgetRowMapper, PodDisruptionBudgetStore
from store.pod_store import PodRowMapper, PodStore
from store.statements import SCHEMA_INDEXES, SCHEMA_TABLES, Statement, StatementRegistry
from store.worker_pool_store import WorkerPoolRowMapper, WorkerPoolStore

_LOGGER = get_logger(__name__)

_StoreT = TypeVar("_StoreT")


def registered_statements() -> Iterator[Statement]:
    """Yield every operation registered at init, across all snapshot kinds."""
    for store_type in (
        WorkerPoolStore,
        MachineDeploymentStore,
        NodeStore,
        PodStore,
        PodDisruptionBudgetStore,
        EventStore,
        AutoscalerSettingsStore,
    ):
        yield from store_type.statements()


class RecorderStore:
    """Versioned snapshot store for recorded cluster state.

    The store exclusively owns one connection, used synchronously by a single
    writer. Every write is one autocommitted statement.
    """

    def __init__(self, config: RecorderConfig) -> None:
        """Create an uninitialized store.

        Args:
            config: Runtime configuration.
        """
        self._config = config
        self._connection: sqlite3.Connection | None = None
        self._registry: StatementRegistry | None = None
        self._worker_pools: WorkerPoolStore | None = None
        self._machine_deployments: MachineDeploymentStore | None = None
        self._nodes: NodeStore | None = None
        self._pods: PodStore | None = None
        self._pod_disruption_budgets: PodDisruptionBudgetStore | None = None
        self._events: EventStore | None = None
        self._autoscaler_settings: AutoscalerSettingsStore | None = None

    @property
    def is_initialized(self) -> bool:
        """Whether init succeeded and close has not run since."""
        return self._connection is not None

    def init(self) -> None:
        """Open the database, create missing tables and prepare all operations.

        Raises:
            StoreLifecycleError: If the store is already initialized.
            StoreConnectionError: If the database cannot be opened.
            SchemaError: If a table or index cannot be created.
            PrepareError: If an operation fails to compile.
        """
        if self._connection is not None:
            raise StoreLifecycleError(
                "Recorder store is already initialized. Call close() before init() again."
            )
        connection = _connect(self._config)
        try:
            _create_schema(connection)
            registry = StatementRegistry.prepare(connection, registered_statements())
        except Exception:
            connection.close()
            raise
        self._connection = connection
        self._registry = registry
        self._worker_pools = WorkerPoolStore(connection, registry, WorkerPoolRowMapper())
        self._machine_deployments = MachineDeploymentStore(
            connection, registry, MachineDeploymentRowMapper()
        )
        self._nodes = NodeStore(connection, registry, NodeRowMapper())
        self._pods = PodStore(connection, registry, PodRowMapper())
        self._pod_disruption_budgets = PodDisruptionBudgetStore(
            connection, registry, PodDisruptionBudgetRowMapper()
        )
        self._events = EventStore(connection, registry)
        self._autoscaler_settings = AutoscalerSettingsStore(connection, registry)
        _LOGGER.info(
            "store_opened",
            db_path=self._config.db_path,
            operation_count=len(registry),
        )

    def close(self) -> None:
        """Release the connection and every prepared operation.

        Calling close on a closed or never-initialized store does nothing.

        Raises:
            StoreConnectionError: If the connection fails to close.
        """
        connection = self._connection
        if connection is None:
            return
        self._reset()
        try:
            connection.close()
        except sqlite3.Error as error:
            _LOGGER.error("store_close_failed", db_path=self._config.db_path, error=str(error))
            raise StoreConnectionError(
                f"Failed to close recorder database {self._config.db_path}: {error}."
            ) from error
        _LOGGER.info("store_closed", db_path=self._config.db_path)

    @property
    def worker_pools(self) -> WorkerPoolStore:
        return _require(self._worker_pools)

    @property
    def machine_deployments(self) -> MachineDeploymentStore:
        return _require(self._machine_deployments)

    @property
    def nodes(self) -> NodeStore:
        return _require(self._nodes)

    @property
    def pods(self) -> PodStore:
        return _require(self._pods)

    @property
    def pod_disruption_budgets(self) -> PodDisruptionBudgetStore:
        return _require(self._pod_disruption_budgets)

    @property
    def events(self) -> EventStore:
        return _require(self._events)

    @property
    def autoscaler_settings(self) -> AutoscalerSettingsStore:
        return _require(self._autoscaler_settings)

    def __enter__(self) -> "RecorderStore":
        self.init()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _reset(self) -> None:
        self._connection = None
        self._registry = None
        self._worker_pools = None
        self._machine_deployments = None
        self._nodes = None
        self._pods = None
        self._pod_disruption_budgets = None
        self._events = None
        self._autoscaler_settings = None


def _require(store: _StoreT | None) -> _StoreT:
    if store is None:
        raise StoreLifecycleError(
            "Recorder store is not initialized. Call init() before using it."
        )
    return store


def _connect(config: RecorderConfig) -> sqlite3.Connection:
    """Open the configured database in autocommit mode."""
    try:
        if config.db_path != IN_MEMORY_DB_PATH:
            Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(
            config.db_path,
            timeout=config.connect_timeout_seconds,
            isolation_level=None,
        )
    except (OSError, sqlite3.Error) as error:
        raise StoreConnectionError(
            f"Cannot open recorder database {config.db_path}: {error}. "
            "Check RECORDER_DB_PATH points to a writable location."
        ) from error
    connection.row_factory = sqlite3.Row
    return connection


def _create_schema(connection: sqlite3.Connection) -> None:
    """Create every table and index that does not exist yet."""
    for table_name, ddl in SCHEMA_TABLES.items():
        try:
            connection.execute(ddl)
        except sqlite3.Error as error:
            raise SchemaError(f"Cannot create table {table_name}: {error}.") from error
        _LOGGER.debug("schema_table_created", table=table_name)
    for ddl in SCHEMA_INDEXES:
        try:
            connection.execute(ddl)
        except sqlite3.Error as error:
            raise SchemaError(f"Cannot create index: {error}. Statement: {ddl}") from error
