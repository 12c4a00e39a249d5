"""Runtime configuration model for the recorder store.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_DB_PATH,
    DEFAULT_LOG_LEVEL,
    IN_MEMORY_DB_PATH,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import RecorderConfigError


@dataclass(frozen=True)
class RecorderConfig:
    """Validated runtime configuration.

    Attributes:
        db_path: SQLite database file, or ``:memory:``.
        connect_timeout_seconds: Seconds to wait on a locked database.
        log_level: Minimum structured log level.
    """

    db_path: str
    connect_timeout_seconds: float
    log_level: str

    @classmethod
    def from_env(cls) -> "RecorderConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RecorderConfigError: If environment values are invalid.
        """
        db_path_value = os.getenv("RECORDER_DB_PATH", str(DEFAULT_DB_PATH))
        timeout_value = os.getenv(
            "RECORDER_CONNECT_TIMEOUT", str(DEFAULT_CONNECT_TIMEOUT_SECONDS)
        )
        log_level_value = os.getenv("RECORDER_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        return cls(
            db_path=_resolve_db_path(db_path_value),
            connect_timeout_seconds=_parse_connect_timeout(timeout_value),
            log_level=_parse_log_level(log_level_value),
        )


def _resolve_db_path(raw_value: str) -> str:
    """Resolve the database path, keeping the in-memory marker intact."""
    if raw_value == IN_MEMORY_DB_PATH:
        return raw_value
    return str(Path(raw_value).expanduser().resolve())


def _parse_connect_timeout(raw_value: str) -> float:
    """Parse the connect timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed non-negative timeout in seconds.

    Raises:
        RecorderConfigError: If value is not a non-negative number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise RecorderConfigError(
            "Invalid RECORDER_CONNECT_TIMEOUT value: "
            f"expected number, got '{raw_value}'. "
            "Set RECORDER_CONNECT_TIMEOUT to a number of seconds."
        ) from error
    if timeout < 0:
        raise RecorderConfigError(
            f"Invalid RECORDER_CONNECT_TIMEOUT value: {timeout} is negative. "
            "Use zero or a positive number of seconds."
        )
    return timeout


def _parse_log_level(raw_value: str) -> str:
    level = raw_value.strip().lower()
    if level not in SUPPORTED_LOG_LEVELS:
        raise RecorderConfigError(
            f"Invalid RECORDER_LOG_LEVEL value '{raw_value}'. "
            f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
        )
    return level
