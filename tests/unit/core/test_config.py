"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import RecorderConfig
from core.errors import RecorderConfigError


def test_from_env_resolves_db_path(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Config should resolve the database path from environment."""
    monkeypatch.setenv("RECORDER_DB_PATH", str(tmp_path / "nested" / "rec.db"))

    config = RecorderConfig.from_env()

    assert config.db_path == str((tmp_path / "nested" / "rec.db").resolve())


def test_from_env_keeps_in_memory_marker(monkeypatch: pytest.MonkeyPatch) -> None:
    """The in-memory database marker should pass through unresolved."""
    monkeypatch.setenv("RECORDER_DB_PATH", ":memory:")

    config = RecorderConfig.from_env()

    assert config.db_path == ":memory:"


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to defaults."""
    for name in ("RECORDER_DB_PATH", "RECORDER_CONNECT_TIMEOUT", "RECORDER_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    config = RecorderConfig.from_env()

    assert config.db_path.endswith("recorder.db")
    assert config.connect_timeout_seconds == 5.0
    assert config.log_level == "info"


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a non-numeric connect timeout."""
    monkeypatch.setenv("RECORDER_CONNECT_TIMEOUT", "soon")

    with pytest.raises(RecorderConfigError, match="RECORDER_CONNECT_TIMEOUT"):
        RecorderConfig.from_env()


def test_from_env_raises_for_negative_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a negative connect timeout."""
    monkeypatch.setenv("RECORDER_CONNECT_TIMEOUT", "-1")

    with pytest.raises(RecorderConfigError):
        RecorderConfig.from_env()


def test_from_env_normalizes_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Log level should be case-insensitive."""
    monkeypatch.setenv("RECORDER_LOG_LEVEL", " DEBUG ")

    config = RecorderConfig.from_env()

    assert config.log_level == "debug"


def test_from_env_raises_for_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for an unsupported log level."""
    monkeypatch.setenv("RECORDER_LOG_LEVEL", "verbose")

    with pytest.raises(RecorderConfigError, match="verbose"):
        RecorderConfig.from_env()
