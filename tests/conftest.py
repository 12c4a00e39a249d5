"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def t0() -> datetime:
    """Fixed aware UTC reference time for snapshot timestamps."""
    return T0


@pytest.fixture
def recorder_config(tmp_path: Path):
    """Config pointing at a fresh database file under tmp_path."""
    from core.config import RecorderConfig

    return RecorderConfig(
        db_path=str(tmp_path / "state" / "recorder.db"),
        connect_timeout_seconds=1.0,
        log_level="info",
    )


@pytest.fixture
def recorder_store(recorder_config):
    """Initialized store, closed after the test."""
    from store.recorder_store import RecorderStore

    store = RecorderStore(recorder_config)
    store.init()
    yield store
    store.close()
