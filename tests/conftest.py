"""
Shared pytest fixtures for all tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add the project root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tower_stats.core.report_parser import ReportParser
from tower_stats.db.backends import MemoryBackend, SqliteBackend
from tower_stats.db.record_store import RecordStore


class FixedClock:
    """Clock that returns a set instant and can be advanced."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class SequentialIds:
    """Deterministic milestone id factory."""

    def __init__(self, prefix: str = "ms"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep config and data directories inside the test's tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("TOWER_STATS_DB", raising=False)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Clock fixed at 2026-01-01 12:00 UTC."""
    return FixedClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def db_path(tmp_path):
    """Temporary database path for testing."""
    return tmp_path / "test_tower_stats.db"


@pytest.fixture
def sqlite_backend(db_path):
    """Fresh SQLite backend with schema initialized."""
    backend = SqliteBackend(db_path)
    backend.ensure_schema()
    return backend


@pytest.fixture(params=["memory", "sqlite"])
def record_store(request, clock, ids):
    """Record store over each backend, with a fixed clock."""
    backend = request.getfixturevalue(f"{request.param}_backend")
    return RecordStore(backend, clock=clock, id_factory=ids)


@pytest.fixture
def memory_store(memory_backend, clock, ids):
    """Record store over the in-memory backend only."""
    return RecordStore(memory_backend, clock=clock, id_factory=ids)


# =============================================================================
# Parser Fixtures
# =============================================================================

@pytest.fixture
def parser():
    return ReportParser()
