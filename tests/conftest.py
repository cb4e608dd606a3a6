"""Pytest configuration and fixtures for SmartInhale tests."""

import tempfile

from datetime import datetime
from pathlib import Path

import pytest


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line("markers", "parser: Tests for payload decoding")
    config.addinivalue_line(
        "markers", "business_logic: Tests for core business logic and algorithms"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


def pytest_collection_modifyitems(items):
    """Apply unit/integration markers based on test directory."""
    for item in items:
        path = str(item.fspath)
        if "/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def isolated_user_dirs(tmp_path, monkeypatch):
    """Keep config and log files out of the real home directory."""
    config_path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr("smartinhale.config.get_config_path", lambda: config_path)
    monkeypatch.setattr("smartinhale.cli.get_config_path", lambda: config_path)
    monkeypatch.setattr("smartinhale.logging_config.DEFAULT_LOG_DIR", tmp_path / "logs")
    return config_path


@pytest.fixture
def fixed_now():
    """Reference 'now' for metrics tests: 2025-03-12 15:30 local time."""
    return datetime(2025, 3, 12, 15, 30, 0)


@pytest.fixture
def memory_blob_store():
    """Return an empty in-memory blob store."""
    from smartinhale.store.blob_store import MemoryBlobStore

    return MemoryBlobStore()


@pytest.fixture
def event_store(memory_blob_store):
    """Return an empty event store backed by memory."""
    from smartinhale.store.event_store import EventStore

    store = EventStore(memory_blob_store)
    store.load_initial()
    return store


@pytest.fixture
def pipeline(event_store):
    """Return an ingestion pipeline with default metrics settings."""
    from smartinhale.pipeline import IngestionPipeline

    return IngestionPipeline(event_store)


# =============================================================================
# Database Test Fixtures
# =============================================================================


@pytest.fixture
def temp_db():
    """Create a temporary database path for testing."""
    temp_dir = Path(tempfile.gettempdir())
    db_path = temp_dir / f"test_smartinhale_{datetime.now().timestamp()}.db"

    yield db_path

    if db_path.exists():
        db_path.unlink()
    for ext in ["-wal", "-shm", "-journal"]:
        extra = Path(str(db_path) + ext)
        if extra.exists():
            extra.unlink()


@pytest.fixture
def initialized_db(temp_db):
    """Initialize the global database against a temporary file."""
    from smartinhale.database.session import cleanup_database, init_database

    cleanup_database()
    init_database(str(temp_db))

    yield temp_db

    cleanup_database()
