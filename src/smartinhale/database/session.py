"""
Database session management for SmartInhale.

A process works against one SQLite file at a time. The engine and session
factory live at module level so blob stores can open short-lived sessions
without a handle being passed around.
"""

import logging
import threading

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from smartinhale.constants import DEFAULT_DATABASE_PATH, SQLITE_BUSY_TIMEOUT_MS
from smartinhale.database.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None
_database_path: str | None = None
_init_lock = threading.Lock()


def _resolve_path(database_path: str | None) -> Path:
    """
    Expand the database path and create its parent directory.

    Raises:
        PermissionError: If the directory cannot be created
    """
    path = Path(database_path or DEFAULT_DATABASE_PATH).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create database directory {path.parent}: {e}"
        ) from e
    return path


def _build_engine(path: Path) -> Engine:
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def set_busy_timeout(dbapi_conn: Any, connection_record: Any) -> None:
        # CLI runs and a long-lived ingest may share the file
        cursor = dbapi_conn.cursor()
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    return engine


def init_database(database_path: str | None = None) -> None:
    """
    Open the SQLite database, creating the file and tables if needed.

    Repeated calls with the same path are no-ops. A different path
    disposes of the current engine and switches to the new file.

    Args:
        database_path: Path to the SQLite file (default ~/.smartinhale/smartinhale.db)

    Raises:
        PermissionError: If the database directory cannot be created
    """
    global _engine, _SessionFactory, _database_path

    path = _resolve_path(database_path)

    with _init_lock:
        if _engine is not None and _database_path == str(path):
            return

        if _engine is not None:
            logger.debug(f"Switching database from {_database_path} to {path}")
            _engine.dispose()

        _engine = _build_engine(path)
        Base.metadata.create_all(_engine)
        _SessionFactory = sessionmaker(bind=_engine)
        _database_path = str(path)
        logger.debug(f"Database ready at {path}")


def get_session() -> Session:
    """
    Get a new database session.

    Raises:
        RuntimeError: If database has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session]:
    """
    Session that commits when the block exits cleanly and rolls back otherwise.

    Yields:
        A database session.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_database_path() -> str | None:
    """Path of the open database file, if any."""
    return _database_path


def cleanup_database() -> None:
    """Dispose of the engine and forget the open database (used by tests)."""
    global _engine, _SessionFactory, _database_path

    with _init_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _SessionFactory = None
        _database_path = None
