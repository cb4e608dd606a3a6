"""Database layer for SmartInhale."""

from smartinhale.database.session import (
    cleanup_database,
    init_database,
    session_scope,
)

__all__ = [
    "cleanup_database",
    "init_database",
    "session_scope",
]
