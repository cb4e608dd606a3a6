"""
Key-value blob stores used for whole-snapshot persistence.

Values are JSON-compatible Python objects. Stores give no transactional
guarantee across keys; each save replaces the whole value for its key.
"""

import copy
import logging

from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from smartinhale.database.models import Blob
from smartinhale.database.session import session_scope

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a snapshot cannot be read from or written to storage."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class BlobStore(ABC):
    """Abstract key-value store holding one JSON snapshot per key."""

    @abstractmethod
    def load(self, key: str) -> Any | None:
        """
        Read the snapshot stored under key.

        Returns:
            The stored value, or None if the key is absent

        Raises:
            PersistenceError: If the backend cannot be read
        """

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """
        Replace the snapshot stored under key.

        Raises:
            PersistenceError: If the backend cannot be written
        """


class MemoryBlobStore(BlobStore):
    """In-process store; values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SQLiteBlobStore(BlobStore):
    """
    Blob store backed by the `blobs` table.

    Requires init_database() to have been called.
    """

    def load(self, key: str) -> Any | None:
        try:
            with session_scope() as session:
                blob = session.get(Blob, key)
                return None if blob is None else blob.value
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load '{key}': {e}", key=key) from e

    def save(self, key: str, value: Any) -> None:
        try:
            with session_scope() as session:
                blob = session.get(Blob, key)
                if blob is None:
                    session.add(Blob(key=key, value=value))
                else:
                    blob.value = value
        except (SQLAlchemyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save '{key}': {e}", key=key) from e
        logger.debug(f"Saved snapshot '{key}'")
