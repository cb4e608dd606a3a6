"""Event and patient storage for SmartInhale."""

from smartinhale.store.blob_store import (
    BlobStore,
    MemoryBlobStore,
    PersistenceError,
    SQLiteBlobStore,
)
from smartinhale.store.event_store import EventStore
from smartinhale.store.patients import PatientRegistry

__all__ = [
    "BlobStore",
    "EventStore",
    "MemoryBlobStore",
    "PatientRegistry",
    "PersistenceError",
    "SQLiteBlobStore",
]
