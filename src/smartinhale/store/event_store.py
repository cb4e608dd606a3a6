"""
Rolling inhalation event store.

Holds the newest-first, capacity-bounded sequence of Events and writes a
full snapshot to the blob store after every mutation. The in-memory
sequence is authoritative for the session: a failed write is logged and
ingestion carries on.
"""

import logging
import threading

from pydantic import ValidationError

from smartinhale.constants import DEFAULT_STORE_CAPACITY, EVENTS_KEY
from smartinhale.models.event import Event
from smartinhale.store.blob_store import BlobStore, PersistenceError

logger = logging.getLogger(__name__)


class EventStore:
    """Newest-first event sequence with FIFO-by-age eviction."""

    def __init__(
        self,
        blob_store: BlobStore,
        capacity: int = DEFAULT_STORE_CAPACITY,
        key: str = EVENTS_KEY,
    ) -> None:
        """
        Create an empty store; call load_initial() to restore a snapshot.

        Args:
            blob_store: Persistence backend
            capacity: Maximum number of events retained
            key: Blob key for the event snapshot
        """
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self._blob_store = blob_store
        self._capacity = capacity
        self._key = key
        self._events: tuple[Event, ...] = ()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def load_initial(self) -> int:
        """
        Restore events from the blob store.

        A missing or unreadable snapshot starts the store empty; malformed
        records inside a snapshot are skipped.

        Returns:
            Number of events loaded
        """
        try:
            stored = self._blob_store.load(self._key)
        except PersistenceError as e:
            logger.error(f"Could not load event snapshot: {e}")
            stored = None

        events: list[Event] = []
        if stored is None:
            logger.debug("No event snapshot found, starting empty")
        elif not isinstance(stored, list):
            logger.warning(
                f"Event snapshot has type {type(stored).__name__}, expected list"
            )
        else:
            for record in stored:
                try:
                    events.append(Event.model_validate(record))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed stored event {record!r}: {e}")

        with self._lock:
            self._events = tuple(events[: self._capacity])
            return len(self._events)

    def ingest(self, event: Event) -> None:
        """Prepend an event, evict the oldest beyond capacity, and persist."""
        with self._lock:
            self._events = ((event,) + self._events)[: self._capacity]
            self._persist()

    def clear(self) -> None:
        """Remove all events and persist the empty snapshot."""
        with self._lock:
            self._events = ()
            self._persist()

    def snapshot(self) -> tuple[Event, ...]:
        """Current events, newest first (immutable)."""
        return self._events

    @property
    def last_event(self) -> Event | None:
        events = self._events
        return events[0] if events else None

    def __len__(self) -> int:
        return len(self._events)

    def _persist(self) -> None:
        records = [event.to_record() for event in self._events]
        try:
            self._blob_store.save(self._key, records)
        except PersistenceError as e:
            logger.error(f"Event snapshot write failed, keeping in-memory state: {e}")
