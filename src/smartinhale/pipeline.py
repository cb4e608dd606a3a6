"""
Inhalation ingestion pipeline.

Wires transport payloads through decode → normalize → store, and serves
dashboard summaries from the current snapshot. Each payload is handled to
completion before the next one starts.
"""

import logging
import random

from datetime import datetime
from typing import Any

from smartinhale.analysis.metrics import build_summary
from smartinhale.config import MetricsSettings
from smartinhale.connection import ConnectionStatusNotifier
from smartinhale.constants import (
    SIMULATED_EVENT_COUNT,
    SIMULATED_FLAG_OK_PROBABILITY,
    SIMULATION_WINDOW_MS,
    TEST_EVENT,
)
from smartinhale.models.dashboard import DashboardSummary
from smartinhale.models.event import Event
from smartinhale.normalizer import normalize_event, now_ms
from smartinhale.parsers.decoder import decode_payload
from smartinhale.store.event_store import EventStore
from smartinhale.transport.base import DeviceTransport, TransportError

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Owns the event store and connection status for one device session."""

    def __init__(
        self,
        store: EventStore,
        settings: MetricsSettings | None = None,
        notifier: ConnectionStatusNotifier | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or MetricsSettings()
        self.notifier = notifier or ConnectionStatusNotifier()
        self.dropped_payloads = 0

    def handle_payload(self, buffer: bytes) -> Event | None:
        """
        Decode, normalize and store one notification buffer.

        Returns:
            The stored Event, or None if the payload could not be decoded
        """
        result = decode_payload(buffer)
        if not result.ok:
            self.dropped_payloads += 1
            logger.warning(f"Dropping payload ({len(buffer)} bytes): {result.error}")
            return None

        event = normalize_event(result.raw)
        self.store.ingest(event)
        logger.debug(f"Ingested {result.format.value if result.format else '?'} event")
        return event

    def inject(self, raw: Any) -> Event:
        """Store a raw record directly, bypassing the decoder."""
        event = normalize_event(raw)
        self.store.ingest(event)
        return event

    def inject_test_event(self) -> Event:
        """Store a known-good event stamped with the current time."""
        return self.inject({"ts": now_ms(), **TEST_EVENT})

    def simulate(
        self, count: int = SIMULATED_EVENT_COUNT, rng: random.Random | None = None
    ) -> list[Event]:
        """
        Store random events spread over the last hour.

        Args:
            count: Number of events to generate
            rng: Random source (pass a seeded one for repeatable output)
        """
        rng = rng or random.Random()
        current = now_ms()
        events = []
        for _ in range(count):
            sample = {
                "ts": current - rng.randrange(SIMULATION_WINDOW_MS),
                "strength": round(rng.random(), 2),
                "duration": round(0.5 + rng.random() * 2, 2),
                "shakeOk": rng.random() < SIMULATED_FLAG_OK_PROBABILITY,
                "orientationOk": rng.random() < SIMULATED_FLAG_OK_PROBABILITY,
            }
            events.append(self.inject(sample))
        self.notifier.notify(f"Simulated {count} events")
        return events

    def clear(self) -> None:
        self.store.clear()
        self.notifier.notify("cleared events")

    def consume(self, transport: DeviceTransport) -> int:
        """
        Connect a transport and ingest everything it delivers.

        Transport failures are reported as an error status; events already
        ingested are kept.

        Returns:
            Number of events ingested
        """
        ingested = 0
        try:
            transport.connect(self.notifier)
            for buffer in transport.payloads():
                if self.handle_payload(buffer) is not None:
                    ingested += 1
        except TransportError as e:
            logger.error(f"Transport failure: {e}")
            self.notifier.notify_error(str(e))
            return ingested

        transport.disconnect()
        return ingested

    def summary(self, now: datetime | None = None) -> DashboardSummary:
        return build_summary(
            self.store.snapshot(),
            now,
            expected_doses_per_day=self.settings.expected_doses_per_day,
            threshold=self.settings.strength_threshold,
            status=self.notifier.status,
            device=self.notifier.device,
        )
