"""CSV export of stored events."""

import csv
import io

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from smartinhale.constants import CSV_COLUMNS, MILLISECONDS_PER_SECOND
from smartinhale.models.event import Event


def format_iso_utc(ts: int) -> str:
    """Epoch ms as ISO-8601 UTC with millisecond precision, e.g. 2025-01-01T10:00:00.000Z."""
    try:
        dt = datetime.fromtimestamp(ts / MILLISECONDS_PER_SECOND, UTC)
    except (OverflowError, OSError, ValueError):
        return str(ts)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def events_to_csv(events: Iterable[Event]) -> str:
    """
    Render events as CSV text: plain header row, every value quoted.

    Returns:
        CSV text, or an empty string when there are no events
    """
    rows = [
        {
            "ts": format_iso_utc(event.ts),
            "strength": event.strength,
            "duration": event.duration,
            "shakeOk": event.shake_ok,
            "orientationOk": event.orientation_ok,
        }
        for event in events
    ]
    if not rows:
        return ""

    buffer = io.StringIO()
    buffer.write(",".join(CSV_COLUMNS) + "\n")
    writer = csv.DictWriter(
        buffer,
        fieldnames=CSV_COLUMNS,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    for row in rows:
        writer.writerow({key: _format_value(value) for key, value in row.items()})
    return buffer.getvalue().rstrip("\n")


def export_events_csv(events: Iterable[Event], output_path: Path) -> int:
    """
    Write events to a CSV file.

    Args:
        events: Events to export (newest first)
        output_path: Destination file

    Returns:
        Number of rows written
    """
    events = list(events)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        f.write(events_to_csv(events))
    return len(events)
