"""
Adherence and technique metrics over an event snapshot.

All functions are pure: they take the events and, where "today" matters,
an explicit `now`. Day boundaries are local midnight.
"""

import logging
import math

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta

from smartinhale.constants import (
    ADHERENCE_CAP_PERCENT,
    CORRECT_STRENGTH_THRESHOLD,
    EXPECTED_DOSES_PER_DAY,
    MILLISECONDS_PER_SECOND,
    RECENT_EVENTS_LIMIT,
)
from smartinhale.models.dashboard import (
    DailyAggregate,
    DashboardSummary,
    DeviceInfo,
    TechniqueIssueCounters,
)
from smartinhale.models.event import Event

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def local_day_bounds(now: datetime) -> tuple[int, int]:
    """
    Epoch-ms bounds [start, end) of the local calendar day containing now.

    Args:
        now: Naive local datetime, or an aware datetime (converted to local)
    """
    local_now = now.astimezone().replace(tzinfo=None) if now.tzinfo else now
    midnight = datetime.combine(local_now.date(), time.min)
    next_midnight = midnight + timedelta(days=1)
    return (
        int(midnight.timestamp() * MILLISECONDS_PER_SECOND),
        int(next_midnight.timestamp() * MILLISECONDS_PER_SECOND),
    )


def local_date(ts: int) -> date | None:
    """Local calendar day of an epoch-ms timestamp, None if out of range."""
    try:
        return datetime.fromtimestamp(ts / MILLISECONDS_PER_SECOND).date()
    except (OverflowError, OSError, ValueError):
        return None


def todays_count(events: Iterable[Event], now: datetime | None = None) -> int:
    """
    Count events recorded during the current local calendar day.

    Args:
        events: Event snapshot
        now: Reference time (defaults to the current time)
    """
    start, end = local_day_bounds(now or datetime.now())
    return sum(1 for event in events if start <= event.ts < end)


def adherence_percent(
    events: Iterable[Event],
    now: datetime | None = None,
    expected_doses_per_day: int = EXPECTED_DOSES_PER_DAY,
) -> int:
    """
    Percentage of today's expected doses actually recorded, capped at 100.

    adherence = min(100, round(todays_count / expected * 100))

    Args:
        events: Event snapshot
        now: Reference time (defaults to the current time)
        expected_doses_per_day: Target dose count

    Returns:
        Integer percentage in [0, 100]
    """
    if expected_doses_per_day <= 0:
        return 0
    count = todays_count(events, now)
    percent = round_half_up(count / expected_doses_per_day * 100)
    return min(ADHERENCE_CAP_PERCENT, percent)


def daily_aggregate(
    events: Iterable[Event], threshold: float = CORRECT_STRENGTH_THRESHOLD
) -> list[DailyAggregate]:
    """
    Correct/wrong technique counts per local calendar day.

    Args:
        events: Event snapshot
        threshold: Strength threshold for correct technique

    Returns:
        One DailyAggregate per day present, ascending by date
    """
    by_day: dict[str, DailyAggregate] = {}
    for event in events:
        day = local_date(event.ts)
        if day is None:
            logger.debug(f"Skipping event with out-of-range timestamp {event.ts}")
            continue
        key = day.isoformat()
        bucket = by_day.setdefault(key, DailyAggregate(date=key))
        if event.is_correct_technique(threshold):
            bucket.correct += 1
        else:
            bucket.wrong += 1
    return [by_day[key] for key in sorted(by_day)]


def technique_issue_counters(
    events: Iterable[Event], threshold: float = CORRECT_STRENGTH_THRESHOLD
) -> TechniqueIssueCounters:
    """
    Tally technique problems; one event can count toward several issues.

    Args:
        events: Event snapshot
        threshold: Strength at or below which an inhale counts as weak
    """
    counters = TechniqueIssueCounters()
    for event in events:
        if not event.shake_ok:
            counters.not_shaken += 1
        if event.strength <= threshold:
            counters.weak_inhale += 1
        if not event.orientation_ok:
            counters.orientation_issues += 1
    return counters


def build_summary(
    events: Sequence[Event],
    now: datetime | None = None,
    *,
    expected_doses_per_day: int = EXPECTED_DOSES_PER_DAY,
    threshold: float = CORRECT_STRENGTH_THRESHOLD,
    status: str = "idle",
    device: DeviceInfo | None = None,
    recent_limit: int = RECENT_EVENTS_LIMIT,
) -> DashboardSummary:
    """
    Compute every dashboard figure from one newest-first snapshot.

    Args:
        events: Event snapshot, newest first
        now: Reference time (defaults to the current time)
        expected_doses_per_day: Target dose count
        threshold: Strength threshold for correct technique
        status: Latest connection/status string
        device: Connected device details, if any
        recent_limit: How many recent events to include
    """
    now = now or datetime.now()
    return DashboardSummary(
        adherence_percent=adherence_percent(events, now, expected_doses_per_day),
        todays_count=todays_count(events, now),
        expected_doses_per_day=expected_doses_per_day,
        last_event=events[0] if events else None,
        recent_events=list(events[:recent_limit]),
        daily=daily_aggregate(events, threshold),
        technique_issues=technique_issue_counters(events, threshold),
        total_events=len(events),
        status=status,
        device=device,
    )
