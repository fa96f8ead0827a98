"""
Pure aggregation over already-collected events. Nothing here touches storage.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Sequence

from app.schemas.events import (
    DailyBucket,
    DailyMetrics,
    DailyMetricsSummary,
    DateRange,
    Overview,
    StoredEvent,
)
from app.time_utils import iter_days


def count_event_types(events: Sequence[StoredEvent]) -> Dict[str, int]:
    # Counter keeps first-seen order, which later breaks ranking ties
    return dict(Counter(e.event_type for e in events))


def count_unique_sessions(events: Sequence[StoredEvent]) -> int:
    return len({e.session_id for e in events if e.session_id})


def daily_breakdown(events: Sequence[StoredEvent], start: date, end: date) -> List[DailyBucket]:
    """
    One bucket per calendar day in [start, end], zero-filled, ascending.
    Events dated outside the window are ignored.
    """
    per_day: Dict[date, List[StoredEvent]] = {day: [] for day in iter_days(start, end)}
    for e in events:
        bucket = per_day.get(e.day)
        if bucket is not None:
            bucket.append(e)

    return [
        DailyBucket(
            day=day,
            total_events=len(day_events),
            unique_sessions=count_unique_sessions(day_events),
            event_types=count_event_types(day_events),
        )
        for day, day_events in per_day.items()
    ]


def most_active_day(buckets: Sequence[DailyBucket]) -> Optional[DailyBucket]:
    """First bucket holding the highest event count."""
    best: Optional[DailyBucket] = None
    for b in buckets:
        if best is None or b.total_events > best.total_events:
            best = b
    return best


def overview(tenant_id: str, events: Sequence[StoredEvent], start: date, end: date) -> Overview:
    return Overview(
        tenant_id=tenant_id,
        date_range=DateRange(start=start, end=end),
        total_events=len(events),
        unique_sessions=count_unique_sessions(events),
        event_types=count_event_types(events),
        daily_breakdown=daily_breakdown(events, start, end),
    )


def daily_metrics(
    tenant_id: str,
    events: Sequence[StoredEvent],
    start: date,
    end: date,
    days: int,
) -> DailyMetrics:
    buckets = daily_breakdown(events, start, end)
    per_day_divisor = days if days > 0 else max(len(buckets), 1)

    return DailyMetrics(
        tenant_id=tenant_id,
        period=f"{days} days",
        metrics=buckets,
        summary=DailyMetricsSummary(
            total_events=len(events),
            avg_events_per_day=len(events) / per_day_divisor,
            total_sessions=count_unique_sessions(events),
            most_active_day=most_active_day(buckets),
        ),
    )
