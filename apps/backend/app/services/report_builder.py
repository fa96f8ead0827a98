from __future__ import annotations

from typing import Dict, List, Sequence

from app.schemas.events import DailyBucket, Overview, Report, ReportInsights, TopEventType
from app.services.aggregator import most_active_day
from app.time_utils import Clock, utc_now

CONVERSION_EVENT = "message_sent"
TOP_EVENT_TYPES = 5


def session_conversion_rate(overview: Overview) -> str:
    if overview.unique_sessions == 0:
        return "0%"
    sent = overview.event_types.get(CONVERSION_EVENT, 0)
    return f"{sent / overview.unique_sessions * 100:.2f}%"


def avg_session_length(overview: Overview) -> str:
    if overview.unique_sessions == 0:
        return "0"
    return f"{overview.total_events / overview.unique_sessions:.1f}"


def top_event_types(event_types: Dict[str, int], limit: int = TOP_EVENT_TYPES) -> List[TopEventType]:
    # sorted() is stable, so equal counts keep insertion order
    ranked = sorted(event_types.items(), key=lambda kv: kv[1], reverse=True)
    return [TopEventType(type=t, count=c) for t, c in ranked[:limit]]


class ReportBuilder:
    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    def compose(self, overview: Overview, breakdown: Sequence[DailyBucket], days: int) -> Report:
        busiest = most_active_day(breakdown)

        insights = ReportInsights(
            total_engagement=overview.total_events,
            session_conversion_rate=session_conversion_rate(overview),
            avg_session_length=avg_session_length(overview),
            top_event_types=top_event_types(overview.event_types),
            busiest_day=busiest.day if busiest and busiest.total_events else None,
        )

        return Report(
            tenant_id=overview.tenant_id,
            generated_at=self._clock(),
            period=f"{days} days",
            overview=overview,
            daily_metrics=list(breakdown),
            insights=insights,
        )
