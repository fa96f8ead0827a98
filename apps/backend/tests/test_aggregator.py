from datetime import date, datetime, timezone

from app.schemas.events import StoredEvent
from app.services import aggregator

DAY1 = date(2026, 3, 1)
DAY2 = date(2026, 3, 2)


def _event(event_type, session_id=None, day=DAY1, hour=10, tenant="acme"):
    return StoredEvent(
        event_type=event_type,
        tenant_id=tenant,
        session_id=session_id,
        timestamp=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc),
    )


class TestCounts:
    def test_unique_sessions_ignore_missing_ids(self):
        events = [_event("a", "s1"), _event("a", "s1"), _event("b", "s2"), _event("c", None)]
        assert aggregator.count_unique_sessions(events) == 2
        assert len(events) == 4

    def test_event_type_frequencies(self):
        events = [_event("message_sent"), _event("widget_loaded"), _event("message_sent")]
        counts = aggregator.count_event_types(events)
        assert counts == {"message_sent": 2, "widget_loaded": 1}
        assert list(counts) == ["message_sent", "widget_loaded"]

    def test_empty_inputs(self):
        assert aggregator.count_event_types([]) == {}
        assert aggregator.count_unique_sessions([]) == 0


class TestDailyBreakdown:
    def test_empty_window_is_zero_filled(self):
        buckets = aggregator.daily_breakdown([], date(2026, 2, 27), date(2026, 3, 2))

        assert [b.day for b in buckets] == [
            date(2026, 2, 27),
            date(2026, 2, 28),
            date(2026, 3, 1),
            date(2026, 3, 2),
        ]
        for b in buckets:
            assert (b.total_events, b.unique_sessions, b.event_types) == (0, 0, {})

    def test_events_go_to_their_utc_day(self):
        events = [
            _event("a", "s1", DAY1, hour=0),
            _event("a", "s2", DAY1, hour=23),
            _event("b", "s1", DAY2, hour=0),
        ]
        day1, day2 = aggregator.daily_breakdown(events, DAY1, DAY2)

        assert (day1.total_events, day1.unique_sessions, day1.event_types) == (2, 2, {"a": 2})
        assert (day2.total_events, day2.unique_sessions, day2.event_types) == (1, 1, {"b": 1})

    def test_events_outside_window_are_ignored(self):
        events = [_event("early", day=date(2026, 2, 28)), _event("in", day=DAY1)]
        (only,) = aggregator.daily_breakdown(events, DAY1, DAY1)
        assert only.event_types == {"in": 1}

    def test_serializes_with_date_key(self):
        (bucket,) = aggregator.daily_breakdown([], DAY1, DAY1)
        assert bucket.model_dump(mode="json", by_alias=True) == {
            "date": "2026-03-01",
            "totalEvents": 0,
            "uniqueSessions": 0,
            "eventTypes": {},
        }


class TestOverview:
    def test_two_day_window_scenario(self):
        events = [
            _event("widget_loaded", "s1"),
            _event("message_sent", "s1"),
            _event("message_sent", "s2"),
        ]
        ov = aggregator.overview("acme", events, DAY1, DAY2)

        assert ov.total_events == 3
        assert ov.unique_sessions == 2
        assert ov.event_types == {"widget_loaded": 1, "message_sent": 2}
        assert [(b.day, b.total_events, b.unique_sessions) for b in ov.daily_breakdown] == [
            (DAY1, 3, 2),
            (DAY2, 0, 0),
        ]
        assert (ov.date_range.start, ov.date_range.end) == (DAY1, DAY2)


class TestDailyMetrics:
    def test_summary(self):
        events = [_event("a", "s1", DAY1), _event("a", "s2", DAY2), _event("b", "s2", DAY2)]
        metrics = aggregator.daily_metrics("acme", events, DAY1, DAY2, days=1)

        assert metrics.period == "1 days"
        assert len(metrics.metrics) == 2
        assert metrics.summary.total_events == 3
        assert metrics.summary.avg_events_per_day == 3.0
        assert metrics.summary.total_sessions == 2
        assert metrics.summary.most_active_day.day == DAY2

    def test_ties_pick_the_first_day(self):
        buckets = aggregator.daily_breakdown([_event("a", day=DAY1), _event("a", day=DAY2)], DAY1, DAY2)
        assert aggregator.most_active_day(buckets).day == DAY1

    def test_most_active_day_of_nothing(self):
        assert aggregator.most_active_day([]) is None
