from datetime import date, datetime, timezone

from app.schemas.events import DateRange, Overview
from app.services import aggregator
from app.services.report_builder import (
    ReportBuilder,
    avg_session_length,
    session_conversion_rate,
    top_event_types,
)

NOW = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


def _overview(event_types, unique_sessions):
    return Overview(
        tenant_id="acme",
        date_range=DateRange(start=date(2026, 3, 9), end=date(2026, 3, 10)),
        total_events=sum(event_types.values()),
        unique_sessions=unique_sessions,
        event_types=event_types,
        daily_breakdown=aggregator.daily_breakdown([], date(2026, 3, 9), date(2026, 3, 10)),
    )


class TestInsights:
    def test_zero_sessions_do_not_divide(self):
        ov = _overview({"widget_loaded": 4}, unique_sessions=0)
        assert session_conversion_rate(ov) == "0%"
        assert avg_session_length(ov) == "0"

    def test_conversion_rate_formatting(self):
        ov = _overview({"message_sent": 2, "widget_loaded": 1}, unique_sessions=3)
        assert session_conversion_rate(ov) == "66.67%"
        assert avg_session_length(ov) == "1.0"

    def test_conversion_without_messages(self):
        ov = _overview({"widget_loaded": 5}, unique_sessions=2)
        assert session_conversion_rate(ov) == "0.00%"
        assert avg_session_length(ov) == "2.5"

    def test_top_event_types_keeps_insertion_order_on_ties(self):
        counts = {"a": 1, "b": 3, "c": 3, "d": 2, "e": 1, "f": 5, "g": 1}
        top = top_event_types(counts)

        assert [(t.type, t.count) for t in top] == [("f", 5), ("b", 3), ("c", 3), ("d", 2), ("a", 1)]


class TestCompose:
    def test_report_shape(self):
        ov = _overview({"message_sent": 3, "session_created": 2}, unique_sessions=2)
        report = ReportBuilder(clock=lambda: NOW).compose(ov, ov.daily_breakdown, days=1)

        assert report.generated_at == NOW
        assert report.period == "1 days"
        assert report.insights.total_engagement == 5
        assert report.insights.session_conversion_rate == "150.00%"
        assert report.insights.avg_session_length == "2.5"
        assert report.daily_metrics == ov.daily_breakdown

        body = report.model_dump(mode="json", by_alias=True)
        assert body["generatedAt"] == "2026-03-10T08:00:00.000Z"
        assert body["insights"]["topEventTypes"] == [
            {"type": "message_sent", "count": 3},
            {"type": "session_created", "count": 2},
        ]

    def test_busiest_day_empty_window(self):
        ov = _overview({}, unique_sessions=0)
        report = ReportBuilder(clock=lambda: NOW).compose(ov, ov.daily_breakdown, days=1)
        assert report.insights.busiest_day is None
        assert report.insights.top_event_types == []
