"""
Ingestion: validation, ingestion-time stamping, and day sharding.
"""

import json
import shutil
from datetime import date

import pytest

from app.core.errors import StorageError, ValidationError
from app.schemas.events import EventIn
from app.services.event_log import EventLog
from app.services.range_scanner import RangeScanner
from app.services.shard_store import JsonlShardStore


def _log(store, clock):
    return EventLog(store, clock)


class TestValidation:
    @pytest.mark.parametrize(
        "payload",
        [
            {"eventType": "", "tenantId": "t1"},
            {"tenantId": "t1"},
            {"eventType": "widget_loaded"},
            {"eventType": "widget_loaded", "tenantId": ""},
            {"eventType": "   ", "tenantId": "t1"},
        ],
    )
    def test_missing_required_fields_write_nothing(self, store, clock, shard_dir, payload):
        with pytest.raises(ValidationError):
            _log(store, clock).append(EventIn.model_validate(payload))
        assert not shard_dir.exists() or list(shard_dir.iterdir()) == []

    def test_unsafe_tenant_id_is_rejected(self, store, clock):
        with pytest.raises(ValidationError):
            _log(store, clock).append(EventIn(event_type="x", tenant_id="../../etc"))


class TestAppend:
    def test_event_is_stamped_with_ingestion_time(self, store, clock, shard_dir):
        event = _log(store, clock).append(
            EventIn(
                event_type="widget_loaded",
                tenant_id="acme",
                data={"page": "/home", "nested": {"ok": True}},
                user_agent="Mozilla/5.0",
                ip_address="10.0.0.1",
            )
        )

        assert event.timestamp == clock.now.replace(microsecond=123000)
        assert event.session_id is None

        line = (shard_dir / "acme_2026-03-10.jsonl").read_text()
        record = json.loads(line)
        assert record == {
            "eventType": "widget_loaded",
            "tenantId": "acme",
            "sessionId": None,
            "timestamp": "2026-03-10T12:30:15.123Z",
            "data": {"page": "/home", "nested": {"ok": True}},
            "userAgent": "Mozilla/5.0",
            "ipAddress": "10.0.0.1",
        }
        assert line.endswith("\n") and line.count("\n") == 1

    def test_caller_supplied_timestamp_is_ignored(self, store, clock):
        event_in = EventIn.model_validate(
            {"eventType": "widget_loaded", "tenantId": "acme", "timestamp": "2020-01-01T00:00:00Z"}
        )
        event = _log(store, clock).append(event_in)
        assert event.day == date(2026, 3, 10)

    def test_empty_session_id_is_stored_as_null(self, store, clock):
        event = _log(store, clock).append(EventIn(event_type="x", tenant_id="acme", session_id=""))
        assert event.session_id is None

    def test_appends_preserve_order_within_a_day(self, store, clock):
        log = _log(store, clock)
        log.append(EventIn(event_type="A", tenant_id="acme"))
        clock.advance(seconds=1)
        log.append(EventIn(event_type="B", tenant_id="acme"))

        events = RangeScanner(store).collect("acme", date(2026, 3, 10), date(2026, 3, 10))
        assert [e.event_type for e in events] == ["A", "B"]

    def test_events_land_in_the_shard_of_their_day(self, store, clock):
        log = _log(store, clock)
        log.append(EventIn(event_type="today", tenant_id="acme"))
        clock.advance(days=1)
        log.append(EventIn(event_type="tomorrow", tenant_id="acme"))

        scanner = RangeScanner(store)
        assert [e.event_type for e in scanner.collect("acme", date(2026, 3, 11), date(2026, 3, 12))] == [
            "tomorrow"
        ]
        assert [e.event_type for e in scanner.collect("acme", date(2026, 3, 9), date(2026, 3, 10))] == [
            "today"
        ]

    def test_tracking_continues_after_directory_removal(self, store, clock, shard_dir):
        log = _log(store, clock)
        log.append(EventIn(event_type="a", tenant_id="acme"))
        shutil.rmtree(shard_dir)
        log.append(EventIn(event_type="b", tenant_id="acme"))

        events = RangeScanner(store).collect("acme", date(2026, 3, 10), date(2026, 3, 10))
        assert [e.event_type for e in events] == ["b"]

    def test_write_failure_propagates(self, tmp_path, clock):
        blocker = tmp_path / "analytics"
        blocker.write_text("")
        with pytest.raises(StorageError):
            _log(JsonlShardStore(blocker), clock).append(EventIn(event_type="x", tenant_id="acme"))
