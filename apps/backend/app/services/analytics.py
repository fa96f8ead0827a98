from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from app.core.errors import StorageError, ValidationError
from app.schemas.events import (
    DailyMetrics,
    EventIn,
    EventSummary,
    Overview,
    Report,
    ShardStatus,
    StatusOut,
    StoredEvent,
)
from app.services import aggregator
from app.services.event_log import EventLog
from app.services.range_scanner import RangeScanner
from app.services.report_builder import ReportBuilder
from app.services.retention import RetentionSweeper, SweepResult
from app.services.shard_store import JsonlShardStore, ShardNotFound, ShardStore
from app.time_utils import Clock, utc_now, window

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Entry point for everything analytics: ingestion, reporting, retention
    and storage status. Built once per application with its storage and
    clock; holds no per-request state.
    """

    def __init__(self, store: ShardStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self.events = EventLog(store, clock)
        self.scanner = RangeScanner(store)
        self.reports = ReportBuilder(clock)
        self.sweeper = RetentionSweeper(store, clock)

    @classmethod
    def from_directory(cls, root: Path, clock: Clock = utc_now) -> "AnalyticsService":
        return cls(JsonlShardStore(root), clock)

    def _window(self, days: int):
        if days < 1:
            raise ValidationError("days must be >= 1")
        return window(self.clock, days)

    def track(self, event_in: EventIn) -> StoredEvent:
        return self.events.append(event_in)

    def overview(self, tenant_id: str, days: int = 7) -> Overview:
        start, end = self._window(days)
        events = self.scanner.collect(tenant_id, start, end)
        return aggregator.overview(tenant_id, events, start, end)

    def daily_metrics(self, tenant_id: str, days: int = 30) -> DailyMetrics:
        start, end = self._window(days)
        events = self.scanner.collect(tenant_id, start, end)
        return aggregator.daily_metrics(tenant_id, events, start, end, days)

    def report(self, tenant_id: str, days: int = 30) -> Report:
        overview = self.overview(tenant_id, days)
        return self.reports.compose(overview, overview.daily_breakdown, days)

    def event_summary(self, tenant_id: str, days: int = 7) -> EventSummary:
        overview = self.overview(tenant_id, days)
        return EventSummary(
            tenant_id=tenant_id,
            period=f"{days} days",
            event_types=overview.event_types,
            total_events=overview.total_events,
            unique_sessions=overview.unique_sessions,
        )

    def cleanup(self, days_to_keep: int = 90) -> SweepResult:
        return self.sweeper.sweep(days_to_keep)

    def status(self) -> StatusOut:
        files: List[ShardStatus] = []
        for shard in self.store.list_shards():
            try:
                lines = self.store.read_shard(shard.name)
            except ShardNotFound:
                continue
            except StorageError as exc:
                logger.warning("Skipping unreadable analytics file %s: %s", shard.name, exc)
                continue
            files.append(
                ShardStatus(
                    filename=shard.name,
                    size=shard.size,
                    event_count=len(lines),
                    last_modified=shard.last_modified,
                )
            )

        files.sort(key=lambda f: f.last_modified, reverse=True)
        return StatusOut(
            total_files=len(files),
            total_events=sum(f.event_count for f in files),
            total_size=sum(f.size for f in files),
            files=files,
        )
