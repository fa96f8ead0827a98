from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta, timezone

from app.core.errors import StorageError, ValidationError
from app.services.shard_store import ShardKey, ShardNotFound, ShardStore
from app.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    cleaned_count: int
    cutoff_date: date


class RetentionSweeper:
    def __init__(self, store: ShardStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    def cutoff_for(self, days_to_keep: int) -> date:
        today = self._clock().astimezone(timezone.utc).date()
        # a window reaching past year 1 keeps everything
        if days_to_keep >= (today - date.min).days:
            return date.min
        return today - timedelta(days=days_to_keep)

    def sweep(self, days_to_keep: int) -> SweepResult:
        """
        Delete every shard dated strictly before today - days_to_keep.
        Shards without a parseable date in their name are never touched.
        """
        if days_to_keep < 0:
            raise ValidationError("daysToKeep must be >= 0")

        cutoff = self.cutoff_for(days_to_keep)
        cleaned = 0

        for shard in self._store.list_shards():
            key = ShardKey.parse(shard.name)
            if key is None or key.day >= cutoff:
                continue
            try:
                self._store.delete_shard(shard.name)
            except ShardNotFound:
                continue
            except StorageError as exc:
                logger.warning("Could not delete analytics file %s: %s", shard.name, exc)
                continue
            cleaned += 1
            logger.info("Cleaned up old analytics file: %s", shard.name)

        logger.info("Retention sweep removed %d file(s) dated before %s", cleaned, cutoff)
        return SweepResult(cleaned_count=cleaned, cutoff_date=cutoff)
