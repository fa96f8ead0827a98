from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Iterator, List

from app.core.errors import StorageError, ValidationError
from app.schemas.events import StoredEvent
from app.services.shard_store import ShardKey, ShardNotFound, ShardStore, check_tenant_id
from app.time_utils import iter_days

logger = logging.getLogger(__name__)


def parse_lines(shard_name: str, lines: Iterable[bytes]) -> Iterator[StoredEvent]:
    """
    Decode shard lines, skipping any that are corrupt or still being written.
    """
    for n, raw in enumerate(lines, start=1):
        try:
            yield StoredEvent.model_validate_json(raw)
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError; so are bad UTF-8 bytes
            logger.warning("Error parsing event line %d in %s: %s", n, shard_name, exc)


class RangeScanner:
    def __init__(self, store: ShardStore):
        self._store = store

    def read_day(self, tenant_id: str, day: date) -> List[StoredEvent]:
        name = ShardKey(tenant_id=tenant_id, day=day).name
        try:
            lines = self._store.read_shard(name)
        except ShardNotFound:
            return []
        except StorageError as exc:
            logger.warning("Error reading analytics file %s: %s", name, exc)
            return []
        return list(parse_lines(name, lines))

    def collect(self, tenant_id: str, start: date, end: date) -> List[StoredEvent]:
        """
        Every event of `tenant_id` in [start, end], day by day, then in
        on-disk order within a day. Missing days contribute nothing.
        """
        if start > end:
            raise ValidationError(f"startDate {start} is after endDate {end}")
        check_tenant_id(tenant_id)

        events: List[StoredEvent] = []
        for day in iter_days(start, end):
            events.extend(self.read_day(tenant_id, day))
        return events
