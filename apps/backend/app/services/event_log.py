from __future__ import annotations

import logging

from app.core.errors import StorageError, ValidationError
from app.schemas.events import EventIn, StoredEvent
from app.services.shard_store import ShardKey, ShardStore, check_tenant_id
from app.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class EventLog:
    """
    Ingestion side of the analytics store.

    The timestamp is always the ingestion instant from `clock`; a client
    cannot back-date an event. The event lands in the shard of the UTC day
    of that instant.
    """

    def __init__(self, store: ShardStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    def _stamp(self):
        now = self._clock()
        # stored with millisecond precision, keep the in-memory copy identical
        return now.replace(microsecond=(now.microsecond // 1000) * 1000)

    def append(self, event_in: EventIn) -> StoredEvent:
        event_type = event_in.event_type or ""
        tenant_id = event_in.tenant_id or ""
        if not event_type.strip() or not tenant_id.strip():
            raise ValidationError("eventType and tenantId are required")
        check_tenant_id(tenant_id)

        event = StoredEvent(
            event_type=event_type,
            tenant_id=tenant_id,
            session_id=event_in.session_id or None,
            timestamp=self._stamp(),
            data=event_in.data or {},
            user_agent=event_in.user_agent,
            ip_address=event_in.ip_address,
        )
        key = ShardKey(tenant_id=event.tenant_id, day=event.day)

        try:
            self._store.append(key, event.to_line())
        except StorageError:
            logger.exception("Error tracking event %s for tenant %s", event_type, tenant_id)
            raise

        logger.info("Tracked event: %s for tenant: %s", event_type, tenant_id)
        return event
