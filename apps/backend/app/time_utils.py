from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterator

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_z(dt: datetime) -> str:
    """
    Millisecond-precision UTC ISO string with a "Z" suffix,
    e.g. "2026-10-19T08:15:02.123Z". Existing shards use this exact shape.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def parse_ts(ts: str | None) -> datetime | None:
    if not ts:
        return None
    try:
        # fromisoformat doesn't accept "Z" before py3.11
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day in [start, end], ascending."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def window(clock: Clock, days: int) -> tuple[date, date]:
    """Inclusive [today - days, today] window in UTC."""
    today = clock().astimezone(timezone.utc).date()
    return today - timedelta(days=days), today
