from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.factory import create_app
from app.services.analytics import AnalyticsService
from app.services.shard_store import JsonlShardStore

NOW = datetime(2026, 3, 10, 12, 30, 15, 123456, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock the tests can move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def shard_dir(tmp_path):
    return tmp_path / "analytics"


@pytest.fixture
def store(shard_dir):
    return JsonlShardStore(shard_dir)


@pytest.fixture
def analytics(store, clock):
    return AnalyticsService(store, clock)


@pytest.fixture
def settings(tmp_path, shard_dir):
    return Settings(
        data_dir=tmp_path,
        analytics_dir=shard_dir,
        database_url="sqlite://",
        environment="development",
        cdn_base_url="https://cdn.example.com",
    )


@pytest.fixture
def client(settings, clock):
    return TestClient(create_app(settings, clock))
