from unittest.mock import Mock

import pytest
from prometheus_client import CollectorRegistry

from feed_syndicator.cache import FeedCache, MemoryStore
from feed_syndicator.metrics import CacheMetrics


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    monkeypatch.setenv("BASE_URL", "https://feeds.test")
    monkeypatch.setenv("GRAPH_ACCESS_TOKEN", "test_token")
    for name in (
        "TWITTER_COOKIES",
        "TWITTER_COOKIES_FILE",
        "CACHE_BACKEND",
        "REDIS_URL",
        "MEDIA_RESOLUTION",
        "DUAL_LOCALE_SUBJECTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cache_metrics(monkeypatch):
    """Cache metrics on a private registry, patched into the feed cache."""
    registry = CollectorRegistry()
    monkeypatch.setattr(
        "feed_syndicator.cache.feed_cache.metrics", CacheMetrics(registry=registry)
    )
    return registry


class FakeClock:
    """Settable time source for the memory store."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def feed_cache(cache_metrics, clock):
    return FeedCache(MemoryStore(max_entries=64, timer=clock), ttl_seconds=1800)


@pytest.fixture
def mock_fetcher():
    """Create a mock HTTP fetcher for testing."""
    fetcher = Mock()
    fetcher.fetch.return_value = Mock(status=200, body={})
    return fetcher
