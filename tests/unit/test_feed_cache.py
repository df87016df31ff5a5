"""Tests for the feed cache."""

import unittest
import zlib
from unittest.mock import Mock, patch

from prometheus_client import CollectorRegistry

from feed_syndicator.cache.feed_cache import (
    FACEBOOK,
    TWITTER,
    FeedCache,
    cache_key,
    compress_feed,
    decompress_feed,
    deserialize_feed,
    serialize_feed,
)
from feed_syndicator.cache.stores import MemoryStore
from feed_syndicator.errors import CacheUnavailable
from feed_syndicator.metrics import CacheMetrics
from tests.conftest import FakeClock
from tests.helpers import make_feed


class TestFeedCache(unittest.TestCase):
    """Test suite for FeedCache class."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        # Create test metrics with a private registry
        self.registry = CollectorRegistry()
        self.mock_metrics = CacheMetrics(registry=self.registry)

        self.patcher = patch("feed_syndicator.cache.feed_cache.metrics", self.mock_metrics)
        self.patcher.start()

        self.clock = FakeClock()
        self.store = MemoryStore(max_entries=64, timer=self.clock)
        self.cache = FeedCache(self.store, ttl_seconds=1800)
        self.key = self.cache.key(FACEBOOK, "testpage")

    def tearDown(self) -> None:
        """Clean up after tests."""
        self.patcher.stop()

    def sample(self, name: str) -> float:
        return self.registry.get_sample_value(name) or 0.0

    def test_put_and_get(self) -> None:
        """Test that a stored feed reads back with identical content and instants."""
        feed = make_feed(1, 2, 5)
        self.assertTrue(self.cache.put(self.key, feed))

        cached = self.cache.get(self.key)

        self.assertEqual(cached.metadata, feed.metadata)
        self.assertEqual(
            [(i.id, i.published_at) for i in cached.items],
            [(i.id, i.published_at) for i in feed.items],
        )
        self.assertEqual(self.sample("cache_hits_total"), 1.0)
        self.assertEqual(self.sample("cache_writes_total"), 1.0)

    def test_hit_is_resorted_newest_first(self) -> None:
        """Test that items stored out of order come back newest first."""
        self.cache.put(self.key, make_feed(2, 5, 1))

        cached = self.cache.get(self.key)

        self.assertEqual(
            [item.title for item in cached.items],
            ["Post from 1h ago", "Post from 2h ago", "Post from 5h ago"],
        )

    def test_miss(self) -> None:
        self.assertIsNone(self.cache.get(self.key))
        self.assertEqual(self.sample("cache_misses_total"), 1.0)

    def test_ttl_expiry(self) -> None:
        """Test that entries expire a fixed time after the write."""
        self.cache.put(self.key, make_feed(1))

        self.clock.advance(1799)
        self.assertIsNotNone(self.cache.get(self.key))

        self.clock.advance(2)
        self.assertIsNone(self.cache.get(self.key))

    def test_ttl_override(self) -> None:
        self.cache.put(self.key, make_feed(1), ttl=10)
        self.clock.advance(11)
        self.assertIsNone(self.cache.get(self.key))

    def test_overwrite_replaces_entry(self) -> None:
        self.cache.put(self.key, make_feed(1))
        self.cache.put(self.key, make_feed(1, 2))
        self.assertEqual(len(self.cache.get(self.key).items), 2)

    def test_put_many_writes_every_key(self) -> None:
        """Test that a dual write makes the feed readable under both keys."""
        canonical = self.cache.key(FACEBOOK, "1")
        written = self.cache.put_many([canonical, self.key, canonical], make_feed(1))

        self.assertEqual(written, 2)
        self.assertIsNotNone(self.cache.get(canonical))
        self.assertIsNotNone(self.cache.get(self.key))

    def test_store_unavailable_on_read_is_a_miss(self) -> None:
        store = Mock()
        store.get.side_effect = CacheUnavailable("down")
        cache = FeedCache(store)

        self.assertIsNone(cache.get(self.key))
        self.assertEqual(self.sample("cache_errors_total"), 1.0)
        self.assertEqual(self.sample("cache_misses_total"), 1.0)

    def test_failed_write_does_not_block_others(self) -> None:
        """Test that one failing key still lets the remaining keys be written."""
        store = Mock()
        store.set.side_effect = [CacheUnavailable("down"), None]
        cache = FeedCache(store)

        written = cache.put_many(["feeds:facebook:1", "feeds:facebook:page"], make_feed(1))

        self.assertEqual(written, 1)
        self.assertEqual(store.set.call_count, 2)

    def test_put_reports_failed_write(self) -> None:
        store = Mock()
        store.set.side_effect = CacheUnavailable("down")

        self.assertFalse(FeedCache(store).put(self.key, make_feed(1)))

    def test_corrupt_entry_is_dropped(self) -> None:
        self.store.set(self.key, b"not compressed", 60)

        self.assertIsNone(self.cache.get(self.key))
        self.assertIsNone(self.store.get(self.key))
        self.assertEqual(self.sample("cache_errors_total"), 1.0)

    def test_unknown_format_version_is_dropped(self) -> None:
        payload = serialize_feed(make_feed(1)).replace(
            b'"format_version":1', b'"format_version":2'
        )
        self.store.set(self.key, zlib.compress(payload), 60)

        self.assertIsNone(self.cache.get(self.key))

    def test_evict_all_only_touches_namespace(self) -> None:
        self.cache.put(self.key, make_feed(1))
        self.cache.put(self.cache.key(TWITTER, "someone"), make_feed(1))
        self.store.set("other:key", b"x", 60)

        self.assertEqual(self.cache.evict_all(), 2)
        self.assertIsNone(self.cache.get(self.key))
        self.assertEqual(self.store.get("other:key"), b"x")
        self.assertEqual(self.sample("cache_evictions_total"), 2.0)


class TestSerialization(unittest.TestCase):
    """Test suite for the cached feed encoding."""

    def setUp(self) -> None:
        self.patcher = patch(
            "feed_syndicator.cache.feed_cache.metrics",
            CacheMetrics(registry=CollectorRegistry()),
        )
        self.patcher.start()

    def tearDown(self) -> None:
        self.patcher.stop()

    def test_timestamps_carry_explicit_offset(self) -> None:
        payload = serialize_feed(make_feed(1)).decode("utf-8")
        self.assertIn('"published_at":"2024-05-01T11:00:00Z"', payload)
        self.assertIn('"format_version":1', payload)

    def test_round_trip_preserves_instants(self) -> None:
        feed = make_feed(1, 3)
        restored = deserialize_feed(serialize_feed(feed))

        self.assertEqual(restored, feed)
        for item in restored.items:
            self.assertIsNotNone(item.published_at.tzinfo)

    def test_compression_shrinks_payload(self) -> None:
        feed = make_feed(*range(20))
        blob = compress_feed(feed)

        self.assertLess(len(blob), len(serialize_feed(feed)))
        self.assertEqual(decompress_feed(blob), feed)


def test_cache_key_casefolds_subject():
    assert cache_key(FACEBOOK, "TestPage") == "feeds:facebook:testpage"
    assert cache_key(TWITTER, "Someone", namespace="staging") == "staging:twitter:someone"
