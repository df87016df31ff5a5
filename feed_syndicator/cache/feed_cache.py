"""Feed cache implementation.

This module stores synthesized feeds with:
- A ``<namespace>:<source>:<subject>`` key scheme
- JSON serialization with explicit ISO-8601 offsets on every timestamp
- Content compression using zlib
- TTL-bounded, eventually consistent reads
- Comprehensive metrics tracking
"""

import zlib
from typing import Iterable, Optional

import structlog

from feed_syndicator.errors import CacheUnavailable
from feed_syndicator.metrics import metrics
from feed_syndicator.models import CachedFeed

logger = structlog.get_logger(__name__)

FACEBOOK = "facebook"
TWITTER = "twitter"

DEFAULT_TTL_SECONDS = 30 * 60


def cache_key(source: str, subject_key: str, namespace: str = "feeds") -> str:
    """Build the cache key for a subject. Subject keys are case-folded."""
    return f"{namespace}:{source}:{subject_key.casefold()}"


def serialize_feed(feed: CachedFeed) -> bytes:
    """Encode a feed as UTF-8 JSON. Datetimes are written as ISO-8601 with offset."""
    return feed.model_dump_json().encode("utf-8")


def deserialize_feed(payload: bytes) -> CachedFeed:
    """Decode a feed written by serialize_feed, rebuilding aware datetimes."""
    return CachedFeed.model_validate_json(payload)


def compress_feed(feed: CachedFeed) -> bytes:
    payload = serialize_feed(feed)
    compressed = zlib.compress(payload)
    metrics.cache_compression_ratio.set(len(compressed) / len(payload))
    return compressed


def decompress_feed(blob: bytes) -> CachedFeed:
    return deserialize_feed(zlib.decompress(blob))


class FeedCache:
    """Cache of synthesized feeds on top of a byte store.

    Store failures never fail a request: reads become misses and writes are
    skipped. Reads may return a value slightly older than the latest write.
    """

    def __init__(self, store, ttl_seconds: int = DEFAULT_TTL_SECONDS, namespace: str = "feeds"):
        """Initialize the feed cache.

        Args:
            store: MemoryStore, RedisStore or any object with the same methods
            ttl_seconds: Default time-to-live for entries
            namespace: Prefix shared by all keys of this cache
        """
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace

    def key(self, source: str, subject_key: str) -> str:
        return cache_key(source, subject_key, self.namespace)

    def get(self, key: str) -> Optional[CachedFeed]:
        """Get a feed from the cache.

        Args:
            key: Cache key to look up

        Returns:
            The cached feed with items sorted newest first, or None on a miss
        """
        try:
            blob = self.store.get(key)
        except CacheUnavailable as e:
            logger.warning("Cache unavailable, treating as miss", key=key, error=e.message)
            metrics.cache_errors.inc()
            metrics.cache_misses.inc()
            return None

        if blob is None:
            metrics.cache_misses.inc()
            return None

        try:
            feed = decompress_feed(blob)
        except (zlib.error, ValueError) as e:
            logger.error("Dropping unreadable cache entry", key=key, error=str(e))
            metrics.cache_errors.inc()
            metrics.cache_misses.inc()
            self._discard(key)
            return None

        metrics.cache_hits.inc()
        return feed.model_copy(update={"items": feed.sorted_items()})

    def put(self, key: str, feed: CachedFeed, ttl: Optional[int] = None) -> bool:
        """Store a feed under one key.

        Returns:
            True if the entry was written
        """
        return self.put_many([key], feed, ttl) == 1

    def put_many(self, keys: Iterable[str], feed: CachedFeed, ttl: Optional[int] = None) -> int:
        """Store the same feed under several keys.

        The writes are independent: if one fails the others still happen, and
        a missing key simply repopulates on its next miss.

        Returns:
            Number of keys written
        """
        blob = compress_feed(feed)
        ttl_seconds = ttl or self.ttl_seconds
        written = 0

        for key in dict.fromkeys(keys):
            try:
                self.store.set(key, blob, ttl_seconds)
            except CacheUnavailable as e:
                logger.warning("Cache unavailable, skipping write", key=key, error=e.message)
                metrics.cache_errors.inc()
                continue
            metrics.cache_writes.inc()
            written += 1

        return written

    def evict_all(self) -> int:
        """Delete every entry in this cache's namespace as one batch.

        Raises:
            CacheUnavailable: If the store cannot perform the deletion
        """
        evicted = self.store.delete_all(f"{self.namespace}:")
        metrics.cache_evictions.inc(evicted)
        return evicted

    def _discard(self, key: str) -> None:
        try:
            self.store.delete(key)
        except CacheUnavailable:
            logger.warning("Could not delete unreadable cache entry", key=key)
