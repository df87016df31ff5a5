"""Feed caching package for the feed syndicator.

This package provides caching functionality with:
- Per-source key scheme
- TTL support
- Content compression
- Atomic full eviction
- Metrics tracking
"""

from feed_syndicator.cache.eviction import CacheEvictionJob
from feed_syndicator.cache.feed_cache import FACEBOOK, TWITTER, FeedCache, cache_key
from feed_syndicator.cache.stores import MemoryStore, RedisStore

__all__ = [
    "FACEBOOK",
    "TWITTER",
    "CacheEvictionJob",
    "FeedCache",
    "MemoryStore",
    "RedisStore",
    "cache_key",
]
