"""Feed syndicator: RSS feeds synthesized from social media posts."""

from .cache import CacheEvictionJob, FeedCache, MemoryStore, RedisStore
from .config import SyndicatorConfig
from .core.pipeline import FacebookFeedService, TwitterFeedService
from .core.rss import render_rss
from .models import CachedFeed, FeedItem, FeedMetadata

__version__ = "1.0.0"

__all__ = [
    "CacheEvictionJob",
    "CachedFeed",
    "FacebookFeedService",
    "FeedCache",
    "FeedItem",
    "FeedMetadata",
    "MemoryStore",
    "RedisStore",
    "SyndicatorConfig",
    "TwitterFeedService",
    "render_rss",
]
