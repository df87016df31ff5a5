"""Scheduled full flush of the feed cache."""

import time

import structlog

from feed_syndicator.cache.feed_cache import FeedCache

logger = structlog.get_logger(__name__)


class CacheEvictionJob:
    """Delete every cached feed, all or nothing.

    Meant to be triggered by an external scheduler, e.g. a daily cron entry
    running ``feed-syndicator evict-cache``.
    """

    def __init__(self, cache: FeedCache):
        self.cache = cache

    def run(self) -> int:
        """Run one eviction sweep.

        Returns:
            Number of entries deleted

        Raises:
            CacheUnavailable: If the store could not commit the batch
        """
        start_time = time.time()
        logger.info("Starting cache eviction", namespace=self.cache.namespace)

        evicted = self.cache.evict_all()

        logger.info(
            "Cache eviction finished",
            namespace=self.cache.namespace,
            evicted=evicted,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return evicted
