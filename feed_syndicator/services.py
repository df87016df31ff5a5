"""Construction of the long-lived service objects.

Everything here is built once at startup and shared by all requests: the
cache and its store, the cookie-carrying session and the API clients.
"""

from dataclasses import dataclass

import structlog

from feed_syndicator.cache import CacheEvictionJob, FeedCache, MemoryStore, RedisStore
from feed_syndicator.config import SyndicatorConfig
from feed_syndicator.core.clients import GraphClient, HttpFetcher, SyndicationClient, cookie_session
from feed_syndicator.core.cookies import load_netscape_cookies
from feed_syndicator.core.pipeline import FacebookFeedService, TwitterFeedService

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    """Container of the objects a request handler needs."""

    cache: FeedCache
    graph: GraphClient
    facebook: FacebookFeedService
    twitter: TwitterFeedService

    @property
    def eviction(self) -> CacheEvictionJob:
        return CacheEvictionJob(self.cache)


def build_cache(config: SyndicatorConfig) -> FeedCache:
    if config.cache_backend == "redis":
        store = RedisStore.from_url(config.redis_url)
    else:
        store = MemoryStore(max_entries=config.cache_max_entries)
    return FeedCache(store, ttl_seconds=config.cache_ttl_seconds, namespace=config.cache_namespace)


def build_services(config: SyndicatorConfig) -> Services:
    """Build all services from configuration.

    Raises:
        CookieFormatError: If the configured cookies are not in Netscape format
    """
    cache = build_cache(config)

    graph = GraphClient(
        config.graph_access_token,
        fetcher=HttpFetcher("graph", timeout=config.request_timeout),
        api_version=config.graph_api_version,
        max_pages=config.graph_max_pages,
    )

    jar = load_netscape_cookies(config.twitter_cookies) if config.twitter_cookies else None
    syndication = SyndicationClient(
        HttpFetcher("syndication", session=cookie_session(jar), timeout=config.request_timeout)
    )

    logger.info(
        "Services ready",
        cache_backend=config.cache_backend,
        cache_ttl_seconds=config.cache_ttl_seconds,
        media_resolution=config.media_resolution,
        twitter_cookies=jar is not None,
    )

    return Services(
        cache=cache,
        graph=graph,
        facebook=FacebookFeedService(
            graph,
            cache,
            config.base_url,
            dual_locale_subjects=config.dual_locale_subjects,
            media_resolution=config.media_resolution,
        ),
        twitter=TwitterFeedService(syndication, cache),
    )
