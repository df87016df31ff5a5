"""Feed synthesis pipelines.

Each service answers a feed request the same way: look in the cache,
and on a miss fetch, normalize and write back. The services differ in
their upstream and in the keys they write.
"""

from datetime import datetime, timezone
from typing import FrozenSet, List, Sequence
from urllib.parse import quote

import structlog

from feed_syndicator.cache.feed_cache import FACEBOOK, TWITTER, FeedCache
from feed_syndicator.core.assembler import assemble_item
from feed_syndicator.core.attachments import (
    MediaUrlFor,
    ProxyMediaUrls,
    ResolvedMediaUrls,
    resolve_attachments,
)
from feed_syndicator.core.clients.graph import GraphClient
from feed_syndicator.core.clients.syndication import SyndicationClient
from feed_syndicator.core.timeline import parse_timeline
from feed_syndicator.errors import SubjectNotFound, SyndicatorError, UpstreamError
from feed_syndicator.metrics import feed_metrics
from feed_syndicator.models import CachedFeed, FeedMetadata, MediaKind, Post

logger = structlog.get_logger(__name__)


class FeedService:
    """Cache-aside feed synthesis for one source."""

    source = ""

    def __init__(self, cache: FeedCache):
        self.cache = cache

    def get_feed(self, subject: str) -> CachedFeed:
        """Return the feed for a subject, from cache when possible.

        Raises:
            SubjectNotFound: If the subject is empty or has nothing to show
            UpstreamError: If the upstream rejected the request
            ParseError: If the upstream payload could not be read
        """
        subject = (subject or "").strip().casefold()
        if not subject:
            raise SubjectNotFound("Missing subject identifier")

        cached = self.cache.get(self.cache.key(self.source, subject))
        if cached is not None:
            logger.debug("Serving cached feed", source=self.source, subject=subject)
            feed_metrics.feeds_synthesized.labels(source=self.source, outcome="hit").inc()
            return cached

        try:
            feed = self.synthesize(subject)
        except SyndicatorError:
            feed_metrics.feeds_synthesized.labels(source=self.source, outcome="error").inc()
            raise

        written = self.cache.put_many(self.write_keys(subject, feed), feed)
        feed_metrics.feeds_synthesized.labels(source=self.source, outcome="miss").inc()
        feed_metrics.items_produced.labels(source=self.source).inc(len(feed.items))
        logger.info(
            "Synthesized feed",
            source=self.source,
            subject=subject,
            items=len(feed.items),
            cache_keys_written=written,
        )
        return feed

    def synthesize(self, subject: str) -> CachedFeed:
        raise NotImplementedError

    def write_keys(self, subject: str, feed: CachedFeed) -> List[str]:
        return [self.cache.key(self.source, subject)]


class FacebookFeedService(FeedService):
    """Feeds for Graph API pages.

    Results are written under both the canonical page id and the requested
    handle, so later lookups by either hit the cache.
    """

    source = FACEBOOK

    def __init__(
        self,
        graph: GraphClient,
        cache: FeedCache,
        base_url: str,
        dual_locale_subjects: FrozenSet[str] = frozenset(),
        media_resolution: str = "proxy",
    ):
        super().__init__(cache)
        self.graph = graph
        self.base_url = base_url.rstrip("/")
        self.dual_locale_subjects = dual_locale_subjects
        self.media_resolution = media_resolution

    @property
    def proxy_base(self) -> str:
        return f"{self.base_url}/facebook"

    def synthesize(self, subject: str) -> CachedFeed:
        profile = self.graph.fetch_profile(subject)
        split_locale = profile.id in self.dual_locale_subjects
        media_urls = self._media_urls(profile.posts)

        items = []
        for post in profile.posts:
            item = assemble_item(
                post,
                self.proxy_base,
                profile.id,
                split_locale=split_locale,
                media_urls=media_urls,
            )
            if item is None:
                feed_metrics.items_skipped.labels(source=self.source, reason="timestamp").inc()
                continue
            items.append(item)

        metadata = FeedMetadata(
            title=profile.name,
            description=profile.about,
            canonical_id=profile.id,
            link=profile.link,
            image_url=f"{self.proxy_base}/profile-picture/{quote(subject, safe='')}",
            generated_at=datetime.now(timezone.utc),
        )
        return CachedFeed(metadata=metadata, items=items)

    def write_keys(self, subject: str, feed: CachedFeed) -> List[str]:
        return [
            self.cache.key(self.source, feed.metadata.canonical_id),
            self.cache.key(self.source, subject),
        ]

    def _media_urls(self, posts: Sequence[Post]) -> MediaUrlFor:
        proxy = ProxyMediaUrls(self.proxy_base)
        if self.media_resolution != "inline":
            return proxy

        image_ids = [
            reference.target_id
            for post in posts
            for reference in resolve_attachments(post.attachments)
            if reference.kind is MediaKind.IMAGE
        ]
        if not image_ids:
            return proxy

        try:
            resolved = self.graph.resolve_image_sources(image_ids)
        except UpstreamError as e:
            logger.warning("Inline image resolution failed, using proxy", error=e.message)
            resolved = {}
        return ResolvedMediaUrls(resolved, proxy)


class TwitterFeedService(FeedService):
    """Feeds for syndication timelines, cached under the lowercased handle only."""

    source = TWITTER

    def __init__(self, syndication: SyndicationClient, cache: FeedCache):
        super().__init__(cache)
        self.syndication = syndication

    def synthesize(self, subject: str) -> CachedFeed:
        timeline = parse_timeline(self.syndication.fetch_timeline_html(subject))
        if timeline.metadata is None:
            raise SubjectNotFound(f"No timeline entries for {subject}")
        return CachedFeed(metadata=timeline.metadata, items=timeline.items)
