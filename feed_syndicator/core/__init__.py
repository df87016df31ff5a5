"""Core synthesis components: normalization, attachments, timelines and pipelines."""

from .assembler import assemble_item, parse_timestamp
from .attachments import ProxyMediaUrls, ResolvedMediaUrls, render_media, resolve_attachments
from .cookies import cookie_header, load_netscape_cookies
from .normalizer import NormalizedContent, escape_html, normalize_content
from .pipeline import FacebookFeedService, FeedService, TwitterFeedService
from .rss import RSS_CONTENT_TYPE, render_rss
from .timeline import Timeline, parse_timeline

__all__ = [
    "FacebookFeedService",
    "FeedService",
    "NormalizedContent",
    "ProxyMediaUrls",
    "RSS_CONTENT_TYPE",
    "ResolvedMediaUrls",
    "Timeline",
    "TwitterFeedService",
    "assemble_item",
    "cookie_header",
    "escape_html",
    "load_netscape_cookies",
    "normalize_content",
    "parse_timeline",
    "parse_timestamp",
    "render_media",
    "render_rss",
    "resolve_attachments",
]
