"""Assemble normalized feed items from upstream posts."""

from datetime import datetime, timezone
from typing import Optional

import structlog
from dateutil import parser as date_parser

from feed_syndicator.core.attachments import (
    MediaUrlFor,
    ProxyMediaUrls,
    render_media,
    resolve_attachments,
)
from feed_syndicator.core.normalizer import normalize_content
from feed_syndicator.models import FeedItem, Post

logger = structlog.get_logger(__name__)

FACEBOOK_ORIGIN = "https://facebook.com"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an upstream timestamp into an aware datetime.

    Accepts ISO-8601 (``2024-05-01T09:30:00+0000``) as well as the
    ``Wed Oct 10 20:19:24 +0000 2018`` style. Values without an offset are
    taken as UTC. Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def post_suffix(post_id: str) -> str:
    """Return the post segment of a composite ``<page>_<post>`` id.

    Only the segment between the first and second underscore is kept. Ids
    without an underscore, or with an empty post segment, are used whole.
    """
    if "_" not in post_id:
        return post_id
    return post_id.split("_")[1] or post_id


def post_link(subject_id: str, post_id: str) -> str:
    return f"{FACEBOOK_ORIGIN}/{subject_id}/posts/{post_suffix(post_id)}"


def assemble_item(
    post: Post,
    proxy_base: str,
    subject_id: str,
    *,
    split_locale: bool = False,
    media_urls: Optional[MediaUrlFor] = None,
) -> Optional[FeedItem]:
    """Build a feed item from a post.

    Args:
        post: Post to convert
        proxy_base: Base address of the media proxy endpoints
        subject_id: Canonical id of the subject the post belongs to
        split_locale: Keep only the primary-language part of the text
        media_urls: Resolver for media references, defaults to the proxy

    Returns:
        The feed item, or None when the post's creation time is unparseable
    """
    published_at = parse_timestamp(post.created_time)
    if published_at is None:
        logger.warning(
            "Skipping post with unparseable timestamp",
            post_id=post.id,
            created_time=post.created_time,
        )
        return None

    text = post.message if post.message is not None else (post.story or "")
    content = normalize_content(text, split_locale=split_locale)

    url_for = media_urls or ProxyMediaUrls(proxy_base)
    fragments = render_media(resolve_attachments(post.attachments), url_for)

    link = post_link(subject_id, post.id)
    return FeedItem(
        id=link,
        title=content.title,
        html_body=content.body + "".join(fragments),
        link=link,
        published_at=published_at,
    )
