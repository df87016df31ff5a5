"""Timeline adapter for the embedded-JSON profile timeline.

The syndication page ships its data as a Next.js ``__NEXT_DATA__`` script
block. This module pulls the timeline out of that block and turns tweets
into the same FeedItem shape the Graph pipeline produces.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup

from feed_syndicator.core.assembler import parse_timestamp
from feed_syndicator.core.normalizer import LINE_BREAK, escape_html, to_html_lines
from feed_syndicator.errors import ParseError
from feed_syndicator.models import FeedItem, FeedMetadata

logger = structlog.get_logger(__name__)

NEXT_DATA_ID = "__NEXT_DATA__"
TWITTER_ORIGIN = "https://twitter.com"


@dataclass
class Timeline:
    """Parsed timeline: channel metadata (None when empty) and its items, newest first."""

    metadata: Optional[FeedMetadata]
    items: List[FeedItem] = field(default_factory=list)


def extract_timeline_entries(html: str) -> List[Any]:
    """Return the raw timeline entries embedded in a syndication page.

    Raises:
        ParseError: If the payload is missing, not JSON, or lacks a timeline
    """
    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id=NEXT_DATA_ID)
    raw = script.string if script is not None else None
    if not raw or not raw.strip():
        raise ParseError("Embedded timeline data not found in page")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"Embedded timeline data is not valid JSON: {e}") from e

    try:
        entries = data["props"]["pageProps"]["timeline"]["entries"]
    except (KeyError, TypeError) as e:
        raise ParseError("Embedded data has no timeline entries") from e

    if not isinstance(entries, list):
        raise ParseError("Timeline entries are not a list")
    return entries


def _dated_entries(entries: List[Any]) -> List[Tuple[datetime, Dict[str, Any], Dict[str, Any]]]:
    dated = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        tweet = (entry.get("content") or {}).get("tweet")
        if not isinstance(tweet, dict):
            continue
        published_at = parse_timestamp(tweet.get("created_at"))
        if published_at is None:
            logger.warning(
                "Skipping timeline entry with unparseable timestamp",
                entry_id=entry.get("entry_id"),
                created_at=tweet.get("created_at"),
            )
            continue
        dated.append((published_at, entry, tweet))

    dated.sort(key=lambda row: row[0], reverse=True)
    return dated


def metadata_from_user(user: Dict[str, Any], generated_at: datetime) -> FeedMetadata:
    """Build channel metadata from the author of the most recent entry."""
    screen_name = user.get("screen_name")
    if not screen_name:
        raise ParseError("Timeline entry has no author")

    return FeedMetadata(
        title=f"{user.get('name') or screen_name} (@{screen_name})",
        description=user.get("description") or "",
        canonical_id=str(user.get("id_str") or screen_name),
        link=f"{TWITTER_ORIGIN}/{screen_name}",
        image_url=user.get("profile_image_url_https"),
        generated_at=generated_at,
    )


def is_retweet(tweet: Dict[str, Any]) -> bool:
    return bool(tweet.get("retweeted_status"))


def _permalink(tweet: Dict[str, Any]) -> str:
    permalink = tweet.get("permalink")
    if not permalink:
        screen_name = (tweet.get("user") or {}).get("screen_name", "i")
        permalink = f"/{screen_name}/status/{tweet.get('id_str', '')}"
    return f"{TWITTER_ORIGIN}{permalink}"


def tweet_to_item(tweet: Dict[str, Any], published_at: datetime) -> FeedItem:
    """Convert one tweet into a feed item.

    Short links are swapped for their expanded form everywhere they occur.
    Media links are removed from the text and each media entity, photo or
    video, is appended as a single image.
    """
    text = escape_html(tweet.get("full_text") or tweet.get("text") or "").strip()
    title = text.split("\n", 1)[0]
    body = to_html_lines(text)

    entities = tweet.get("entities") or {}

    for url_entity in entities.get("urls") or []:
        short_url = url_entity.get("url")
        expanded_url = url_entity.get("expanded_url")
        if short_url and expanded_url:
            body = body.replace(short_url, escape_html(expanded_url))

    for media_entity in entities.get("media") or []:
        short_url = media_entity.get("url")
        if short_url:
            body = body.replace(short_url, "")
        source = media_entity.get("media_url_https")
        if source:
            body += f'{LINE_BREAK}<img src="{escape_html(source)}">'

    link = _permalink(tweet)
    return FeedItem(id=link, title=title, html_body=body, link=link, published_at=published_at)


def parse_timeline(html: str, generated_at: Optional[datetime] = None) -> Timeline:
    """Parse a syndication page into a timeline of feed items.

    Args:
        html: Raw HTML document of the profile timeline
        generated_at: Build time recorded in the metadata, defaults to now

    Returns:
        Timeline with items sorted newest first; retweets and non-tweet
        entries are left out

    Raises:
        ParseError: If the embedded payload is absent or malformed
    """
    dated = _dated_entries(extract_timeline_entries(html))
    if not dated:
        return Timeline(metadata=None)

    metadata = metadata_from_user(
        dated[0][2].get("user") or {}, generated_at or datetime.now(timezone.utc)
    )

    items = []
    for published_at, entry, tweet in dated:
        if entry.get("type") != "tweet":
            continue
        if is_retweet(tweet):
            logger.debug("Skipping retweet", entry_id=entry.get("entry_id"))
            continue
        items.append(tweet_to_item(tweet, published_at))

    return Timeline(metadata=metadata, items=items)
