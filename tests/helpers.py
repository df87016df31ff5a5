"""Factories for feeds, Graph payloads and timeline pages used across tests."""

import json
from datetime import datetime, timedelta, timezone

from feed_syndicator.models import CachedFeed, FeedItem, FeedMetadata

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

NETSCAPE_COOKIES = (
    "# Netscape HTTP Cookie File\n"
    "# This is a generated file! Do not edit.\n"
    "\n"
    ".example.com\tTRUE\t/\tTRUE\t0\tsession\tabc123\n"
)


def make_item(hours_ago: float, item_id: str = None) -> FeedItem:
    published_at = NOW - timedelta(hours=hours_ago)
    link = item_id or f"https://facebook.com/1/posts/{int(hours_ago * 10)}"
    return FeedItem(
        id=link,
        title=f"Post from {hours_ago}h ago",
        html_body="Hello &amp; welcome<br>\nsecond line",
        link=link,
        published_at=published_at,
    )


def make_feed(*hours_ago: float) -> CachedFeed:
    metadata = FeedMetadata(
        title="Test Page",
        description="About the page",
        canonical_id="1",
        link="https://facebook.com/test",
        image_url="https://feeds.test/facebook/profile-picture/test",
        generated_at=NOW,
    )
    return CachedFeed(metadata=metadata, items=[make_item(h) for h in hours_ago])


def graph_post(post_id="1_100", created_time="2024-05-01T09:30:00+0000", **fields):
    post = {"id": post_id, "created_time": created_time}
    post.update(fields)
    return post


def graph_profile(posts=None, profile_id="1", name="Test Page"):
    return {
        "id": profile_id,
        "name": name,
        "about": "About the page",
        "link": "https://facebook.com/test",
        "posts": {"data": posts or []},
    }


def tweet_entry(
    tweet_id="200",
    text="Hello world",
    created_at="2024-05-01T09:30:00+00:00",
    entry_type="tweet",
    **fields,
):
    tweet = {
        "id_str": tweet_id,
        "full_text": text,
        "created_at": created_at,
        "permalink": f"/testuser/status/{tweet_id}",
        "user": {
            "id_str": "42",
            "name": "Test User",
            "screen_name": "testuser",
            "description": "A test account",
            "profile_image_url_https": "https://pbs.example/avatar.jpg",
        },
        "entities": {},
    }
    tweet.update(fields)
    return {"type": entry_type, "entry_id": f"tweet-{tweet_id}", "content": {"tweet": tweet}}


def timeline_html(entries) -> str:
    data = {"props": {"pageProps": {"timeline": {"entries": entries}}}}
    return (
        "<!DOCTYPE html><html><head></head><body>"
        f'<script id="__NEXT_DATA__" type="application/json">{json.dumps(data)}</script>'
        "</body></html>"
    )
