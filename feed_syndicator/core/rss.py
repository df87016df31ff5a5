"""RSS 2.0 rendering of cached feeds."""

from email.utils import format_datetime
from xml.etree import ElementTree as ET

from feed_syndicator.models import CachedFeed

RSS_DOCS = "https://www.rssboard.org/rss-specification"
GENERATOR = "feed-syndicator"
RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"


def _text(parent: ET.Element, tag: str, value: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = value
    return element


def render_rss(feed: CachedFeed) -> str:
    """Render a feed as an RSS 2.0 document.

    Items are ordered newest first regardless of their stored order. Item
    bodies are HTML and end up XML-escaped inside ``<description>``.
    """
    metadata = feed.metadata

    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")
    _text(channel, "title", metadata.title)
    _text(channel, "link", metadata.link)
    _text(channel, "description", metadata.description or metadata.title)
    _text(channel, "lastBuildDate", format_datetime(metadata.generated_at, usegmt=True))
    _text(channel, "docs", RSS_DOCS)
    _text(channel, "generator", GENERATOR)

    if metadata.image_url:
        image = ET.SubElement(channel, "image")
        _text(image, "url", metadata.image_url)
        _text(image, "title", metadata.title)
        _text(image, "link", metadata.link)

    for item in feed.sorted_items():
        entry = ET.SubElement(channel, "item")
        _text(entry, "title", item.title)
        _text(entry, "link", item.link)
        _text(entry, "guid", item.id)
        _text(entry, "pubDate", format_datetime(item.published_at, usegmt=True))
        _text(entry, "description", item.html_body)

    body = ET.tostring(rss, encoding="unicode")
    return f'<?xml version="1.0" encoding="utf-8"?>\n{body}'
