"""Client for the embeddable profile timeline pages."""

from typing import Optional
from urllib.parse import quote

import requests
from requests.cookies import RequestsCookieJar

from feed_syndicator.core.clients.http import HttpFetcher

SYNDICATION_ORIGIN = "https://syndication.twitter.com"
SYNDICATION_HEADERS = {
    "origin": SYNDICATION_ORIGIN,
    "referer": f"{SYNDICATION_ORIGIN}/",
}


def cookie_session(jar: Optional[RequestsCookieJar]) -> requests.Session:
    """Create a session that sends the given cookies."""
    session = requests.Session()
    if jar is not None:
        session.cookies = jar
    return session


class SyndicationClient:
    """Fetch the HTML timeline page of a screen name."""

    def __init__(self, fetcher: Optional[HttpFetcher] = None):
        self.fetcher = fetcher or HttpFetcher("syndication")

    def fetch_timeline_html(self, screen_name: str) -> str:
        url = f"{SYNDICATION_ORIGIN}/srv/timeline-profile/screen-name/{quote(screen_name, safe='')}"
        return self.fetcher.fetch(url, headers=SYNDICATION_HEADERS, expect_json=False).body
