"""Tests for the timeline page client."""

from feed_syndicator.core.clients.http import FetchResult
from feed_syndicator.core.clients.syndication import SyndicationClient, cookie_session
from feed_syndicator.core.cookies import load_netscape_cookies
from tests.helpers import NETSCAPE_COOKIES


def test_fetch_timeline_html(mock_fetcher):
    mock_fetcher.fetch.return_value = FetchResult(status=200, body="<html></html>")

    html = SyndicationClient(mock_fetcher).fetch_timeline_html("testuser")

    assert html == "<html></html>"
    args, kwargs = mock_fetcher.fetch.call_args
    assert args[0] == (
        "https://syndication.twitter.com/srv/timeline-profile/screen-name/testuser"
    )
    assert kwargs["expect_json"] is False


def test_cookie_session_carries_jar():
    jar = load_netscape_cookies(NETSCAPE_COOKIES)
    session = cookie_session(jar)
    assert session.cookies is jar


def test_cookie_session_without_jar():
    assert len(cookie_session(None).cookies) == 0
