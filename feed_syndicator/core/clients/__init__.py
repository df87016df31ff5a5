"""Upstream API clients."""

from .graph import GraphClient, GraphProfile
from .http import FetchResult, HttpFetcher
from .syndication import SyndicationClient, cookie_session

__all__ = [
    "FetchResult",
    "GraphClient",
    "GraphProfile",
    "HttpFetcher",
    "SyndicationClient",
    "cookie_session",
]
