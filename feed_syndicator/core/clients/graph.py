"""Graph API client for page profiles, posts and media."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import structlog
from pydantic import ValidationError

from feed_syndicator.core.clients.http import HttpFetcher
from feed_syndicator.errors import UpstreamError
from feed_syndicator.models import Post

logger = structlog.get_logger(__name__)

GRAPH_ORIGIN = "https://graph.facebook.com"
GRAPH_HEADERS = {
    "origin": "https://www.facebook.com",
    "referer": "https://www.facebook.com/",
}
PROFILE_FIELDS = (
    "name,about,link,picture,posts{created_time,message,story,permalink_url,attachments}"
)
# The ids= parameter accepts at most 50 nodes per request
BATCH_LIMIT = 50


@dataclass
class GraphProfile:
    """A page profile with the posts fetched for it."""

    id: str
    name: str
    about: str
    link: str
    posts: List[Post] = field(default_factory=list)


def best_image_source(images: Iterable[Dict[str, Any]]) -> Optional[str]:
    """Pick the image variant with the largest pixel area."""
    best = max(
        (image for image in images if image.get("source")),
        key=lambda image: (image.get("height") or 0) * (image.get("width") or 0),
        default=None,
    )
    return best["source"] if best else None


class GraphClient:
    """Client for the Graph API."""

    def __init__(
        self,
        access_token: str,
        fetcher: Optional[HttpFetcher] = None,
        api_version: str = "v21.0",
        max_pages: int = 1,
    ):
        """Initialize the Graph client.

        Args:
            access_token: Graph API access token
            fetcher: HTTP fetcher, a plain one is created when omitted
            api_version: Version segment of every request path
            max_pages: Number of post pages to follow per profile
        """
        self.access_token = access_token
        self.fetcher = fetcher or HttpFetcher("graph")
        self.api_version = api_version
        self.max_pages = max_pages

    def _node_url(self, node: str = "") -> str:
        return f"{GRAPH_ORIGIN}/{self.api_version}/{quote(node, safe='')}"

    def _get(self, url: str, **params: Any) -> Dict[str, Any]:
        params["access_token"] = self.access_token
        return self.fetcher.fetch(url, params=params, headers=GRAPH_HEADERS).body

    def fetch_profile(self, user: str) -> GraphProfile:
        """Fetch a profile and its posts, following pagination up to ``max_pages``.

        Posts that cannot be read are skipped.
        """
        data = self._get(self._node_url(user), fields=PROFILE_FIELDS)
        if "id" not in data:
            raise UpstreamError(f"Profile {user} has no id")

        posts_page = data.get("posts") or {}
        raw_posts = list(posts_page.get("data") or [])
        next_url = (posts_page.get("paging") or {}).get("next")
        pages = 1

        while next_url and pages < self.max_pages:
            # Paging URLs already carry the token and fields
            page = self.fetcher.fetch(next_url, headers=GRAPH_HEADERS).body
            raw_posts.extend(page.get("data") or [])
            next_url = (page.get("paging") or {}).get("next")
            pages += 1

        posts = []
        for raw_post in raw_posts:
            try:
                posts.append(Post.from_graph(raw_post))
            except (KeyError, TypeError, ValidationError) as e:
                logger.warning("Skipping unreadable post", post_id=raw_post.get("id"), error=str(e))

        return GraphProfile(
            id=str(data["id"]),
            name=data.get("name") or "",
            about=data.get("about") or "",
            link=data.get("link") or "",
            posts=posts,
        )

    def fetch_image_source(self, image_id: str) -> str:
        """Return the URL of the largest variant of an image."""
        data = self._get(self._node_url(image_id), fields="images")
        source = best_image_source(data.get("images") or [])
        if source is None:
            raise UpstreamError(f"Image {image_id} has no variants")
        return source

    def fetch_video_source(self, video_id: str) -> str:
        data = self._get(self._node_url(video_id), fields="source")
        if not data.get("source"):
            raise UpstreamError(f"Video {video_id} has no source")
        return data["source"]

    def fetch_profile_picture(self, user: str) -> str:
        data = self._get(self._node_url(user), fields="picture")
        url = ((data.get("picture") or {}).get("data") or {}).get("url")
        if not url:
            raise UpstreamError(f"Profile {user} has no picture")
        return url

    def resolve_image_sources(self, image_ids: Iterable[str]) -> Dict[str, str]:
        """Resolve many images to their largest variant, ``BATCH_LIMIT`` ids per request.

        Ids the API does not return, or returns without variants, are absent
        from the result.
        """
        unique_ids = list(dict.fromkeys(image_ids))
        resolved: Dict[str, str] = {}

        for start in range(0, len(unique_ids), BATCH_LIMIT):
            chunk = unique_ids[start : start + BATCH_LIMIT]
            data = self._get(self._node_url(), ids=",".join(chunk), fields="images")
            for image_id in chunk:
                node = data.get(image_id) or {}
                source = best_image_source(node.get("images") or [])
                if source:
                    resolved[image_id] = source

        logger.debug("Resolved images", requested=len(unique_ids), resolved=len(resolved))
        return resolved
