"""Shared HTTP fetching for upstream content APIs."""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
import structlog

from feed_syndicator.errors import UpstreamError
from feed_syndicator.metrics import feed_metrics

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "accept": "*/*",
    "accept-language": "en-US,en;q=0.5",
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-origin",
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0"
    ),
}


@dataclass
class FetchResult:
    """Status code and decoded body of an upstream response."""

    status: int
    body: Any


def _error_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict) or "error" not in body:
        return None
    error = body["error"]
    if isinstance(error, dict):
        return str(error.get("message") or error.get("type") or "Unknown upstream error")
    return str(error)


class HttpFetcher:
    """Perform GET requests against one upstream.

    No retries are made. Every request carries the configured timeout.
    """

    def __init__(
        self,
        upstream: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        """Initialize the fetcher.

        Args:
            upstream: Name used in logs and metrics
            session: Session to send requests with, carries cookies when set up
            timeout: Request timeout in seconds
            headers: Headers sent with every request on top of the defaults
        """
        self.upstream = upstream
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}

    def fetch(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        expect_json: bool = True,
    ) -> FetchResult:
        """Fetch a URL.

        Args:
            url: URL to request
            params: Query parameters
            headers: Extra headers for this request
            expect_json: Decode the body as JSON instead of text

        Returns:
            FetchResult with the decoded body

        Raises:
            UpstreamError: On network failure, a non-2xx status, an embedded
                error object, or undecodable JSON
        """
        start_time = time.time()
        try:
            response = self.session.get(
                url,
                params=params,
                headers={**self.headers, **(headers or {})},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Upstream request failed", upstream=self.upstream, error=str(e))
            raise UpstreamError(f"{self.upstream} request failed: {e}") from e
        finally:
            feed_metrics.upstream_latency.labels(upstream=self.upstream).observe(
                time.time() - start_time
            )

        if not expect_json:
            if not 200 <= response.status_code < 300:
                raise UpstreamError(
                    f"{self.upstream} returned HTTP {response.status_code}",
                    details={"status": response.status_code},
                )
            return FetchResult(status=response.status_code, body=response.text)

        try:
            body = response.json()
        except ValueError:
            body = None

        message = _error_message(body)
        if message is not None:
            logger.warning(
                "Upstream reported an error",
                upstream=self.upstream,
                status=response.status_code,
                message=message,
            )
            raise UpstreamError(message, details={"status": response.status_code})

        if not 200 <= response.status_code < 300:
            raise UpstreamError(
                f"{self.upstream} returned HTTP {response.status_code}",
                details={"status": response.status_code},
            )

        if body is None:
            raise UpstreamError(f"{self.upstream} returned a body that is not JSON")

        return FetchResult(status=response.status_code, body=body)
