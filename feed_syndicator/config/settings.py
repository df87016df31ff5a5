"""Configuration settings for the feed syndication service."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

from dotenv import load_dotenv

from feed_syndicator.errors import ConfigError

# maimaiDX / CHUNITHM International pages append a Chinese copy below a divider
DEFAULT_DUAL_LOCALE_SUBJECTS = frozenset({"108610093912972", "100784445056884"})

CACHE_BACKENDS = ("memory", "redis")
MEDIA_RESOLUTION_MODES = ("proxy", "inline")


def _parse_subjects(raw: Optional[str]) -> FrozenSet[str]:
    if raw is None:
        return DEFAULT_DUAL_LOCALE_SUBJECTS
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class SyndicatorConfig:
    """Configuration for the feed syndicator.

    Attributes:
        base_url: Public base URL of this service, used for media proxy links
        graph_access_token: Access token for the Graph API
        graph_api_version: Graph API version path segment
        twitter_cookies: Netscape-format cookie file content for syndication requests
        cache_ttl_seconds: Time-to-live for cached feeds
        cache_max_entries: Upper bound of entries held by the in-memory store
        cache_backend: Either "memory" or "redis"
        cache_namespace: Prefix shared by every cache key
        redis_url: Connection URL for the redis backend
        request_timeout: Timeout in seconds for every outbound request
        graph_max_pages: Number of post pages followed per profile
        media_resolution: "proxy" to link media through this service, "inline" to
            resolve image URLs while building the feed
        dual_locale_subjects: Canonical ids whose posts carry a second-language copy
        host: Interface the HTTP server binds to
        port: Port the HTTP server listens on
        metrics_port: Port for the Prometheus exporter, 0 disables it
        log_level: Minimum log level
    """

    base_url: str
    graph_access_token: str
    graph_api_version: str = "v21.0"
    twitter_cookies: str = ""
    cache_ttl_seconds: int = 30 * 60
    cache_max_entries: int = 1024
    cache_backend: str = "memory"
    cache_namespace: str = "feeds"
    redis_url: Optional[str] = None
    request_timeout: float = 10.0
    graph_max_pages: int = 1
    media_resolution: str = "proxy"
    dual_locale_subjects: FrozenSet[str] = field(default=DEFAULT_DUAL_LOCALE_SUBJECTS)
    host: str = "0.0.0.0"
    port: int = 8000
    metrics_port: int = 0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.cache_backend not in CACHE_BACKENDS:
            raise ConfigError(f"Unknown cache backend: {self.cache_backend}")
        if self.cache_backend == "redis" and not self.redis_url:
            raise ConfigError("REDIS_URL is required for the redis cache backend")
        if self.media_resolution not in MEDIA_RESOLUTION_MODES:
            raise ConfigError(f"Unknown media resolution mode: {self.media_resolution}")
        if self.graph_max_pages < 1:
            raise ConfigError("GRAPH_MAX_PAGES must be at least 1")

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SyndicatorConfig":
        """Create a SyndicatorConfig from a dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__dataclass_fields__})

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "SyndicatorConfig":
        """Create config from environment variables.

        A ``.env`` file is loaded first when present. Variables already set in
        the environment win over the file.

        Environment Variables:
            BASE_URL: Required public base URL
            GRAPH_ACCESS_TOKEN: Required Graph API token
            TWITTER_COOKIES / TWITTER_COOKIES_FILE: Netscape cookies, inline or by path
            CACHE_TTL_SECONDS, CACHE_MAX_ENTRIES, CACHE_BACKEND, CACHE_NAMESPACE,
            REDIS_URL, REQUEST_TIMEOUT, GRAPH_API_VERSION, GRAPH_MAX_PAGES,
            MEDIA_RESOLUTION, DUAL_LOCALE_SUBJECTS, HOST, PORT, METRICS_PORT,
            LOG_LEVEL: Optional overrides

        Raises:
            ConfigError: If a required variable is missing or a value is invalid
        """
        load_dotenv(dotenv_path)

        base_url = os.getenv("BASE_URL")
        token = os.getenv("GRAPH_ACCESS_TOKEN")
        if not token or not base_url:
            raise ConfigError("GRAPH_ACCESS_TOKEN or BASE_URL not set in environment.")

        cookies = os.getenv("TWITTER_COOKIES", "")
        cookies_file = os.getenv("TWITTER_COOKIES_FILE")
        if not cookies and cookies_file:
            try:
                cookies = Path(cookies_file).read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigError(f"Failed to read cookie file: {cookies_file}") from e

        try:
            return cls(
                base_url=base_url,
                graph_access_token=token,
                graph_api_version=os.getenv("GRAPH_API_VERSION", "v21.0"),
                twitter_cookies=cookies,
                cache_ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "1800")),
                cache_max_entries=int(os.getenv("CACHE_MAX_ENTRIES", "1024")),
                cache_backend=os.getenv("CACHE_BACKEND", "memory"),
                cache_namespace=os.getenv("CACHE_NAMESPACE", "feeds"),
                redis_url=os.getenv("REDIS_URL"),
                request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10.0")),
                graph_max_pages=int(os.getenv("GRAPH_MAX_PAGES", "1")),
                media_resolution=os.getenv("MEDIA_RESOLUTION", "proxy"),
                dual_locale_subjects=_parse_subjects(os.getenv("DUAL_LOCALE_SUBJECTS")),
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "8000")),
                metrics_port=int(os.getenv("METRICS_PORT", "0")),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e
