"""Metrics collection for the feed syndication service.

This module provides Prometheus metrics for the feed cache and the
synthesis pipeline. Under pytest a private registry is used so test runs
do not collide with the process-wide default registry.
"""

import os
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram


def _existing(registry: CollectorRegistry, name: str):
    return registry._names_to_collectors.get(name)


def _counter(registry: CollectorRegistry, name: str, help_text: str, labels=()) -> Counter:
    # prometheus_client registers counters under both "x" and "x_total"
    found = _existing(registry, name) or _existing(registry, f"{name}_total")
    if found is not None:
        return found
    return Counter(name, help_text, list(labels), registry=registry)


def _gauge(registry: CollectorRegistry, name: str, help_text: str) -> Gauge:
    found = _existing(registry, name)
    if found is not None:
        return found
    return Gauge(name, help_text, registry=registry)


def _histogram(
    registry: CollectorRegistry, name: str, help_text: str, labels=(), buckets=None
) -> Histogram:
    found = _existing(registry, f"{name}_sum")
    if found is not None:
        return found
    kwargs = {"buckets": buckets} if buckets else {}
    return Histogram(name, help_text, list(labels), registry=registry, **kwargs)


class CacheMetrics:
    """Metrics for feed cache performance and behavior.

    Tracks cache hits, misses, writes, evictions, compression ratios, and errors.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize cache metrics.

        Args:
            registry: Prometheus registry to use for metrics
        """
        self.cache_hits = _counter(registry, "cache_hits", "Number of cache hits")
        self.cache_misses = _counter(registry, "cache_misses", "Number of cache misses")
        self.cache_writes = _counter(registry, "cache_writes", "Number of cache entries written")
        self.cache_evictions = _counter(
            registry, "cache_evictions", "Number of cache entries evicted"
        )
        self.cache_errors = _counter(registry, "cache_errors", "Number of cache operation errors")
        self.cache_compression_ratio = _gauge(
            registry, "cache_compression_ratio", "Ratio of compressed to uncompressed feed size"
        )


class FeedMetrics:
    """Metrics for feed synthesis and upstream requests."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize feed synthesis metrics.

        Args:
            registry: Prometheus registry to use for metrics
        """
        self.feeds_synthesized = _counter(
            registry,
            "feeds_synthesized",
            "Number of feed requests by source and outcome",
            labels=("source", "outcome"),
        )
        self.items_produced = _counter(
            registry, "feed_items_produced", "Number of feed items produced", labels=("source",)
        )
        self.items_skipped = _counter(
            registry,
            "feed_items_skipped",
            "Number of posts skipped during synthesis",
            labels=("source", "reason"),
        )
        self.upstream_latency = _histogram(
            registry,
            "upstream_request_duration_seconds",
            "Duration of upstream requests",
            labels=("upstream",),
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )


_test_registry: Optional[CollectorRegistry] = None
_metrics: Optional[CacheMetrics] = None
_feed_metrics: Optional[FeedMetrics] = None


def get_registry() -> CollectorRegistry:
    """Get the appropriate metrics registry.

    Returns:
        CollectorRegistry: Registry to use for metrics
    """
    global _test_registry
    if bool(os.getenv("PYTEST_CURRENT_TEST")):
        if _test_registry is None:
            _test_registry = CollectorRegistry()
        return _test_registry
    return REGISTRY


def get_metrics() -> CacheMetrics:
    """Get the cache metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = CacheMetrics(registry=get_registry())
    return _metrics


def get_feed_metrics() -> FeedMetrics:
    """Get the feed metrics instance."""
    global _feed_metrics
    if _feed_metrics is None:
        _feed_metrics = FeedMetrics(registry=get_registry())
    return _feed_metrics


def start_metrics_server(port: int) -> None:
    """Start a Prometheus metrics server on the specified port."""
    from prometheus_client import start_http_server

    start_http_server(port)


# Convenience accessors
metrics = get_metrics()
feed_metrics = get_feed_metrics()

__all__ = [
    "CacheMetrics",
    "FeedMetrics",
    "feed_metrics",
    "get_feed_metrics",
    "get_metrics",
    "get_registry",
    "metrics",
    "start_metrics_server",
]
