"""Byte stores backing the feed cache.

A store keeps opaque compressed blobs under string keys with a per-entry
time-to-live. Stores signal backend trouble with CacheUnavailable and
nothing else.
"""

import threading
import time
from typing import Callable, NamedTuple, Optional

import pybreaker
import redis
import structlog
from cachetools import TLRUCache

from feed_syndicator.errors import CacheUnavailable

logger = structlog.get_logger(__name__)


class _StoredBlob(NamedTuple):
    payload: bytes
    ttl_seconds: float


def _expires_at(key: str, value: _StoredBlob, now: float) -> float:
    return now + value.ttl_seconds


class MemoryStore:
    """Thread-safe in-process store with per-entry TTL and LRU bounding.

    Entries expire a fixed time after they were written, whether or not
    they are read in between.
    """

    def __init__(self, max_entries: int = 1024, timer: Callable[[], float] = time.monotonic):
        """Initialize the store.

        Args:
            max_entries: Maximum number of entries, least recently used go first
            timer: Clock used for expiry, injectable for tests
        """
        self._entries = TLRUCache(maxsize=max_entries, ttu=_expires_at, timer=timer)
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            stored = self._entries.get(key)
            return stored.payload if stored is not None else None

    def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = _StoredBlob(value, ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_all(self, prefix: str = "") -> int:
        """Delete every key starting with ``prefix`` in one locked section."""
        with self._lock:
            self._entries.expire()
            keys = [key for key in list(self._entries.keys()) if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


class RedisStore:
    """Redis-backed store shared between processes.

    Calls go through a circuit breaker so an unreachable server costs one
    fast failure per request instead of a connection timeout.
    """

    def __init__(self, client: redis.Redis, breaker: Optional[pybreaker.CircuitBreaker] = None):
        self.client = client
        self.breaker = breaker or pybreaker.CircuitBreaker(fail_max=5, reset_timeout=60)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisStore":
        return cls(redis.Redis.from_url(url, socket_timeout=2.0), **kwargs)

    def _call(self, func: Callable, *args, **kwargs):
        try:
            return self.breaker.call(func, *args, **kwargs)
        except pybreaker.CircuitBreakerError as e:
            raise CacheUnavailable("Cache circuit is open") from e
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis error: {e}") from e

    def get(self, key: str) -> Optional[bytes]:
        return self._call(self.client.get, key)

    def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        self._call(self.client.set, key, value, px=int(ttl_seconds * 1000))

    def delete(self, key: str) -> None:
        self._call(self.client.delete, key)

    def delete_all(self, prefix: str = "") -> int:
        """Delete every key starting with ``prefix`` in a single MULTI/EXEC transaction."""
        return self._call(self._delete_all, prefix)

    def _delete_all(self, prefix: str) -> int:
        keys = list(self.client.scan_iter(match=f"{prefix}*"))
        if not keys:
            return 0

        pipe = self.client.pipeline(transaction=True)
        for key in keys:
            pipe.delete(key)
        pipe.execute()
        return len(keys)
