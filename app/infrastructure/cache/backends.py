"""
Cache backends for derived aggregates.
Values are JSON-serialisable structures; nothing here is authoritative.
"""

import fnmatch
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

import redis

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Key/value store with per-key TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    def delete(self, *keys: str) -> int:
        pass

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob-style pattern."""
        pass

    @abstractmethod
    def incr(self, counter_key: str) -> int:
        """Increment a persistent counter and return its new value."""
        pass

    @abstractmethod
    def get_counter(self, counter_key: str) -> int:
        pass

    @abstractmethod
    def set_if_counter(self, key: str, value: Any, ttl_seconds: int, counter_key: str, expected: int) -> bool:
        """
        Store ``value`` only while ``counter_key`` still equals ``expected``.
        The check and the write are atomic; returns whether the value was stored.
        """
        pass


class InMemoryCache(CacheBackend):
    """Simple in-process cache for development and single-instance deployments."""

    def __init__(self, timer: Callable[[], float] = time.monotonic):
        self._timer = timer
        self._items: Dict[str, Tuple[float, str]] = {}
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, payload = item
            if expires_at <= self._timer():
                del self._items[key]
                return None
        return json.loads(payload)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        # Stored serialised, as Redis stores it
        payload = json.dumps(value)
        with self._lock:
            self._items[key] = (self._timer() + ttl_seconds, payload)

    def delete(self, *keys: str) -> int:
        with self._lock:
            return sum(1 for key in keys if self._items.pop(key, None) is not None)

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            matched = [key for key in self._items if fnmatch.fnmatchcase(key, pattern)]
            for key in matched:
                del self._items[key]
            return len(matched)

    def incr(self, counter_key: str) -> int:
        with self._lock:
            self._counters[counter_key] = self._counters.get(counter_key, 0) + 1
            return self._counters[counter_key]

    def get_counter(self, counter_key: str) -> int:
        with self._lock:
            return self._counters.get(counter_key, 0)

    def set_if_counter(self, key: str, value: Any, ttl_seconds: int, counter_key: str, expected: int) -> bool:
        payload = json.dumps(value)
        with self._lock:
            if self._counters.get(counter_key, 0) != expected:
                return False
            self._items[key] = (self._timer() + ttl_seconds, payload)
            return True

    def __len__(self) -> int:
        return len(self._items)


class RedisCache(CacheBackend):
    """Redis-backed cache shared by every instance of the service."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Optional[Any]:
        payload = self.redis.get(key)
        if payload is None:
            return None
        return json.loads(payload)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self.redis.setex(key, ttl_seconds, json.dumps(value))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return self.redis.delete(*keys)

    def delete_pattern(self, pattern: str) -> int:
        keys = list(self.redis.scan_iter(match=pattern, count=100))
        if not keys:
            return 0
        return self.redis.delete(*keys)

    def incr(self, counter_key: str) -> int:
        return int(self.redis.incr(counter_key))

    def get_counter(self, counter_key: str) -> int:
        return int(self.redis.get(counter_key) or 0)

    def set_if_counter(self, key: str, value: Any, ttl_seconds: int, counter_key: str, expected: int) -> bool:
        """WATCH the counter so a concurrent increment aborts the write."""
        with self.redis.pipeline() as pipe:
            try:
                pipe.watch(counter_key)
                if int(pipe.get(counter_key) or 0) != expected:
                    return False
                pipe.multi()
                pipe.setex(key, ttl_seconds, json.dumps(value))
                pipe.execute()
                return True
            except redis.WatchError:
                return False
