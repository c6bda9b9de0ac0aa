"""
Derived-aggregate caching.
"""

from .backends import CacheBackend, InMemoryCache, RedisCache
from .keys import CacheKeys
from .aggregate_cache import AggregateCache, build_cache

__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "CacheKeys",
    "AggregateCache",
    "build_cache",
]
