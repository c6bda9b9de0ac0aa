"""
Read-through, write-invalidate cache for derived aggregates.

Writers call the ``invalidate_*`` methods after the store commits and before
acknowledging the caller. Readers go through ``get_or_build``.

Every invalidation first bumps the tenant's generation counter. A reader
records the generation before it builds and stores its result only if the
generation is unchanged, so a value built from data read before a write can
never be cached after that write was acknowledged.
"""

import logging
from typing import Any, Callable, Optional

import redis

from app.infrastructure.cache.backends import CacheBackend, InMemoryCache, RedisCache
from app.infrastructure.cache.keys import CacheKeys

logger = logging.getLogger(__name__)


class AggregateCache:
    """Project lists and dashboard stats, keyed per tenant."""

    def __init__(self, backend: CacheBackend, ttl_seconds: int = 300):
        self.backend = backend
        self.ttl_seconds = ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss or an unreachable backend."""
        try:
            return self.backend.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        try:
            self.backend.set(key, value, self.ttl_seconds)
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def generation(self, tenant_id: str) -> Optional[int]:
        """The tenant's current generation, or None when it cannot be read."""
        try:
            return self.backend.get_counter(CacheKeys.generation(tenant_id))
        except redis.RedisError as e:
            logger.warning(f"Cache generation read failed for tenant {tenant_id}: {e}")
            return None

    def set_if_current(self, key: str, value: Any, tenant_id: str, generation: Optional[int]) -> bool:
        """Store ``value`` unless the tenant was invalidated since ``generation`` was read."""
        if generation is None:
            return False
        try:
            stored = self.backend.set_if_counter(
                key, value, self.ttl_seconds, CacheKeys.generation(tenant_id), generation
            )
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False
        if not stored:
            logger.debug(f"Discarded {key}: tenant {tenant_id} was invalidated while it was built")
        return stored

    def get_or_build(
        self,
        key: str,
        tenant_id: str,
        builder: Callable[[], Any],
        is_fresh: Optional[Callable[[Any], bool]] = None,
    ) -> Any:
        """
        Return the cached value, building it on a miss.

        ``is_fresh`` may reject a cached value, which is then rebuilt. The
        built value is returned either way but is only stored while the
        tenant's generation is unchanged. Blocking; run it off the event loop.
        """
        value = self.get(key)
        if value is not None and (is_fresh is None or is_fresh(value)):
            logger.debug(f"Cache hit: {key}")
            return value

        logger.debug(f"Cache miss: {key}")
        generation = self.generation(tenant_id)
        value = builder()
        self.set_if_current(key, value, tenant_id, generation)
        return value

    def invalidate_stats(self, tenant_id: str) -> None:
        """Drop every stats aggregate of the tenant, tenant-wide and per user."""
        self._invalidate(lambda: self.backend.delete_pattern(CacheKeys.stats_pattern(tenant_id)), tenant_id)

    def invalidate_projects(self, tenant_id: str) -> None:
        """Drop both project lists and the stats that count active projects."""
        self._invalidate(
            lambda: self.backend.delete(
                CacheKeys.projects(tenant_id, active_only=False),
                CacheKeys.projects(tenant_id, active_only=True),
            ),
            tenant_id,
        )
        self.invalidate_stats(tenant_id)

    def _invalidate(self, action: Callable[[], int], tenant_id: str) -> None:
        # Bump before deleting
        try:
            self.backend.incr(CacheKeys.generation(tenant_id))
        except redis.RedisError as e:
            logger.error(f"Cache generation bump failed for tenant {tenant_id}: {e}")
        try:
            removed = action()
            logger.debug(f"Invalidated {removed} cache keys for tenant {tenant_id}")
        except redis.RedisError as e:
            # The write is already committed; stale keys expire with their TTL
            logger.error(f"Cache invalidation failed for tenant {tenant_id}: {e}")


def build_cache(redis_url: Optional[str], ttl_seconds: int) -> AggregateCache:
    """Redis when configured, in-process memory otherwise."""
    if redis_url:
        logger.info("Using Redis cache backend")
        backend: CacheBackend = RedisCache.from_url(redis_url)
    else:
        logger.info("Using in-memory cache backend")
        backend = InMemoryCache()
    return AggregateCache(backend, ttl_seconds)
